"""Credential resolver: turns a ``credential_source`` string into a secret."""

from __future__ import annotations

import re
from typing import Awaitable, Callable, Optional, Sequence

from mission_control.core.logging import get_logger
from mission_control.integrations.backends import (
    CommandError,
    ConfigReader,
    EnvironmentReader,
    GoogleAuthCLI,
    SecretBackend,
)
from mission_control.integrations.types import ResolutionMethod, ResolvedCredential

logger = get_logger(__name__)

ENV_PREFIX = ".env:"
ONEPASSWORD_PREFIX = "1password:"
OPENCLAW_PREFIX = "openclaw.json:"
GOG_PREFIX = "gog:"
BUILT_IN = "built-in"

# Fields tried, in order, when looking for the secret inside a 1Password item.
ONEPASSWORD_FIELDS = ("credential", "password", "api_key", "api key", "secret", "token", "notesPlain")
# Never treated as the secret by the "any non-empty field" fallback.
ONEPASSWORD_SKIP_LABELS = ("username", "notesPlain")

_ENV_NAME = re.compile(r"^[A-Z_][A-Z0-9_]*$")
# `op read` cannot address item names containing these.
_OP_SPECIAL_CHARS = re.compile(r"[()\[\]{}]")

CLI_AUTHENTICATED = "authenticated"


class CredentialResolver:
    """Dispatches a credential source to the backend its prefix names.

    ``resolve`` never raises: every failure degrades to a
    ``ResolvedCredential`` whose ``value`` is None.
    """

    def __init__(
        self,
        env: EnvironmentReader,
        config_reader: ConfigReader,
        secrets: SecretBackend,
        google: GoogleAuthCLI,
        config_paths: Sequence[str] = (),
    ):
        self.env = env
        self.config_reader = config_reader
        self.secrets = secrets
        self.google = google
        self.config_paths = list(config_paths)
        self._prefixes: list[tuple[str, Callable[[str], Awaitable[ResolvedCredential]]]] = [
            (ENV_PREFIX, self._from_env_prefix),
            (ONEPASSWORD_PREFIX, self._from_onepassword),
            (OPENCLAW_PREFIX, self._from_openclaw),
            (GOG_PREFIX, self._from_gog),
        ]

    async def resolve(self, source: Optional[str]) -> ResolvedCredential:
        source = source or ""
        try:
            for prefix, handler in self._prefixes:
                if source.startswith(prefix):
                    return await handler(source[len(prefix):])
            if source == BUILT_IN:
                return ResolvedCredential(BUILT_IN, ResolutionMethod.BUILT_IN.value)
            if _ENV_NAME.match(source):
                return self._env(source)
        except Exception as exc:
            logger.warning(
                "Credential resolution failed",
                data={"source": source, "error": type(exc).__name__},
            )
            return ResolvedCredential(None, self._method_for(source))
        return ResolvedCredential(None, ResolutionMethod.UNKNOWN.value)

    def _method_for(self, source: str) -> str:
        if source.startswith(ONEPASSWORD_PREFIX):
            return ResolutionMethod.ONEPASSWORD.value
        if source.startswith(GOG_PREFIX):
            return ResolutionMethod.CLI.value
        if source.startswith((ENV_PREFIX, OPENCLAW_PREFIX)) or _ENV_NAME.match(source):
            return ResolutionMethod.ENV.value
        return ResolutionMethod.UNKNOWN.value

    def _env(self, name: str) -> ResolvedCredential:
        return ResolvedCredential(self.env.get(name) or None, ResolutionMethod.ENV.value)

    async def _from_env_prefix(self, name: str) -> ResolvedCredential:
        return self._env(name)

    async def _from_onepassword(self, item_path: str) -> ResolvedCredential:
        if _OP_SPECIAL_CHARS.search(item_path):
            value = await self._onepassword_item_json(item_path)
        else:
            value = await self._onepassword_fields(item_path)
        return ResolvedCredential(value, ResolutionMethod.ONEPASSWORD.value)

    async def _onepassword_fields(self, item_path: str) -> Optional[str]:
        for field in ONEPASSWORD_FIELDS:
            try:
                value = await self.secrets.read_field(f"op://{item_path}/{field}")
            except CommandError:
                continue
            if value:
                return value
        return None

    async def _onepassword_item_json(self, item_path: str) -> Optional[str]:
        vault, _, item_name = item_path.partition("/")
        try:
            item = await self.secrets.get_item(vault, item_name)
        except CommandError as exc:
            logger.info("1Password item lookup failed", data={"vault": vault, "error": exc.message[:200]})
            return None

        fields = [f for f in item.get("fields") or [] if isinstance(f, dict) and f.get("value")]
        for label in ONEPASSWORD_FIELDS:
            for field in fields:
                if (field.get("label") or "").lower() == label.lower():
                    return field["value"]
        for field in fields:
            if (field.get("label") or "") not in ONEPASSWORD_SKIP_LABELS:
                return field["value"]
        return None

    async def _from_openclaw(self, key: str) -> ResolvedCredential:
        # File candidates strictly before the environment.
        for path in self.config_paths:
            config = self.config_reader.read_json(path)
            if not config:
                continue
            env_section = config.get("env")
            vars_section = env_section.get("vars") if isinstance(env_section, dict) else None
            value = vars_section.get(key) if isinstance(vars_section, dict) else None
            if value:
                return ResolvedCredential(str(value), ResolutionMethod.OPENCLAW_JSON.value)
        return self._env(key)

    async def _from_gog(self, _account: str) -> ResolvedCredential:
        try:
            await self.google.check()
        except CommandError:
            return ResolvedCredential(None, ResolutionMethod.CLI.value)
        return ResolvedCredential(CLI_AUTHENTICATED, ResolutionMethod.CLI.value)
