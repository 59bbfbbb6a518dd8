"""Integration tester: produces exactly one ``TestResult`` per call."""

from __future__ import annotations

import time
from typing import Optional, Protocol

from mission_control.config import Settings
from mission_control.core.logging import get_logger
from mission_control.integrations.backends import (
    CommandError,
    CommandRunner,
    ConfigReader,
    EnvironmentReader,
    GoogleAuthCLI,
    JsonFileReader,
    OnePasswordCLI,
    ProcessEnvironment,
    SecretBackend,
    SubprocessRunner,
)
from mission_control.integrations.resolver import BUILT_IN, GOG_PREFIX, CredentialResolver
from mission_control.integrations.types import ResolutionMethod, TestResult, TestStatus
from mission_control.integrations.validator import ProviderValidator

logger = get_logger(__name__)

CREDENTIAL_PROVIDER = "credential_provider"
CLI_AUTH = "cli_auth"
ONEPASSWORD_PROVIDER = "1password"
ERROR_DETAIL_LIMIT = 200


class IntegrationLike(Protocol):
    type: str
    provider: Optional[str]
    credential_source: Optional[str]


def _first_line(text: str) -> str:
    return text.split("\n")[0]


def _error_detail(exc: Exception) -> str:
    message = exc.message if isinstance(exc, CommandError) else str(exc) or type(exc).__name__
    return message[:ERROR_DETAIL_LIMIT]


class IntegrationTester:
    """Decision tree over integration type and credential source.

    Probe failures never escape: they become ``fail`` or ``warn`` results
    so the caller can always record a health check.
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        validator: ProviderValidator,
        secrets: SecretBackend,
        google: GoogleAuthCLI,
    ):
        self.resolver = resolver
        self.validator = validator
        self.secrets = secrets
        self.google = google

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        runner: Optional[CommandRunner] = None,
        env: Optional[EnvironmentReader] = None,
        config_reader: Optional[ConfigReader] = None,
        validator: Optional[ProviderValidator] = None,
    ) -> "IntegrationTester":
        if runner is None:
            runner = SubprocessRunner()
        secrets = OnePasswordCLI(
            runner,
            binary=settings.secret_manager_cli,
            check_timeout=settings.cli_timeout_seconds,
            read_timeout=settings.secret_read_timeout_seconds,
        )
        google = GoogleAuthCLI(runner, binary=settings.google_cli, timeout=settings.cli_timeout_seconds)
        resolver = CredentialResolver(
            env=ProcessEnvironment() if env is None else env,
            config_reader=JsonFileReader() if config_reader is None else config_reader,
            secrets=secrets,
            google=google,
            config_paths=settings.openclaw_config_paths_list,
        )
        if validator is None:
            validator = ProviderValidator()
        return cls(resolver, validator, secrets, google)

    async def run(self, integration: IntegrationLike) -> TestResult:
        start = time.perf_counter()
        status, message = await self._decide(integration)
        duration_ms = int((time.perf_counter() - start) * 1000)
        return TestResult(status=status, message=message, duration_ms=duration_ms)

    async def _decide(self, integration: IntegrationLike) -> tuple[TestStatus, str]:
        source = integration.credential_source or ""

        # The manager's own session state beats a generic lookup of its token.
        if integration.type == CREDENTIAL_PROVIDER and integration.provider == ONEPASSWORD_PROVIDER:
            return await self._check_onepassword()

        if source == BUILT_IN:
            return TestStatus.PASS, "Built-in integration (managed by gateway)"

        if integration.type == CLI_AUTH:
            if source.startswith(GOG_PREFIX):
                return await self._check_google_auth()
            return TestStatus.WARN, f"Unknown CLI auth method: {source}"

        credential = await self.resolver.resolve(source)
        if not credential.value:
            return TestStatus.FAIL, self._missing_hint(credential.method, source)

        outcome = await self.validator.validate(integration.provider, credential.value)
        return (TestStatus.PASS if outcome.ok else TestStatus.FAIL), outcome.detail

    async def _check_onepassword(self) -> tuple[TestStatus, str]:
        try:
            out = await self.secrets.whoami()
        except Exception as exc:
            return TestStatus.FAIL, f"1Password CLI not authenticated: {_error_detail(exc)}"
        return TestStatus.PASS, f"1Password CLI authenticated: {_first_line(out)}"

    async def _check_google_auth(self) -> tuple[TestStatus, str]:
        try:
            out = await self.google.list_tokens()
        except Exception as exc:
            return TestStatus.FAIL, f"Google auth failed: {_error_detail(exc)}"
        if "No tokens stored" in out or not out.strip():
            return TestStatus.FAIL, "Google auth: No tokens stored"
        return TestStatus.PASS, f"Google auth: {_first_line(out)}"

    @staticmethod
    def _missing_hint(method: str, source: str) -> str:
        if method == ResolutionMethod.ONEPASSWORD.value:
            return f"Could not read from 1Password ({source})"
        if method == ResolutionMethod.ENV.value:
            return f"Environment variable not set ({source})"
        return f"Credential not found ({source})"
