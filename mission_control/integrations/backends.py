"""Capability interfaces for the places a credential can live.

The resolver never touches ``os.environ``, the filesystem or a subprocess
directly; it is handed one of each of these, so tests substitute fakes.
"""

from __future__ import annotations

import asyncio
import json
import os
from typing import Any, Dict, Optional, Protocol, Sequence

from mission_control.core.logging import get_logger

logger = get_logger(__name__)


class CommandError(Exception):
    """A CLI invocation failed, timed out, or the binary is missing."""

    def __init__(self, message: str, returncode: int | None = None):
        self.message = message
        self.returncode = returncode
        super().__init__(message)


class CommandRunner(Protocol):
    async def run(self, args: Sequence[str], timeout: float) -> str: ...


class EnvironmentReader(Protocol):
    def get(self, name: str) -> Optional[str]: ...


class ConfigReader(Protocol):
    def read_json(self, path: str) -> Optional[Dict[str, Any]]: ...


class SecretBackend(Protocol):
    async def whoami(self) -> str: ...

    async def read_field(self, reference: str) -> str: ...

    async def get_item(self, vault: str, item: str) -> Dict[str, Any]: ...


class SubprocessRunner:
    """Runs a command without a shell and returns its stripped stdout."""

    async def run(self, args: Sequence[str], timeout: float) -> str:
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise CommandError(f"{args[0]}: command not found") from exc
        except OSError as exc:
            raise CommandError(f"{args[0]}: {exc.strerror or exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            try:
                proc.kill()
            except ProcessLookupError:
                pass  # exited on its own at the deadline
            await proc.wait()
            raise CommandError(f"{args[0]} timed out after {timeout:g}s") from exc

        if proc.returncode != 0:
            err = stderr.decode("utf-8", errors="ignore").strip()
            raise CommandError(
                err or f"{args[0]} exited with status {proc.returncode}",
                returncode=proc.returncode,
            )
        return stdout.decode("utf-8", errors="ignore").strip()


class ProcessEnvironment:
    """Process environment; empty values count as unset."""

    def get(self, name: str) -> Optional[str]:
        return os.environ.get(name) or None


class JsonFileReader:
    """Reads JSON config files, treating missing or broken files as absent."""

    def read_json(self, path: str) -> Optional[Dict[str, Any]]:
        if not os.path.isfile(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.debug("Unreadable config file", data={"path": path, "error": str(exc)})
            return None
        return data if isinstance(data, dict) else None


class OnePasswordCLI:
    """1Password through the ``op`` command-line tool."""

    def __init__(
        self,
        runner: CommandRunner,
        binary: str = "op",
        check_timeout: float = 10.0,
        read_timeout: float = 15.0,
    ):
        self.runner = runner
        self.binary = binary
        self.check_timeout = check_timeout
        self.read_timeout = read_timeout

    async def whoami(self) -> str:
        return await self.runner.run([self.binary, "whoami"], timeout=self.check_timeout)

    async def read_field(self, reference: str) -> str:
        return await self.runner.run([self.binary, "read", reference], timeout=self.read_timeout)

    async def get_item(self, vault: str, item: str) -> Dict[str, Any]:
        out = await self.runner.run(
            [self.binary, "item", "get", item, "--vault", vault, "--format", "json"],
            timeout=self.read_timeout,
        )
        try:
            data = json.loads(out)
        except ValueError as exc:
            raise CommandError("op returned malformed item JSON") from exc
        if not isinstance(data, dict):
            raise CommandError("op returned malformed item JSON")
        return data


class GoogleAuthCLI:
    """Google OAuth state held by the ``gog`` CLI."""

    def __init__(self, runner: CommandRunner, binary: str = "gog", timeout: float = 10.0):
        self.runner = runner
        self.binary = binary
        self.timeout = timeout

    async def check(self) -> str:
        return await self.runner.run([self.binary, "auth", "check"], timeout=self.timeout)

    async def list_tokens(self) -> str:
        return await self.runner.run([self.binary, "auth", "list"], timeout=self.timeout)
