"""Value types shared by the credential resolver, validator and tester."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TestStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"

    __test__ = False


class ResolutionMethod(str, Enum):
    """Which backend satisfied (or failed to satisfy) a credential source."""

    ENV = "env"
    ONEPASSWORD = "1password"
    OPENCLAW_JSON = "openclaw.json"
    CLI = "cli"
    BUILT_IN = "built-in"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResolvedCredential:
    """Outcome of resolving a credential source.

    ``value`` is None when nothing was found. The secret is kept out of
    ``repr`` so it cannot leak through logs or tracebacks.
    """

    value: Optional[str]
    method: str

    def __repr__(self) -> str:
        state = "set" if self.value else "missing"
        return f"ResolvedCredential(method={self.method!r}, value=<{state}>)"


@dataclass(frozen=True)
class ValidationOutcome:
    ok: bool
    detail: str


@dataclass(frozen=True)
class TestResult:
    """One integration test outcome, consumed by the persistence layer."""

    status: TestStatus
    message: str
    duration_ms: int

    __test__ = False

    @property
    def integration_status(self) -> str:
        if self.status == TestStatus.PASS:
            return "connected"
        if self.status == TestStatus.FAIL:
            return "broken"
        return "unknown"
