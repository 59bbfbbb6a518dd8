"""Credential resolution and provider validation for integrations."""

from mission_control.integrations.resolver import CredentialResolver
from mission_control.integrations.tester import IntegrationTester
from mission_control.integrations.types import (
    ResolutionMethod,
    ResolvedCredential,
    TestResult,
    TestStatus,
    ValidationOutcome,
)
from mission_control.integrations.validator import PROVIDERS, ProviderSpec, ProviderValidator

__all__ = [
    "CredentialResolver",
    "IntegrationTester",
    "PROVIDERS",
    "ProviderSpec",
    "ProviderValidator",
    "ResolutionMethod",
    "ResolvedCredential",
    "TestResult",
    "TestStatus",
    "ValidationOutcome",
]
