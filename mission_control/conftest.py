"""Pytest configuration for Mission Control tests.

Sets up the test environment before any test module imports the app, so
settings are loaded with test values.
"""

import os


def pytest_configure(config):
    """Configure test environment before any tests run.

    - ENVIRONMENT=test
    - CLI binaries point at names that cannot exist, so a test that forgets
      to inject a fake runner fails loudly instead of reaching a real vault
    - openclaw.json candidates point nowhere
    """
    config.addinivalue_line("markers", "integration: Tests that spawn real subprocesses")

    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("SECRET_MANAGER_CLI", "mc-test-missing-op")
    os.environ.setdefault("GOOGLE_CLI", "mc-test-missing-gog")
    os.environ.setdefault("OPENCLAW_CONFIG_PATHS", "/nonexistent/openclaw.json")
    os.environ.setdefault("LOG_LEVEL", "WARNING")
