import json
import logging

import pytest
from pydantic import ValidationError

from mission_control.config import Settings
from mission_control.core.logging import StructuredFormatter, redact_sensitive_data


def test_openclaw_paths_keep_order():
    settings = Settings(openclaw_config_paths=" /a/openclaw.json, ,/b/openclaw.json ")
    assert settings.openclaw_config_paths_list == ["/a/openclaw.json", "/b/openclaw.json"]


def test_environment_is_validated():
    assert Settings(environment=" Production ").is_production
    with pytest.raises(ValidationError):
        Settings(environment="moon")


def test_cli_timeouts_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(cli_timeout_seconds=0)


def test_docs_hidden_in_production():
    assert Settings(environment="production").docs_url is None
    assert Settings(environment="development").docs_url == "/docs"


def test_credential_headers_are_redacted():
    data = {
        "provider": "brave",
        "headers": {"X-Subscription-Token": "BSAabcdef123456789", "Accept": "application/json"},
        "xi-api-key": "short",
    }

    redacted = redact_sensitive_data(data)

    assert redacted["provider"] == "brave"
    assert redacted["headers"]["X-Subscription-Token"] == "BSA***"
    assert redacted["headers"]["Accept"] == "application/json"
    assert redacted["xi-api-key"] == "<REDACTED>"


def test_structured_formatter_emits_json():
    record = logging.LogRecord("mc", logging.INFO, __file__, 1, "Integration tested", None, None)
    record.data = {"status": "pass", "token": "tok_1234567890abcdef"}

    payload = json.loads(StructuredFormatter().format(record))

    assert payload["message"] == "Integration tested"
    assert payload["level"] == "INFO"
    assert payload["timestamp"].endswith("Z")
    assert payload["data"] == {"status": "pass", "token": "tok***"}
