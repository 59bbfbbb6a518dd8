"""Provider validator: one lightweight probe per provider to confirm a key.

Each provider is a ``ProviderSpec`` entry in ``PROVIDERS``. The probe never
raises; transport failures and odd responses come back as a failed
``ValidationOutcome`` with the secret scrubbed from the detail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from mission_control.core.logging import get_logger
from mission_control.integrations.types import ValidationOutcome

logger = get_logger(__name__)

STANDARD_TIMEOUT = 10.0
SLOW_TIMEOUT = 15.0
LLM_TIMEOUT = 30.0

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_PROBE_MODEL = "claude-haiku-4-5-20251001"
NOTION_VERSION = "2022-06-28"

HeaderBuilder = Callable[[str], Dict[str, str]]
Classifier = Callable[[httpx.Response], ValidationOutcome]


@dataclass(frozen=True)
class ProviderSpec:
    """How to probe one provider."""

    method: str
    url: str
    headers: HeaderBuilder
    json_body: Optional[Dict[str, Any]] = None
    timeout: float = STANDARD_TIMEOUT
    # Some APIs answer 403 rather than 401 for a bad key.
    forbidden_is_invalid: bool = False
    classify: Optional[Classifier] = None


def bearer(secret: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {secret}"}


def _bearer_json(secret: str) -> Dict[str, str]:
    return {**bearer(secret), "content-type": "application/json"}


def _anthropic_headers(secret: str) -> Dict[str, str]:
    return {
        "x-api-key": secret,
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json",
    }


def _brave_headers(secret: str) -> Dict[str, str]:
    return {"X-Subscription-Token": secret, "Accept": "application/json"}


def _elevenlabs_headers(secret: str) -> Dict[str, str]:
    return {"xi-api-key": secret}


def _notion_headers(secret: str) -> Dict[str, str]:
    return {**bearer(secret), "Notion-Version": NOTION_VERSION}


def _classify_slack(response: httpx.Response) -> ValidationOutcome:
    # auth.test answers 200 for bad tokens too; the body carries the verdict.
    if not response.is_success:
        return ValidationOutcome(False, f"Slack API returned {response.status_code}")
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError("Slack response is not an object")
    if data.get("ok"):
        who = data.get("user") or data.get("bot_id") or "bot"
        return ValidationOutcome(True, f"Authenticated as {who}")
    return ValidationOutcome(False, f"Slack error: {data.get('error')}")


PROVIDERS: Dict[str, ProviderSpec] = {
    "anthropic": ProviderSpec(
        method="POST",
        url="https://api.anthropic.com/v1/messages",
        headers=_anthropic_headers,
        json_body={
            "model": ANTHROPIC_PROBE_MODEL,
            "max_tokens": 1,
            "messages": [{"role": "user", "content": "hi"}],
        },
        timeout=SLOW_TIMEOUT,
    ),
    "openai": ProviderSpec("GET", "https://api.openai.com/v1/models", bearer),
    "groq": ProviderSpec("GET", "https://api.groq.com/openai/v1/models", bearer),
    "xai": ProviderSpec("GET", "https://api.x.ai/v1/models", bearer),
    "perplexity": ProviderSpec(
        method="POST",
        url="https://api.perplexity.ai/chat/completions",
        headers=_bearer_json,
        json_body={
            "model": "sonar",
            "messages": [{"role": "user", "content": "hi"}],
            "max_tokens": 1,
        },
        timeout=LLM_TIMEOUT,
    ),
    "firecrawl": ProviderSpec(
        method="POST",
        url="https://api.firecrawl.dev/v1/scrape",
        headers=_bearer_json,
        json_body={
            "url": "https://example.com",
            "formats": ["markdown"],
            "onlyMainContent": True,
        },
        timeout=SLOW_TIMEOUT,
        forbidden_is_invalid=True,
    ),
    "brave": ProviderSpec(
        "GET",
        "https://api.search.brave.com/res/v1/web/search?q=test&count=1",
        _brave_headers,
        forbidden_is_invalid=True,
    ),
    "elevenlabs": ProviderSpec("GET", "https://api.elevenlabs.io/v1/user", _elevenlabs_headers),
    "agentmail": ProviderSpec(
        "GET",
        "https://api.agentmail.to/v0/inboxes",
        bearer,
        forbidden_is_invalid=True,
    ),
    "slack": ProviderSpec(
        "POST",
        "https://slack.com/api/auth.test",
        _bearer_json,
        classify=_classify_slack,
    ),
    "notion": ProviderSpec("GET", "https://api.notion.com/v1/users/me", _notion_headers),
}


def sanitize_error_message(message: str, secret: str) -> str:
    out = message or ""
    if secret:
        out = out.replace(secret, "***redacted***")
    return out


def classify_response(spec: ProviderSpec, response: httpx.Response) -> ValidationOutcome:
    status = response.status_code
    # Throttling happens after the key is accepted.
    if status == 429:
        return ValidationOutcome(True, "API key valid (rate limited)")
    if spec.classify is not None:
        return spec.classify(response)
    if response.is_success:
        return ValidationOutcome(True, "API key valid")
    if status == 401 or (status == 403 and spec.forbidden_is_invalid):
        return ValidationOutcome(False, f"Invalid API key ({status})")
    return ValidationOutcome(False, f"API returned {status}")


class ProviderValidator:
    """Validates a secret against the provider it belongs to."""

    def __init__(
        self,
        providers: Optional[Mapping[str, ProviderSpec]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.providers = dict(PROVIDERS if providers is None else providers)
        self._transport = transport

    def supports(self, provider: Optional[str]) -> bool:
        return (provider or "") in self.providers

    async def validate(self, provider: Optional[str], secret: str) -> ValidationOutcome:
        spec = self.providers.get(provider or "")
        if spec is None:
            # Presence-only check; never a false negative for unknown providers.
            return ValidationOutcome(True, f"Credential present ({len(secret)} chars)")

        try:
            timeout = httpx.Timeout(spec.timeout)
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.request(
                    spec.method,
                    spec.url,
                    headers=spec.headers(secret),
                    json=spec.json_body,
                )
            outcome = classify_response(spec, response)
        except httpx.TimeoutException:
            outcome = ValidationOutcome(False, "Request timed out")
        except httpx.HTTPError as exc:
            outcome = ValidationOutcome(False, f"Network error: {sanitize_error_message(str(exc), secret)}")
        except ValueError:
            outcome = ValidationOutcome(False, "Malformed response from provider")
        except Exception as exc:
            logger.error(
                "Provider probe crashed",
                data={"provider": provider, "error": type(exc).__name__},
            )
            outcome = ValidationOutcome(False, f"Validation error: {sanitize_error_message(str(exc), secret)}")

        logger.info(
            "Provider probe finished",
            data={"provider": provider, "ok": outcome.ok, "detail": outcome.detail},
        )
        return outcome
