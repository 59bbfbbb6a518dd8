from sqlalchemy.exc import OperationalError

from mission_control.core.eventbus import DEFAULT_CHANNEL, HEALTH_CHECK_COMPLETED, INTEGRATION_UPDATED
from mission_control.services.integration_service import IntegrationService
from mission_control.tests.fakes import FakeRunner, status_transport


def _history(client, integration_id):
    res = client.get("/api/health/history", params={"target_type": "integration", "target_id": integration_id})
    assert res.status_code == 200
    return res.json()


def _history_statuses(client, integration_id):
    return [row["status"] for row in _history(client, integration_id)]


def _events(app):
    return [event.type for event in app.state.eventbus.backlog(DEFAULT_CHANNEL)]


class BrokenTester:
    async def run(self, integration):
        raise RuntimeError("tester exploded")


def test_test_unknown_integration_returns_404(client):
    res = client.post("/api/integrations/does-not-exist/test")

    assert res.status_code == 404
    assert res.json()["detail"] == "Integration not found"
    assert client.get("/api/health/history").json() == []


def test_missing_env_credential_marks_integration_broken(client, create_integration):
    created = create_integration(
        name="OpenAI",
        provider="openai",
        credential_source=".env:DEFINITELY_UNSET_MC_KEY",
    )

    res = client.post(f"/api/integrations/{created['id']}/test")

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "broken"
    assert body["validation_message"] == "Environment variable not set (.env:DEFINITELY_UNSET_MC_KEY)"
    assert body["last_validated"] is not None

    history = _history(client, created["id"])
    assert len(history) == 1
    assert history[0]["status"] == "fail"
    assert history[0]["message"] == body["validation_message"]
    assert history[0]["target_name"] == "OpenAI"


def test_google_auth_without_tokens(app, client, create_integration, make_tester):
    app.state.integration_tester = make_tester(runner=FakeRunner({("gog", "auth", "list"): "No tokens stored"}))
    created = create_integration(name="Google", type="cli_auth", credential_source="gog:OAuth2")

    body = client.post(f"/api/integrations/{created['id']}/test").json()

    assert body["status"] == "broken"
    assert "No tokens stored" in body["validation_message"]


def test_built_in_is_connected_without_network(client, create_integration):
    created = create_integration(name="Browser", type="mcp_plugin", credential_source="built-in")

    body = client.post(f"/api/integrations/{created['id']}/test").json()

    assert body["status"] == "connected"
    assert body["validation_message"] == "Built-in integration (managed by gateway)"


def test_rate_limited_key_is_connected(app, client, create_integration, make_tester):
    app.state.integration_tester = make_tester(
        env={"ANTHROPIC_API_KEY": "sk-ant-test"},
        transport=status_transport(429),
    )
    created = create_integration(name="Anthropic", provider="anthropic", credential_source=".env:ANTHROPIC_API_KEY")

    body = client.post(f"/api/integrations/{created['id']}/test").json()

    assert body["status"] == "connected"
    assert _history_statuses(client, created["id"]) == ["pass"]


def test_repeated_tests_append_history(client, create_integration):
    created = create_integration(name="Groq", provider="groq", credential_source="GROQ_KEY_NOT_SET_MC")

    first = client.post(f"/api/integrations/{created['id']}/test").json()
    second = client.post(f"/api/integrations/{created['id']}/test").json()

    assert len(_history(client, created["id"])) == 2
    assert second["last_validated"] >= first["last_validated"]
    fetched = client.get(f"/api/integrations/{created['id']}").json()
    assert fetched["last_validated"] == second["last_validated"]


def test_test_broadcasts_check_then_integration(app, client, create_integration):
    created = create_integration(name="Browser", type="mcp_plugin", credential_source="built-in")
    before = len(_events(app))

    client.post(f"/api/integrations/{created['id']}/test")

    events = app.state.eventbus.backlog(DEFAULT_CHANNEL)[before:]
    assert [e.type for e in events] == [HEALTH_CHECK_COMPLETED, INTEGRATION_UPDATED]
    assert events[0].payload["target_id"] == created["id"]
    assert events[1].payload["status"] == "connected"


def test_tester_crash_returns_500_and_writes_nothing(app, client, create_integration):
    created = create_integration(name="OpenAI", provider="openai", credential_source="OPENAI_API_KEY")
    app.state.integration_tester = BrokenTester()

    res = client.post(f"/api/integrations/{created['id']}/test")

    assert res.status_code == 500
    body = res.json()
    assert body["detail"] == "Test failed"
    assert body["message"] == "Internal server error during connection test"
    assert _history(client, created["id"]) == []
    assert client.get(f"/api/integrations/{created['id']}").json()["status"] == "unknown"


def test_failing_event_bus_does_not_fail_request(app, client, create_integration):
    class DeadBus:
        async def publish(self, channel, event):
            raise ConnectionError("bus down")

    created = create_integration(name="Browser", type="mcp_plugin", credential_source="built-in")
    app.state.notifier.bus = DeadBus()

    res = client.post(f"/api/integrations/{created['id']}/test")

    assert res.status_code == 200
    assert len(_history(client, created["id"])) == 1


def test_create_and_get_integration(client, create_integration):
    created = create_integration(
        name="Slack",
        provider="slack",
        credential_source="1password:Openclaw/Slack",
        metadata='{"team": "ops"}',
    )

    assert created["status"] == "unknown"
    assert created["metadata"] == '{"team": "ops"}'
    assert created["last_validated"] is None

    fetched = client.get(f"/api/integrations/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == created


def test_create_rejects_unknown_type(client):
    res = client.post("/api/integrations", json={"name": "Bad", "type": "carrier_pigeon"})

    assert res.status_code == 400
    assert res.json()["detail"] == "Validation failed"


def test_list_filters_and_orders_by_name(client, create_integration):
    create_integration(name="Zeta", type="webhook")
    create_integration(name="Alpha", type="api_key")
    create_integration(name="Mid", type="webhook", status="connected")

    names = [row["name"] for row in client.get("/api/integrations").json()]
    assert names == ["Alpha", "Mid", "Zeta"]

    webhooks = client.get("/api/integrations", params={"type": "webhook"}).json()
    assert [row["name"] for row in webhooks] == ["Mid", "Zeta"]

    connected = client.get("/api/integrations", params={"status": "connected"}).json()
    assert [row["name"] for row in connected] == ["Mid"]


def test_update_integration(client, create_integration):
    created = create_integration(name="Notion", provider="notion")

    res = client.patch(
        f"/api/integrations/{created['id']}",
        json={"credential_source": "1password:Openclaw/Notion", "status": "expired"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["credential_source"] == "1password:Openclaw/Notion"
    assert body["status"] == "expired"
    assert body["name"] == "Notion"


def test_update_requires_fields(client, create_integration):
    created = create_integration(name="Notion")

    res = client.patch(f"/api/integrations/{created['id']}", json={})

    assert res.status_code == 400
    assert res.json()["detail"] == "No updates provided"


def test_update_and_delete_unknown_integration(client):
    assert client.patch("/api/integrations/missing", json={"name": "x"}).status_code == 404
    assert client.delete("/api/integrations/missing").status_code == 404


def test_delete_integration(client, create_integration):
    created = create_integration(name="Temp")

    res = client.delete(f"/api/integrations/{created['id']}")

    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert client.get(f"/api/integrations/{created['id']}").status_code == 404


def test_responses_carry_request_id(client):
    res = client.get("/api/integrations", headers={"X-Request-ID": "req-123"})

    assert res.headers["X-Request-ID"] == "req-123"


def test_secret_manager_crash_is_recorded_as_broken(app, client, create_integration):
    class CrashingSecrets:
        async def whoami(self):
            raise RuntimeError("op session store corrupted")

    app.state.integration_tester.secrets = CrashingSecrets()
    created = create_integration(name="1Password", type="credential_provider", provider="1password")

    res = client.post(f"/api/integrations/{created['id']}/test")

    assert res.status_code == 200
    assert res.json()["status"] == "broken"
    assert _history_statuses(client, created["id"]) == ["fail"]


def test_storage_failure_during_lookup_uses_test_failed_envelope(client, create_integration, monkeypatch):
    created = create_integration(name="OpenAI", provider="openai", credential_source="OPENAI_API_KEY")

    def storage_down(self, integration_id, not_found="Not found"):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(IntegrationService, "get_integration", storage_down)

    res = client.post(f"/api/integrations/{created['id']}/test")

    assert res.status_code == 500
    assert res.json()["detail"] == "Test failed"
    assert res.json()["message"] == "Internal server error during connection test"
