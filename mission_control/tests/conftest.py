"""Shared fixtures: temporary database, fake CLIs and a blackholed network."""

from typing import Any, Dict, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from mission_control.config import Settings, get_settings
from mission_control.db import Base, dispose_engine, get_engine
from mission_control.integrations.tester import IntegrationTester
from mission_control.integrations.validator import ProviderValidator
from mission_control.main import create_app
from mission_control.tests.fakes import FakeConfigReader, FakeRunner, blackhole_transport

CONFIG_PATHS = ["/cfg/primary/openclaw.json", "/cfg/fallback/openclaw.json"]


@pytest.fixture
def make_tester():
    def _make(
        runner: Optional[FakeRunner] = None,
        env: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        configs: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> IntegrationTester:
        settings = Settings(
            secret_manager_cli="op",
            google_cli="gog",
            openclaw_config_paths=",".join(CONFIG_PATHS),
        )
        return IntegrationTester.from_settings(
            settings,
            runner=runner if runner is not None else FakeRunner(),
            env=env if env is not None else {},
            config_reader=FakeConfigReader(configs),
            validator=ProviderValidator(transport=transport or blackhole_transport()),
        )

    return _make


@pytest.fixture
def db_engine(tmp_path, monkeypatch):
    db_path = tmp_path / "mission_control.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path.as_posix()}")
    get_settings.cache_clear()
    dispose_engine()
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    yield engine
    dispose_engine()
    get_settings.cache_clear()


@pytest.fixture
def app(db_engine, make_tester):
    application = create_app()
    application.state.integration_tester = make_tester()
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def create_integration(client):
    def _create(**fields: Any) -> Dict[str, Any]:
        body = {"name": "Integration", "type": "api_key", **fields}
        res = client.post("/api/integrations", json=body)
        assert res.status_code == 201, res.text
        return res.json()

    return _create
