"""API test fixtures — a set-up SettingsManager behind the FastAPI app.

Invariants:
    - get_settings_manager is overridden; the lifespan never runs under ASGITransport
    - app.state.settings_manager is set for the readiness probe and removed afterwards
"""

import pytest
from httpx import ASGITransport, AsyncClient

from domain_settings.api.routes.settings import get_settings_manager
from domain_settings.infrastructure.config_store import ConfigStore
from domain_settings.infrastructure.version_store import VersionStore
from domain_settings.main import app
from domain_settings.services.settings_manager import SettingsManager


@pytest.fixture
def restarts():
    return []


@pytest.fixture
def manager(tmp_path, schema, restarts):
    settings_manager = SettingsManager(
        schema=schema,
        store=ConfigStore(tmp_path / "config.json"),
        version_store=VersionStore(tmp_path / "settings-version.json"),
        restart_callback=lambda: restarts.append("restart"),
        restart_delay_seconds=0.01,
    )
    settings_manager.setup()
    return settings_manager


@pytest.fixture
async def client(manager):
    app.dependency_overrides[get_settings_manager] = lambda: manager
    app.state.settings_manager = manager
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
    del app.state.settings_manager
