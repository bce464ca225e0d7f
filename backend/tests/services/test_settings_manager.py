"""Settings Manager — verifies startup, reads, writes, restart scheduling, and credentials.

Tests:
    - setup() on a fresh install migrates to the schema version and synthesizes permissions
    - Non-security writes persist and schedule one restart; security writes unpack instead
    - A submitted password is persisted as its SHA-256 digest and survives a restart
"""

import asyncio
import json

import pytest

from domain_settings.core.credentials import hash_password
from domain_settings.core.domain_types import REZ_PERMISSIONS, Permission
from domain_settings.infrastructure.config_store import ConfigStore
from domain_settings.infrastructure.version_store import VersionStore
from domain_settings.services.settings_manager import SettingsManager


@pytest.fixture
def restarts():
    return []


@pytest.fixture
def make_manager(tmp_path, schema, restarts):
    def make():
        return SettingsManager(
            schema=schema,
            store=ConfigStore(tmp_path / "config.json"),
            version_store=VersionStore(tmp_path / "settings-version.json"),
            restart_callback=lambda: restarts.append("restart"),
            restart_delay_seconds=0.01,
        )
    return make


@pytest.fixture
def manager(make_manager):
    settings_manager = make_manager()
    settings_manager.setup()
    return settings_manager


def test_fresh_setup_migrates_to_schema_version(manager, tmp_path):
    assert manager.ready is True
    assert manager.version_store.load() == 1.5
    assert manager.registry.effective_standard("localhost") == Permission(63)
    assert manager.registry.effective_standard("anonymous") == (
        Permission.CAN_CONNECT_TO_DOMAIN | REZ_PERMISSIONS
    )
    assert manager.store.get("descriptors.weekday_hours") == [{"open": "00:00", "close": "23:59"}]
    assert (tmp_path / "config.json").exists()


def test_value_or_default(manager):
    assert manager.value_or_default("audio_env.attenuation_per_doubling_in_distance") == 0.5
    manager.store.set("audio_env.attenuation_per_doubling_in_distance", 0.1)
    assert manager.value_or_default("audio_env.attenuation_per_doubling_in_distance") == 0.1


def test_reads(manager):
    assert manager.settings_for_type("6")["paths"] == {"/": {"viewpoint": "/0,0,0"}}
    assert set(manager.full_settings()) == {"descriptions", "values", "locked"}


async def test_non_security_update_persists_and_restarts_once(manager, restarts, tmp_path):
    outcome = manager.apply_update(
        {"audio_env": {"attenuation_per_doubling_in_distance": "0.25"}},
    )
    manager.apply_update({"audio_env": {"noise_muting_threshold": 0.01}})

    assert outcome.restart_required is True
    persisted = json.loads((tmp_path / "config.json").read_text())
    assert persisted["audio_env"] == {
        "attenuation_per_doubling_in_distance": 0.25,
        "noise_muting_threshold": 0.01,
    }

    assert restarts == []
    await asyncio.sleep(0.05)
    assert restarts == ["restart"]


async def test_security_update_unpacks_without_restart(manager, restarts):
    outcome = manager.apply_update({"security": {"permissions": [
        {"permissions_id": "Zed", "id_can_adjust_locks": True},
    ]}})

    assert outcome.security_updated is True
    assert outcome.restart_required is False
    assert manager.registry.effective_for_name("zed") == Permission.CAN_ADJUST_LOCKS

    await asyncio.sleep(0.05)
    assert restarts == []


def test_empty_string_reverts_to_default(manager):
    manager.apply_update({"entity_server_settings": {"persistFilePath": "custom.gz"}})
    assert manager.value_or_default("entity_server_settings.persistFilePath") == "custom.gz"

    manager.apply_update({"entity_server_settings": {"persistFilePath": ""}})
    assert manager.value_or_default("entity_server_settings.persistFilePath") == "models.json.gz"


def test_open_without_configured_username(manager):
    assert manager.check_credentials(None, None) is True


def test_submitted_password_is_stored_as_digest(manager, make_manager, restarts):
    outcome = manager.apply_update({"security": {"http_username": "admin", "http_password": "secret"}})

    assert outcome.restart_required is False
    assert manager.store.get_user("security.http_password") == hash_password("secret")
    assert manager.check_credentials("admin", "secret") is True

    restarted = make_manager()
    restarted.setup()

    assert restarted.store.get_user("security.http_password") == hash_password("secret")
    assert restarted.check_credentials("admin", "secret") is True
    assert restarted.check_credentials("admin", "wrong") is False
    assert restarted.check_credentials(None, None) is False
    assert restarts == []


def test_submitted_digest_is_not_hashed_twice(manager):
    digest = hash_password("secret")
    manager.apply_update({"security": {"http_username": "admin", "http_password": digest}})
    assert manager.store.get_user("security.http_password") == digest


def test_restart_without_callback_is_logged(tmp_path, schema, caplog):
    manager = SettingsManager(
        schema, ConfigStore(tmp_path / "config.json"), VersionStore(tmp_path / "v.json"),
    )
    manager.setup()
    caplog.set_level("INFO")

    outcome = manager.apply_update({"metaverse": {"id": "domain"}})

    assert outcome.restart_required is True
    assert "no restart callback installed" in caplog.text
