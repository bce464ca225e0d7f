"""Migration Engine — verifies version gating and the end-to-end legacy scenarios.

Tests:
    - Fresh 0.0 config with an allow-list migrates to a restricted permissions grid
    - Steps run only when stored < version <= target; unpack runs even with no steps
    - The target version is recorded after the run
"""

import json

import pytest

from domain_settings.core.domain_types import REZ_PERMISSIONS, Permission
from domain_settings.infrastructure.version_store import VersionStore
from domain_settings.core.settings_schema import SettingsSchema
from domain_settings.migrations.engine import MigrationContext, MigrationEngine

CONNECT = Permission.CAN_CONNECT_TO_DOMAIN
LOCKS = Permission.CAN_ADJUST_LOCKS


@pytest.fixture
def version_store(tmp_path):
    return VersionStore(tmp_path / "settings-version.json")


@pytest.fixture
def engine(store, registry, schema, version_store):
    return MigrationEngine(MigrationContext(store, registry, schema), version_store)


def test_allow_list_migrates_to_restricted_grid(engine, store, registry, version_store, user_config_path):
    store.load_from({}, {"security": {"allowed_users": ["Alice", "Bob"], "allowed_editors": ["Bob"]}})

    assert engine.run() == 1.5

    assert store.get("security.restricted_access") is True
    assert registry.effective_standard("anonymous") == REZ_PERMISSIONS
    assert registry.effective_standard("localhost") == Permission(63)
    assert registry.effective_for_name("alice") == CONNECT | REZ_PERMISSIONS
    assert registry.effective_for_name("bob") == CONNECT | LOCKS | REZ_PERMISSIONS
    assert version_store.load() == 1.5

    persisted = json.loads(user_config_path.read_text())
    assert persisted["security"]["restricted_access"] is True
    assert [r["permissions_id"] for r in persisted["security"]["permissions"]] == ["alice", "bob"]


def test_editors_are_rezzers(engine, store, registry):
    store.load_from({}, {"security": {"allowed_editors": ["Carol"], "editors_are_rezzers": True}})

    engine.run()

    assert registry.effective_standard("anonymous") == CONNECT
    assert registry.effective_standard("localhost") == Permission(63)
    assert registry.effective_for_name("carol") == CONNECT | LOCKS | REZ_PERMISSIONS


def test_current_version_runs_no_steps_but_unpacks(engine, store, registry, version_store):
    version_store.save(1.5)

    engine.run()

    assert store.get("descriptors.weekday_hours") is None
    assert registry.effective_standard("localhost") == Permission(63)
    assert registry.effective_standard("anonymous") == Permission.NONE


def test_pending_steps_are_version_gated(engine):
    assert [step.version for step in engine.pending_steps(0.0)] == [1.0, 1.1, 1.2, 1.4, 1.5]
    assert [step.version for step in engine.pending_steps(1.2)] == [1.4, 1.5]
    assert engine.pending_steps(1.5) == []


def test_steps_above_target_do_not_run(store, registry, version_store):
    old_schema = SettingsSchema.from_document({"version": 1.1, "settings": []})
    engine = MigrationEngine(MigrationContext(store, registry, old_schema), version_store)

    assert [step.version for step in engine.pending_steps(0.0)] == [1.0, 1.1]
    assert engine.run() == 1.1
    assert version_store.load() == 1.1


def test_rerun_after_interrupted_startup_is_stable(engine, store, registry, version_store):
    store.load_from({}, {"security": {"allowed_users": ["Alice"], "http_password": "pw"}})
    engine.run()
    first = json.dumps(store.user, sort_keys=True)

    version_store.save(0.0)
    engine.run()

    assert json.dumps(store.user, sort_keys=True) == first
