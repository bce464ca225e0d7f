"""Migration Steps — verifies each versioned step and that it is safe to run twice."""

import copy

import pytest

from domain_settings.core.credentials import hash_password
from domain_settings.migrations.engine import MigrationContext
from domain_settings.migrations.versions import (
    v1_0_restricted_access,
    v1_1_persist_file_path,
    v1_2_hash_http_password,
    v1_4_permissions_grid,
    v1_5_operating_hours,
)


@pytest.fixture
def ctx(store, registry, schema):
    return MigrationContext(store, registry, schema)


def test_allow_list_forces_restricted_access(ctx, store):
    store.load_from({}, {"security": {"allowed_users": ["alice"]}})

    assert v1_0_restricted_access.upgrade(ctx) is True
    assert store.get_user("security.restricted_access") is True
    assert v1_0_restricted_access.upgrade(ctx) is False


def test_empty_allow_list_leaves_access_open(ctx, store):
    store.load_from({}, {"security": {"allowed_users": []}})
    assert v1_0_restricted_access.upgrade(ctx) is False
    assert store.get_user("security.restricted_access") is None


def test_persist_filename_is_renamed(ctx, store):
    store.load_from({}, {"entity_server_settings": {"persistFilename": "old.json.gz"}})

    assert v1_1_persist_file_path.upgrade(ctx) is True
    assert store.get_user("entity_server_settings") == {"persistFilePath": "old.json.gz"}
    assert v1_1_persist_file_path.upgrade(ctx) is False


def test_plaintext_password_is_hashed_once(ctx, store):
    store.load_from({}, {"security": {"http_password": "hunter2"}})

    assert v1_2_hash_http_password.upgrade(ctx) is True
    assert store.get_user("security.http_password") == hash_password("hunter2")
    assert v1_2_hash_http_password.upgrade(ctx) is False
    assert store.get_user("security.http_password") == hash_password("hunter2")


def test_missing_password_is_left_alone(ctx, store):
    assert v1_2_hash_http_password.upgrade(ctx) is False
    assert store.get_user("security.http_password") is None


def test_permissions_grid_is_stable_across_runs(ctx, store, registry):
    store.load_from({}, {"security": {
        "restricted_access": False,
        "allowed_editors": ["Dana"],
    }})

    assert v1_4_permissions_grid.upgrade(ctx) is True
    first = copy.deepcopy(store.get_user("security"))
    assert registry.standard == {}

    v1_4_permissions_grid.upgrade(ctx)
    assert store.get_user("security") == first


def test_permissions_grid_accepts_single_name(ctx, store):
    store.load_from({}, {"security": {"allowed_users": "Erin"}})

    v1_4_permissions_grid.upgrade(ctx)

    ids = [r["permissions_id"] for r in store.get_user("security.permissions")]
    assert ids == ["erin"]


def test_operating_hours_are_defaulted(store):
    store.load_from({}, {"descriptors": {"weekday_hours": "always", "utc_offset": "PST"}})

    assert v1_5_operating_hours.validate_descriptors(store, utc_offset=lambda: -7.0) is True
    assert store.get_user("descriptors.weekday_hours") == [{"open": "00:00", "close": "23:59"}]
    assert store.get_user("descriptors.weekend_hours") == [{"open": "00:00", "close": "23:59"}]
    assert store.get_user("descriptors.utc_offset") == -7.0


def test_valid_operating_hours_are_kept(ctx, store):
    hours = [{"open": "09:00", "close": "17:00"}]
    store.load_from({}, {"descriptors": {
        "weekday_hours": hours, "weekend_hours": [], "utc_offset": 2,
    }})

    assert v1_5_operating_hours.upgrade(ctx) is False
    assert store.get_user("descriptors.weekday_hours") == hours
