"""Domain Types — verifies permission flags, principal keys, and enum values.

Tests:
    - Permission has exactly six capabilities and ALL_PERMISSIONS covers them
    - PermissionKey.of lower-cases names
    - Category enums carry their user-config key paths
"""

from domain_settings.core.domain_types import (
    ALL_PERMISSIONS,
    PERMISSION_RECORD_FIELDS,
    STANDARD_ROLES,
    Permission,
    PermissionCategory,
    PermissionKey,
    SettingType,
)


def test_permission_has_six_capabilities():
    capabilities = [flag for flag in Permission if flag]
    assert len(capabilities) == 6
    assert int(ALL_PERMISSIONS) == 63


def test_every_capability_has_a_record_field():
    assert {flag for _, flag in PERMISSION_RECORD_FIELDS} == {flag for flag in Permission if flag}


def test_permission_key_of_lowercases():
    assert PermissionKey.of("Pilots", 1) == PermissionKey("pilots", 1)
    assert PermissionKey("alice") == ("alice", 0)


def test_standard_roles():
    assert [role.name for role in STANDARD_ROLES] == ["localhost", "logged-in", "anonymous", "friends"]


def test_category_key_paths():
    assert PermissionCategory.STANDARD.key_path == "security.standard_permissions"
    assert PermissionCategory.NAMED.key_path == "security.permissions"
    assert PermissionCategory.GROUP.key_path == "security.group_permissions"
    assert PermissionCategory.GROUP_FORBIDDEN.key_path == "security.group_forbiddens"


def test_setting_type_parse_defaults_to_string():
    assert SettingType.parse("double") == SettingType.DOUBLE
    assert SettingType.parse("int") == SettingType.INTEGER
    assert SettingType.parse("table") == SettingType.STRING
    assert SettingType.parse(None) == SettingType.STRING
