"""Domain Types — permission flags, principal keys, and fixed key paths.

Invariants:
    - PermissionKey ids are always lower-cased (case-insensitive principals)
    - Permission complement never produces bits outside ALL_PERMISSIONS
    - The four standard role names are fixed; localhost always holds every capability
    - All valid categories encoded as Enums — no raw string matching

Design Decisions:
    - IntFlag for capabilities: union/intersection map directly to | and &
    - NamedTuple keys: hashable, ordered, readable in logs
"""

from enum import Enum, IntFlag
from typing import NamedTuple
from uuid import UUID


# ─── Capabilities ────────────────────────────────────────────────

class Permission(IntFlag):
    """Capability bitset granted to a principal."""
    NONE = 0
    CAN_CONNECT_TO_DOMAIN = 1
    CAN_ADJUST_LOCKS = 2
    CAN_REZ_PERMANENT_ENTITIES = 4
    CAN_REZ_TEMPORARY_ENTITIES = 8
    CAN_WRITE_TO_ASSET_SERVER = 16
    CAN_CONNECT_PAST_MAX_CAPACITY = 32


ALL_PERMISSIONS = Permission(
    Permission.CAN_CONNECT_TO_DOMAIN
    | Permission.CAN_ADJUST_LOCKS
    | Permission.CAN_REZ_PERMANENT_ENTITIES
    | Permission.CAN_REZ_TEMPORARY_ENTITIES
    | Permission.CAN_WRITE_TO_ASSET_SERVER
    | Permission.CAN_CONNECT_PAST_MAX_CAPACITY
)

REZ_PERMISSIONS = Permission(
    Permission.CAN_REZ_PERMANENT_ENTITIES | Permission.CAN_REZ_TEMPORARY_ENTITIES
)


def complement(permissions: Permission) -> Permission:
    """Capabilities NOT in `permissions`, bounded to the defined flags."""
    return Permission(int(ALL_PERMISSIONS) & ~int(permissions))


# Persisted record field for each capability, in serialization order.
PERMISSION_RECORD_FIELDS: tuple[tuple[str, Permission], ...] = (
    ("id_can_connect", Permission.CAN_CONNECT_TO_DOMAIN),
    ("id_can_adjust_locks", Permission.CAN_ADJUST_LOCKS),
    ("id_can_rez", Permission.CAN_REZ_PERMANENT_ENTITIES),
    ("id_can_rez_tmp", Permission.CAN_REZ_TEMPORARY_ENTITIES),
    ("id_can_write_to_asset_server", Permission.CAN_WRITE_TO_ASSET_SERVER),
    ("id_can_connect_past_max_capacity", Permission.CAN_CONNECT_PAST_MAX_CAPACITY),
)


# ─── Identity Types ──────────────────────────────────────────────

class PermissionKey(NamedTuple):
    """(principal name, rank). Rank 0 for standard roles and named users."""
    name: str
    rank: int = 0

    @classmethod
    def of(cls, name: str, rank: int = 0) -> "PermissionKey":
        return cls(name.lower(), rank)


class GroupKey(NamedTuple):
    """(group UUID, rank) — secondary index for group entries."""
    group_id: UUID
    rank: int


STANDARD_LOCALHOST = PermissionKey("localhost", 0)
STANDARD_ANONYMOUS = PermissionKey("anonymous", 0)
STANDARD_LOGGED_IN = PermissionKey("logged-in", 0)
STANDARD_FRIENDS = PermissionKey("friends", 0)

STANDARD_ROLES: tuple[PermissionKey, ...] = (
    STANDARD_LOCALHOST,
    STANDARD_LOGGED_IN,
    STANDARD_ANONYMOUS,
    STANDARD_FRIENDS,
)


# ─── Enums ───────────────────────────────────────────────────────

class PermissionCategory(str, Enum):
    """The four permission sets and where each is packed in the user config."""
    STANDARD = "security.standard_permissions"
    NAMED = "security.permissions"
    GROUP = "security.group_permissions"
    GROUP_FORBIDDEN = "security.group_forbiddens"

    @property
    def key_path(self) -> str:
        return self.value


class SettingType(str, Enum):
    """Schema-declared setting types that drive update coercion."""
    DOUBLE = "double"
    INTEGER = "int"
    STRING = "string"

    @classmethod
    def parse(cls, raw: object) -> "SettingType":
        """Unknown or missing type tags are treated as strings."""
        for member in cls:
            if member.value == raw:
                return member
        return cls.STRING


class ValueKind(str, Enum):
    """Tag for a submitted JSON value in a settings update."""
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"


# ─── Fixed Key Paths ─────────────────────────────────────────────

SECURITY_GROUP = "security"
VIEWPOINT_KEY = "viewpoint"
PATHS_KEY = "paths"

RESTRICTED_ACCESS_KEY_PATH = "security.restricted_access"
ALLOWED_USERS_KEY_PATH = "security.allowed_users"
ALLOWED_EDITORS_KEY_PATH = "security.allowed_editors"
EDITORS_ARE_REZZERS_KEY_PATH = "security.editors_are_rezzers"
HTTP_USERNAME_KEY_PATH = "security.http_username"
HTTP_PASSWORD_KEY_PATH = "security.http_password"
