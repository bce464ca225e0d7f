"""Node Permissions — one principal's capability entry and its persisted record form.

Invariants:
    - is_group is True exactly when group_id is set
    - Entry ids are lower-cased on construction and on read from a record
    - Union (|) never removes a capability; intersection (&) never adds one
    - to_record() writes group_id/rank for group entries, rank_name only when known
"""

from dataclasses import dataclass, replace
from typing import Any
from uuid import UUID

from domain_settings.core.domain_types import (
    ALL_PERMISSIONS,
    GroupKey,
    Permission,
    PermissionKey,
    PERMISSION_RECORD_FIELDS,
    complement,
)


@dataclass
class PermissionEntry:
    """Capabilities for a standard role, a named user, or a (group, rank)."""

    id: str
    rank: int = 0
    group_id: UUID | None = None
    permissions: Permission = Permission.NONE

    def __post_init__(self) -> None:
        self.id = self.id.lower()
        self.permissions = Permission(int(self.permissions) & int(ALL_PERMISSIONS))

    # --- Identity ----------------------------------------------------------------

    @property
    def is_group(self) -> bool:
        return self.group_id is not None

    @property
    def key(self) -> PermissionKey:
        return PermissionKey(self.id, self.rank)

    @property
    def group_key(self) -> GroupKey | None:
        if self.group_id is None:
            return None
        return GroupKey(self.group_id, self.rank)

    # --- Capability checks -------------------------------------------------------

    def can(self, permission: Permission) -> bool:
        return (self.permissions & permission) == permission

    def grant(self, permission: Permission) -> None:
        self.permissions |= permission

    def revoke(self, permission: Permission) -> None:
        self.permissions &= complement(permission)

    def set_all(self, value: bool) -> None:
        self.permissions = ALL_PERMISSIONS if value else Permission.NONE

    # --- Algebra -----------------------------------------------------------------

    def __or__(self, other: "PermissionEntry") -> "PermissionEntry":
        return replace(self, permissions=self.permissions | other.permissions)

    def __and__(self, other: "PermissionEntry") -> "PermissionEntry":
        return replace(self, permissions=self.permissions & other.permissions)

    def __invert__(self) -> "PermissionEntry":
        return replace(self, permissions=complement(self.permissions))

    # --- Record conversion -------------------------------------------------------

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "PermissionEntry":
        """Build an entry from one element of a packed permissions list."""
        group_id = _parse_uuid(record.get("group_id"))
        permissions = Permission.NONE
        for field_name, flag in PERMISSION_RECORD_FIELDS:
            if _as_bool(record.get(field_name)):
                permissions |= flag
        return cls(
            id=str(record.get("permissions_id", "")),
            rank=_as_int(record.get("rank")),
            group_id=group_id,
            permissions=permissions,
        )

    def to_record(self, rank_names: list[str] | None = None) -> dict[str, Any]:
        """Packed form. rank_names is the owning group's ordered rank list."""
        record: dict[str, Any] = {"permissions_id": self.id}
        if self.is_group:
            record["group_id"] = str(self.group_id)
            record["rank"] = self.rank
            if rank_names is not None and 0 <= self.rank < len(rank_names):
                record["rank_name"] = rank_names[self.rank]
        elif self.rank:
            # unresolved group entry: keep its rank until the group id is known
            record["rank"] = self.rank
        for field_name, flag in PERMISSION_RECORD_FIELDS:
            record[field_name] = self.can(flag)
        return record

    def describe(self) -> str:
        """Compact human-readable form for debug logs."""
        names = [flag.name.lower() for flag in Permission if flag and self.can(flag)]
        group = f" group={self.group_id}" if self.is_group else ""
        return f"[{self.id}/{self.rank}{group}: {' '.join(names) or '-'}]"


def permission_record_sort_key(record: Any) -> tuple:
    """Stable order for packed lists: permissions_id, then rank_name, then rank.

    Non-dict elements sort by their string form after all records.
    """
    if not isinstance(record, dict) or "permissions_id" not in record:
        return (1, str(record), "", 0)
    return (
        0,
        str(record["permissions_id"]),
        str(record.get("rank_name", "")),
        _as_int(record.get("rank")),
    )


def _parse_uuid(raw: Any) -> UUID | None:
    if isinstance(raw, UUID):
        return raw
    if not raw:
        return None
    try:
        parsed = UUID(str(raw).strip("{}"))
    except ValueError:
        return None
    return None if parsed.int == 0 else parsed


def _as_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "1", "yes")
    return bool(raw)


def _as_int(raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0
