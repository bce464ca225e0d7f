"""Node Permissions — verifies the capability algebra and persisted record form.

Tests:
    - Union is commutative, associative, idempotent; it never removes a capability
    - Intersection never adds one; complement stays within the defined flags
    - Records round-trip, including group id, rank, and rank name
    - Packed lists sort by permissions_id, then rank_name, then rank
"""

from uuid import uuid4

from domain_settings.core.domain_types import (
    ALL_PERMISSIONS,
    Permission,
    PermissionKey,
    complement,
)
from domain_settings.core.node_permissions import PermissionEntry, permission_record_sort_key

CONNECT = Permission.CAN_CONNECT_TO_DOMAIN
LOCKS = Permission.CAN_ADJUST_LOCKS
REZ = Permission.CAN_REZ_PERMANENT_ENTITIES


def test_entry_id_is_lowercased():
    entry = PermissionEntry("Alice")
    assert entry.id == "alice"
    assert entry.key == PermissionKey("alice", 0)


def test_union_is_commutative_associative_and_idempotent():
    a = PermissionEntry("x", permissions=CONNECT)
    b = PermissionEntry("x", permissions=LOCKS)
    c = PermissionEntry("x", permissions=REZ)

    assert (a | b).permissions == (b | a).permissions
    assert ((a | b) | c).permissions == (a | (b | c)).permissions
    assert (a | a).permissions == a.permissions


def test_union_never_removes_and_intersection_never_adds():
    a = PermissionEntry("x", permissions=CONNECT | LOCKS)
    b = PermissionEntry("x", permissions=LOCKS | REZ)

    union = (a | b).permissions
    intersection = (a & b).permissions
    assert union & a.permissions == a.permissions
    assert union & b.permissions == b.permissions
    assert intersection == LOCKS


def test_algebra_returns_new_entries():
    a = PermissionEntry("x", permissions=CONNECT)
    b = PermissionEntry("x", permissions=LOCKS)

    merged = a | b
    assert merged is not a
    assert a.permissions == CONNECT


def test_complement_is_bounded_to_defined_flags():
    entry = PermissionEntry("x", permissions=CONNECT)
    assert (~entry).permissions == ALL_PERMISSIONS & ~CONNECT
    assert complement(ALL_PERMISSIONS) == Permission.NONE
    assert complement(Permission.NONE) == ALL_PERMISSIONS


def test_grant_revoke_and_set_all():
    entry = PermissionEntry("x")
    entry.grant(CONNECT | REZ)
    entry.revoke(REZ)
    assert entry.permissions == CONNECT

    entry.set_all(True)
    assert entry.permissions == ALL_PERMISSIONS
    entry.set_all(False)
    assert entry.permissions == Permission.NONE


def test_from_record_parses_group_entry():
    group_id = uuid4()
    entry = PermissionEntry.from_record({
        "permissions_id": "Pilots",
        "group_id": str(group_id),
        "rank": 1,
        "rank_name": "captain",
        "id_can_connect": True,
        "id_can_rez": True,
    })

    assert entry.id == "pilots"
    assert entry.rank == 1
    assert entry.group_id == group_id
    assert entry.is_group
    assert entry.permissions == CONNECT | REZ


def test_nil_group_id_is_not_a_group():
    entry = PermissionEntry.from_record({
        "permissions_id": "pilots",
        "group_id": "00000000-0000-0000-0000-000000000000",
    })
    assert not entry.is_group
    assert entry.group_key is None


def test_group_record_round_trips_with_rank_name():
    entry = PermissionEntry("pilots", rank=1, group_id=uuid4(), permissions=CONNECT)

    record = entry.to_record(["captain", "crew"])

    assert record["rank_name"] == "crew"
    assert record["group_id"] == str(entry.group_id)
    assert PermissionEntry.from_record(record) == entry


def test_to_record_omits_unknown_rank_name():
    entry = PermissionEntry("pilots", rank=1, group_id=uuid4())
    assert "rank_name" not in entry.to_record(["captain"])
    assert "rank_name" not in entry.to_record(None)


def test_standard_record_has_all_six_capability_fields():
    record = PermissionEntry("anonymous", permissions=CONNECT).to_record()

    assert record == {
        "permissions_id": "anonymous",
        "id_can_connect": True,
        "id_can_adjust_locks": False,
        "id_can_rez": False,
        "id_can_rez_tmp": False,
        "id_can_write_to_asset_server": False,
        "id_can_connect_past_max_capacity": False,
    }


def test_record_sort_order():
    records = [
        {"permissions_id": "b"},
        "junk",
        {"permissions_id": "a", "rank_name": "z", "rank": 0},
        {"permissions_id": "a", "rank_name": "m", "rank": 1},
    ]

    ordered = sorted(records, key=permission_record_sort_key)

    assert ordered == [
        {"permissions_id": "a", "rank_name": "m", "rank": 1},
        {"permissions_id": "a", "rank_name": "z", "rank": 0},
        {"permissions_id": "b"},
        "junk",
    ]
