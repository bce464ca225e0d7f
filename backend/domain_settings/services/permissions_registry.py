"""Permissions Registry — standard, named, group, and group-forbidden permission sets.

Invariants:
    - After unpack() the four standard roles exist and localhost holds every capability
    - Duplicate keys within one packed list merge by capability union (never overwrite)
    - Every rank of every resolved group referenced by the group sets has an entry
    - Lookups for unknown principals return Permission.NONE, never raise
    - pack() always sorts, persists, and re-merges the ConfigStore
    - All mutation happens on the owning event loop (no locking)

Design Decisions:
    - Unpack listeners replace a "permissions changed" signal: DirectorySync subscribes to
      resolve group ids, the host subscribes to push permissions to connected nodes
"""

import logging
import time
from typing import Callable, Iterable
from uuid import UUID

from domain_settings.core.domain_types import (
    STANDARD_LOCALHOST,
    STANDARD_ROLES,
    GroupKey,
    Permission,
    PermissionCategory,
    PermissionKey,
)
from domain_settings.core.node_permissions import PermissionEntry, permission_record_sort_key
from domain_settings.infrastructure.config_store import ConfigStore

logger = logging.getLogger(__name__)

PermissionsMap = dict[PermissionKey, PermissionEntry]
UnpackListener = Callable[[], None]

GROUP_CATEGORIES = (PermissionCategory.GROUP, PermissionCategory.GROUP_FORBIDDEN)


class PermissionsRegistry:
    """In-memory permission sets mirrored to the `security.*` lists of the user config."""

    def __init__(self, store: ConfigStore, clock: Callable[[], float] = time.time):
        self._store = store
        self._clock = clock
        self.standard: PermissionsMap = {}
        self.named: PermissionsMap = {}
        self.groups: PermissionsMap = {}
        self.group_forbiddens: PermissionsMap = {}
        self.groups_by_id: dict[GroupKey, PermissionEntry] = {}
        self.forbiddens_by_id: dict[GroupKey, PermissionEntry] = {}

        # directory caches
        self.group_id_by_name: dict[str, UUID] = {}
        self.group_name_by_id: dict[UUID, str] = {}
        self.group_ranks: dict[UUID, list[str]] = {}
        self.group_ranks_last_fetched: dict[UUID, float] = {}
        self.group_membership: dict[str, dict[UUID, int]] = {}

        self._listeners: list[UnpackListener] = []

    def _map_for(self, category: PermissionCategory) -> PermissionsMap:
        match category:
            case PermissionCategory.STANDARD:
                return self.standard
            case PermissionCategory.NAMED:
                return self.named
            case PermissionCategory.GROUP:
                return self.groups
            case PermissionCategory.GROUP_FORBIDDEN:
                return self.group_forbiddens

    def subscribe(self, listener: UnpackListener) -> None:
        """Call `listener` after every unpack()."""
        self._listeners.append(listener)

    def clear(self) -> None:
        for category in PermissionCategory:
            self._map_for(category).clear()
        self.groups_by_id.clear()
        self.forbiddens_by_id.clear()

    # --- Pack --------------------------------------------------------------------

    def pack_category(self, category: PermissionCategory, persist: bool = True) -> None:
        """Serialize one set into its user-config list, then persist unless told not to."""
        records = []
        for entry in self._map_for(category).values():
            rank_names = self.group_ranks.get(entry.group_id) if entry.is_group else None
            records.append(entry.to_record(rank_names))
        records.sort(key=permission_record_sort_key)
        self._store.set(category.key_path, records)
        if persist:
            self._store.persist()

    def pack(self) -> None:
        """Serialize all four sets, persist, and re-merge."""
        for category in PermissionCategory:
            self.pack_category(category, persist=False)
        self._store.persist()
        self._store.remerge()

    def sort_lists(self) -> None:
        """Re-sort every packed list in the user config in place."""
        for category in PermissionCategory:
            records = self._store.get_user(category.key_path)
            if isinstance(records, list):
                records.sort(key=permission_record_sort_key)

    # --- Unpack ------------------------------------------------------------------

    def unpack(self) -> bool:
        """Rebuild all sets from the user config. Returns True if it had to re-pack."""
        self.clear()
        need_pack = False

        for category in PermissionCategory:
            target = self._map_for(category)
            for entry in self._read_category(category):
                key = entry.key if category in GROUP_CATEGORIES else PermissionKey(entry.id, 0)
                if key in target:
                    logger.info(
                        f"Duplicate name in {category.name.lower()} permissions table: {entry.id}",
                        extra={"key_path": category.key_path},
                    )
                    combined = target[key] | entry
                    if combined.group_id is None:
                        combined.group_id = entry.group_id
                    target[key] = combined
                    need_pack = True
                else:
                    target[key] = entry

                merged = target[key]
                if merged.is_group and category in GROUP_CATEGORIES:
                    self._index_for(category)[merged.group_key] = merged
                    need_pack |= self.set_group_id(merged.id, merged.group_id)

        for role in STANDARD_ROLES:
            if role not in self.standard:
                entry = PermissionEntry(role.name)
                if role == STANDARD_LOCALHOST:
                    entry.set_all(True)
                self.standard[role] = entry
                need_pack = True

        need_pack |= self.ensure_rank_coverage()

        if need_pack:
            self.pack()

        self._log_state()
        for listener in self._listeners:
            listener()
        return need_pack

    def _read_category(self, category: PermissionCategory) -> list[PermissionEntry]:
        records = self._store.get_user(category.key_path)
        if not isinstance(records, list):
            logger.debug(
                f"Failed to extract {category.name.lower()} permissions from settings",
                extra={"key_path": category.key_path},
            )
            self._store.set(category.key_path, [])
            return []

        entries = []
        for record in records:
            if not isinstance(record, dict) or not record.get("permissions_id"):
                logger.warning(
                    f"Discarding malformed permissions record: {record!r}",
                    extra={"key_path": category.key_path},
                )
                continue
            entries.append(PermissionEntry.from_record(record))
        return entries

    def _index_for(self, category: PermissionCategory) -> dict[GroupKey, PermissionEntry]:
        if category == PermissionCategory.GROUP_FORBIDDEN:
            return self.forbiddens_by_id
        return self.groups_by_id

    # --- Groups ------------------------------------------------------------------

    def ensure_rank_coverage(self) -> bool:
        """Give every known rank of every referenced group an entry. Returns True if any was added."""
        changed = False
        for category, group_ids in (
            (PermissionCategory.GROUP, self.group_ids()),
            (PermissionCategory.GROUP_FORBIDDEN, self.forbidden_group_ids()),
        ):
            target = self._map_for(category)
            index = self._index_for(category)
            for group_id in group_ids:
                group_name = self.group_name_by_id.get(group_id)
                if group_name is None:
                    continue
                for rank in range(len(self.group_ranks.get(group_id, []))):
                    key = PermissionKey.of(group_name, rank)
                    entry = target.get(key)
                    if entry is None:
                        entry = PermissionEntry(group_name, rank=rank, group_id=group_id)
                        target[key] = entry
                        changed = True
                    elif entry.group_id is None:
                        entry.group_id = group_id
                        changed = True
                    index[GroupKey(group_id, rank)] = entry
        return changed

    def set_group_id(self, group_name: str, group_id: UUID) -> bool:
        """Bind name <-> id and attach the id to unresolved entries. Returns True if any changed."""
        changed = False
        self.group_id_by_name[group_name.lower()] = group_id
        self.group_name_by_id[group_id] = group_name

        for category in GROUP_CATEGORIES:
            index = self._index_for(category)
            for entry in self._map_for(category).values():
                if entry.id == group_name.lower() and not entry.is_group:
                    entry.group_id = group_id
                    index[GroupKey(group_id, entry.rank)] = entry
                    changed = True
        return changed

    def update_group_ranks(self, group_id: UUID, ranks: Iterable[tuple[str, int]]) -> bool:
        """Merge (name, order) pairs into the group's rank list, back-filling gaps with ""."""
        changed = False
        rank_names = self.group_ranks.setdefault(group_id, [])
        for rank_name, order in ranks:
            if order < 0:
                continue
            if len(rank_names) < order + 1:
                rank_names.extend([""] * (order + 1 - len(rank_names)))
                changed = True
            if rank_names[order] != rank_name:
                rank_names[order] = rank_name
                changed = True
        return changed

    def mark_ranks_fetched(self, group_id: UUID) -> None:
        self.group_ranks_last_fetched[group_id] = self._clock()

    def stale_group_ids(self, max_age_seconds: float) -> list[UUID]:
        """Resolved groups whose rank list is older than max_age_seconds (or never fetched)."""
        now = self._clock()
        return [
            group_id for group_id in self.group_name_by_id
            if now - self.group_ranks_last_fetched.get(group_id, 0.0) > max_age_seconds
        ]

    @staticmethod
    def group_ids_in(permissions: PermissionsMap) -> set[UUID]:
        return {entry.group_id for entry in permissions.values() if entry.group_id is not None}

    def group_ids(self) -> set[UUID]:
        return self.group_ids_in(self.groups)

    def forbidden_group_ids(self) -> set[UUID]:
        return self.group_ids_in(self.group_forbiddens)

    def known_group_names(self) -> set[str]:
        """Names referenced by the group and group-forbidden sets."""
        return {key.name for key in self.groups} | {key.name for key in self.group_forbiddens}

    def unresolved_group_names(self) -> list[str]:
        return sorted(
            name for name in self.known_group_names() if name not in self.group_id_by_name
        )

    # --- Group membership --------------------------------------------------------

    def record_group_membership(self, user_name: str, group_id: UUID, rank: int) -> None:
        """Remember a user's rank in a group; a negative rank removes the membership."""
        memberships = self.group_membership.setdefault(user_name.lower(), {})
        if rank >= 0:
            memberships[group_id] = rank
        else:
            memberships.pop(group_id, None)

    def group_rank_for_member(self, user_name: str, group_id: UUID) -> int:
        """The user's recorded rank in the group, or -1 when not a member."""
        return self.group_membership.get(user_name.lower(), {}).get(group_id, -1)

    # --- Effective permissions ---------------------------------------------------

    def effective_standard(self, key: PermissionKey | str) -> Permission:
        if isinstance(key, str):
            key = PermissionKey.of(key)
        entry = self.standard.get(key)
        return entry.permissions if entry else Permission.NONE

    def effective_for_name(self, name: str) -> Permission:
        entry = self.named.get(PermissionKey.of(name))
        return entry.permissions if entry else Permission.NONE

    def effective_for_group_rank(self, group: str | UUID, rank: int) -> Permission:
        return self._lookup_group(PermissionCategory.GROUP, group, rank)

    def effective_forbidden_for_group_rank(self, group: str | UUID, rank: int) -> Permission:
        return self._lookup_group(PermissionCategory.GROUP_FORBIDDEN, group, rank)

    def _lookup_group(self, category: PermissionCategory, group: str | UUID, rank: int) -> Permission:
        if isinstance(group, UUID):
            entry = self._index_for(category).get(GroupKey(group, rank))
        else:
            entry = self._map_for(category).get(PermissionKey.of(group, rank))
        return entry.permissions if entry else Permission.NONE

    # --- Debug -------------------------------------------------------------------

    def _log_state(self) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        for category in PermissionCategory:
            for key, entry in self._map_for(category).items():
                logger.debug(f"{category.name.lower()} {tuple(key)} {entry.describe()}")
        for group_id, rank_names in self.group_ranks.items():
            logger.debug(
                f"group ranks {self.group_name_by_id.get(group_id)}: {','.join(rank_names)}",
                extra={"group_id": group_id},
            )

