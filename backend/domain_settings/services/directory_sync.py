"""Directory Sync — resolves group names to ids and group ids to rank names.

Invariants:
    - Requests never block settings reads or writes: each is an asyncio task
    - Completion handlers run on the owning event loop, so registry mutation is serialized
    - Failures are logged and leave the group unresolved until the next sweep
    - Without an authenticated client no request is issued
    - Responses are reconciled idempotently (stale/duplicate replies are harmless)
"""

import asyncio
import logging
from typing import Coroutine, Protocol
from uuid import UUID

from domain_settings.core.errors import DirectoryServiceError
from domain_settings.infrastructure.directory_client import GroupIdentity, RankDescriptor
from domain_settings.services.permissions_registry import PermissionsRegistry

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER_SECONDS = 600


class GroupDirectory(Protocol):
    """Contract for the group directory collaborator — implemented by GroupDirectoryClient."""
    @property
    def has_auth(self) -> bool: ...
    async def get_group_id(self, group_name: str) -> list[GroupIdentity]: ...
    async def get_group_ranks(self, group_id: UUID) -> dict[UUID, list[RankDescriptor]]: ...


class DirectorySync:
    """Keeps the registry's group caches in step with the external directory."""

    def __init__(
        self,
        registry: PermissionsRegistry,
        directory: GroupDirectory | None,
        stale_after_seconds: float = DEFAULT_STALE_AFTER_SECONDS,
    ):
        self.registry = registry
        self.directory = directory
        self.stale_after_seconds = stale_after_seconds
        self._tasks: set[asyncio.Task] = set()
        registry.subscribe(self.refresh_group_information)

    @property
    def enabled(self) -> bool:
        return self.directory is not None and self.directory.has_auth

    # --- Sweep -------------------------------------------------------------------

    def refresh_group_information(self) -> None:
        """Request ids for unresolved group names and ranks for stale groups."""
        if not self.enabled:
            return
        for group_name in self.registry.unresolved_group_names():
            self.request_group_id(group_name)
        for group_id in self.registry.stale_group_ids(self.stale_after_seconds):
            self.request_group_ranks(group_id)

    async def run_periodic(self, interval_seconds: float) -> None:
        """Sweep forever; cancelled on shutdown."""
        while True:
            await asyncio.sleep(interval_seconds)
            self.refresh_group_information()

    async def drain(self) -> None:
        """Wait for in-flight requests, including any they spawn."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- Group ids ---------------------------------------------------------------

    def request_group_id(self, group_name: str) -> None:
        self._spawn(self._fetch_group_id(group_name), f"group id for {group_name}")

    async def _fetch_group_id(self, group_name: str) -> None:
        try:
            identities = await self.directory.get_group_id(group_name)
        except DirectoryServiceError as e:
            logger.warning(
                f"Group id lookup failed: {e.message}",
                extra={"group_name": group_name, "error_code": e.code},
            )
            return
        self.apply_group_ids(identities)

    def apply_group_ids(self, identities: list[GroupIdentity]) -> None:
        for identity in identities:
            changed = self.registry.set_group_id(identity.name, identity.group_id)
            if changed:
                logger.info(
                    f"Resolved group {identity.name}",
                    extra={"group_name": identity.name, "group_id": identity.group_id},
                )
                self.registry.pack()
                self.request_group_ranks(identity.group_id)

    # --- Group ranks -------------------------------------------------------------

    def request_group_ranks(self, group_id: UUID) -> None:
        if self._spawn(self._fetch_group_ranks(group_id), f"ranks for {group_id}"):
            self.registry.mark_ranks_fetched(group_id)

    async def _fetch_group_ranks(self, group_id: UUID) -> None:
        try:
            ranks_by_group = await self.directory.get_group_ranks(group_id)
        except DirectoryServiceError as e:
            logger.warning(
                f"Group ranks lookup failed: {e.message}",
                extra={"group_id": group_id, "error_code": e.code},
            )
            return
        self.apply_group_ranks(ranks_by_group)

    def apply_group_ranks(self, ranks_by_group: dict[UUID, list[RankDescriptor]]) -> bool:
        changed = False
        for group_id, ranks in ranks_by_group.items():
            changed |= self.registry.update_group_ranks(
                group_id, [(rank.name, rank.order) for rank in ranks],
            )
        changed |= self.registry.ensure_rank_coverage()
        if changed:
            self.registry.pack()
        return changed

    # --- Tasks -------------------------------------------------------------------

    def _spawn(self, coro: Coroutine, label: str) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug(f"No running event loop - deferring directory request ({label})")
            return False
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True
