"""Group Directory Client — async httpx client for group identity and rank lookups.

Invariants:
    - Transient errors (5xx, connection, timeout): max `max_retries` retries with backoff
    - Client errors (4xx): immediate failure, no retry
    - Any non-"success" payload or unparsable body is a failure
    - All failures mapped to DirectoryServiceError (core/errors.py)
    - No access token means has_auth is False and callers must not issue requests

Design Decisions:
    - Typed payloads (GroupIdentity, RankDescriptor) instead of raw reply objects
    - ±25% jitter on backoff
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote
from uuid import UUID

import httpx

from domain_settings.core.errors import DirectoryServiceError

logger = logging.getLogger(__name__)

GET_GROUP_ID_PATH = "/api/v1/groups/names/{name}"
GET_GROUP_RANKS_PATH = "/api/v1/groups/{group_id}/ranks"


@dataclass(frozen=True)
class GroupIdentity:
    """A group name bound to its directory UUID."""
    group_id: UUID
    name: str


@dataclass(frozen=True)
class RankDescriptor:
    """One rank of a group; order 0 is the highest rank."""
    name: str
    order: int


class GroupDirectoryClient:
    """Wraps httpx.AsyncClient with auth, retry logic, and payload parsing."""

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        base_delay_ms: int = 500,
        max_delay_ms: int = 10_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )
        self.access_token = access_token
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    @property
    def has_auth(self) -> bool:
        return bool(self.access_token)

    async def aclose(self) -> None:
        await self.client.aclose()

    # --- Requests ----------------------------------------------------------------

    async def get_group_id(self, group_name: str) -> list[GroupIdentity]:
        """Resolve a group name; the directory may return several matches."""
        payload = await self._get_json(GET_GROUP_ID_PATH.format(name=quote(group_name, safe="")))
        groups = _data(payload).get("groups")
        if not isinstance(groups, list):
            raise DirectoryServiceError("missing data.groups list", "malformed_response")

        identities = []
        for group in groups:
            if not isinstance(group, dict):
                continue
            try:
                identities.append(
                    GroupIdentity(group_id=UUID(str(group["id"])), name=str(group["name"])),
                )
            except (KeyError, ValueError):
                logger.warning(f"Skipping malformed group record for {group_name}: {group}")
        return identities

    async def get_group_ranks(self, group_id: UUID) -> dict[UUID, list[RankDescriptor]]:
        """Ordered rank descriptors per group id in the response."""
        payload = await self._get_json(GET_GROUP_RANKS_PATH.format(group_id=group_id))
        groups = _data(payload).get("groups")
        if not isinstance(groups, dict):
            raise DirectoryServiceError("missing data.groups map", "malformed_response")

        ranks_by_group: dict[UUID, list[RankDescriptor]] = {}
        for raw_id, group in groups.items():
            try:
                parsed_id = UUID(str(raw_id))
            except ValueError:
                logger.warning(f"Skipping ranks for malformed group id {raw_id!r}")
                continue
            ranks = group.get("ranks") if isinstance(group, dict) else None
            descriptors = []
            for rank in ranks or []:
                if not isinstance(rank, dict):
                    continue
                try:
                    descriptors.append(
                        RankDescriptor(name=str(rank.get("name", "")), order=int(rank["order"])),
                    )
                except (KeyError, TypeError, ValueError):
                    logger.warning(f"Skipping malformed rank for group {parsed_id}: {rank}")
            ranks_by_group[parsed_id] = descriptors
        return ranks_by_group

    # --- Transport ---------------------------------------------------------------

    async def _get_json(self, path: str) -> dict[str, Any]:
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.get(path)
            except (httpx.TimeoutException, httpx.TransportError) as e:
                await self._handle_transient_error(e, attempt, path)
                continue

            if response.status_code >= 500:
                await self._handle_transient_error(
                    DirectoryServiceError(
                        f"HTTP {response.status_code}", "server_error",
                        status_code=response.status_code,
                    ),
                    attempt, path,
                )
                continue
            if response.status_code >= 400:
                raise DirectoryServiceError(
                    f"HTTP {response.status_code} for {path}", "client_error",
                    status_code=response.status_code,
                )
            return _parse_success(response, path)

        # unreachable: the final attempt raises from _handle_transient_error
        raise DirectoryServiceError(f"no response for {path}", "connection_error")

    async def _handle_transient_error(self, e: Exception, attempt: int, path: str) -> None:
        """Sleep before the next attempt, or raise once retries are exhausted."""
        if attempt >= self.max_retries:
            raise DirectoryServiceError(
                f"Transient failure after {self.max_retries} retries for {path}: {e}",
                "connection_error",
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Directory request {path} failed, retry after {delay}ms: {e}",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


def _parse_success(response: httpx.Response, path: str) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as e:
        raise DirectoryServiceError(f"invalid JSON from {path}: {e}", "malformed_response")
    if not isinstance(payload, dict) or payload.get("status") != "success":
        raise DirectoryServiceError(
            f"{path} returned: {payload!r}", "unsuccessful_response",
            status_code=response.status_code,
        )
    return payload


def _data(payload: dict[str, Any]) -> dict[str, Any]:
    data = payload.get("data")
    return data if isinstance(data, dict) else {}
