"""Build the permissions grid from the legacy flat security settings.

Version: 1.4

Legacy fields: security.restricted_access, security.allowed_users,
security.allowed_editors, security.editors_are_rezzers.
- anonymous/logged-in/friends may connect unless access is restricted
- every allowed user gets an explicit connect entry, restricted or not
- every editor can adjust locks; a new editor entry connects only when unrestricted
- rez rights go to lock-adjusters when editors are rezzers, else to everyone
The grid is packed, then the in-memory sets are cleared so the engine's final
unpack reads the packed form.
"""
import logging

from domain_settings.core.domain_types import (
    ALLOWED_EDITORS_KEY_PATH,
    ALLOWED_USERS_KEY_PATH,
    EDITORS_ARE_REZZERS_KEY_PATH,
    REZ_PERMISSIONS,
    RESTRICTED_ACCESS_KEY_PATH,
    STANDARD_ANONYMOUS,
    STANDARD_FRIENDS,
    STANDARD_LOCALHOST,
    STANDARD_LOGGED_IN,
    Permission,
    PermissionKey,
)
from domain_settings.core.node_permissions import PermissionEntry

logger = logging.getLogger(__name__)

version: float = 1.4
description: str = "permissions grid from legacy security settings"


def _names(raw) -> list[str]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return []
    return [str(name) for name in raw if str(name)]


def upgrade(ctx) -> bool:
    restricted = bool(ctx.value_or_default(RESTRICTED_ACCESS_KEY_PATH))
    allowed_users = _names(ctx.value_or_default(ALLOWED_USERS_KEY_PATH))
    allowed_editors = _names(ctx.value_or_default(ALLOWED_EDITORS_KEY_PATH))
    only_editors_are_rezzers = bool(ctx.value_or_default(EDITORS_ARE_REZZERS_KEY_PATH))

    registry = ctx.registry
    registry.clear()

    localhost = PermissionEntry(STANDARD_LOCALHOST.name)
    localhost.set_all(True)
    registry.standard[STANDARD_LOCALHOST] = localhost
    for role in (STANDARD_ANONYMOUS, STANDARD_LOGGED_IN, STANDARD_FRIENDS):
        entry = PermissionEntry(role.name)
        if not restricted:
            entry.grant(Permission.CAN_CONNECT_TO_DOMAIN)
        registry.standard[role] = entry

    for user in allowed_users:
        registry.named[PermissionKey.of(user)] = PermissionEntry(
            user, permissions=Permission.CAN_CONNECT_TO_DOMAIN,
        )

    for editor in allowed_editors:
        key = PermissionKey.of(editor)
        if key not in registry.named:
            entry = PermissionEntry(editor)
            if not restricted:
                entry.grant(Permission.CAN_CONNECT_TO_DOMAIN)
            registry.named[key] = entry
        registry.named[key].grant(Permission.CAN_ADJUST_LOCKS)

    for entries in (registry.standard, registry.named):
        for entry in entries.values():
            if not only_editors_are_rezzers or entry.can(Permission.CAN_ADJUST_LOCKS):
                entry.grant(REZ_PERMISSIONS)
            else:
                entry.revoke(REZ_PERMISSIONS)

    logger.info(
        f"Built permissions grid: restricted={restricted}, {len(allowed_users)} allowed users, "
        f"{len(allowed_editors)} editors",
    )
    registry.pack()
    registry.clear()
    return True
