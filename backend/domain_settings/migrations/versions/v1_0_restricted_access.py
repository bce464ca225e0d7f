"""Force restricted access when a legacy allow-list exists.

Version: 1.0

Before security.restricted_access existed, a non-empty security.allowed_users
list implied that only those users could connect.
"""
import logging

from domain_settings.core.domain_types import ALLOWED_USERS_KEY_PATH, RESTRICTED_ACCESS_KEY_PATH

logger = logging.getLogger(__name__)

version: float = 1.0
description: str = "restricted access from allow-list"


def upgrade(ctx) -> bool:
    allowed_users = ctx.store.get(ALLOWED_USERS_KEY_PATH)
    if not isinstance(allowed_users, list) or not allowed_users:
        return False
    if ctx.store.get_user(RESTRICTED_ACCESS_KEY_PATH) is True:
        return False

    logger.info(
        "Forcing security.restricted_access to true since there was an existing list of allowed users",
    )
    ctx.store.set(RESTRICTED_ACCESS_KEY_PATH, True)
    return True
