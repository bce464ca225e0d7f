"""Replace a plaintext HTTP Basic password with its SHA-256 hex digest.

Version: 1.2

Values that already are a SHA-256 hex digest are left untouched, so running
the step again after an interrupted startup does not hash twice.
"""
import logging

from domain_settings.core.credentials import hash_password, is_password_digest
from domain_settings.core.domain_types import HTTP_PASSWORD_KEY_PATH

logger = logging.getLogger(__name__)

version: float = 1.2
description: str = "hash http_password"


def upgrade(ctx) -> bool:
    password = ctx.store.get_user(HTTP_PASSWORD_KEY_PATH)
    if not isinstance(password, str) or not password or is_password_digest(password):
        return False

    logger.info("Migrating plaintext password to SHA256 hash in domain settings")
    ctx.store.set(HTTP_PASSWORD_KEY_PATH, hash_password(password))
    return True
