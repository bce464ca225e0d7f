"""Credentials — HTTP Basic password digests for the authenticated settings surface.

Invariants:
    - Stored passwords are SHA-256 hex digests; a plaintext value (a hand-edited
      config not yet migrated) is digested before comparison
    - Comparisons are constant-time
    - No configured username means the surface is open
"""

import hashlib
import hmac
import re

_SHA256_HEX = re.compile(r"^[0-9a-f]{64}$")


def hash_password(plaintext: str) -> str:
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def is_password_digest(value: str) -> bool:
    return bool(_SHA256_HEX.match(value))


def credentials_match(
    configured_username: str | None,
    configured_password: str | None,
    username: str | None,
    password: str | None,
) -> bool:
    if not configured_username:
        return True
    if username is None or password is None:
        return False
    stored = configured_password or ""
    if stored and not is_password_digest(stored):
        stored = hash_password(stored)
    return (
        hmac.compare_digest(username, configured_username)
        and hmac.compare_digest(hash_password(password), stored)
    )
