"""Validate the operating-hours descriptors, defaulting to always open.

Version: 1.5
"""
import logging
from datetime import datetime

logger = logging.getLogger(__name__)

version: float = 1.5
description: str = "operating hours descriptors"

WEEKDAY_HOURS_KEY_PATH = "descriptors.weekday_hours"
WEEKEND_HOURS_KEY_PATH = "descriptors.weekend_hours"
UTC_OFFSET_KEY_PATH = "descriptors.utc_offset"

DEFAULT_OPEN = "00:00"
DEFAULT_CLOSE = "23:59"


def always_open() -> list[dict]:
    return [{"open": DEFAULT_OPEN, "close": DEFAULT_CLOSE}]


def local_utc_offset_hours() -> float:
    offset = datetime.now().astimezone().utcoffset()
    return offset.total_seconds() / 3600 if offset else 0.0


def _valid_hours(value) -> bool:
    return isinstance(value, list) and all(
        isinstance(span, dict) and "open" in span and "close" in span for span in value
    )


def validate_descriptors(store, utc_offset=local_utc_offset_hours) -> bool:
    """Fill in missing or malformed operating hours. Returns True if anything changed."""
    changed = False
    for key_path in (WEEKDAY_HOURS_KEY_PATH, WEEKEND_HOURS_KEY_PATH):
        if not _valid_hours(store.get_user(key_path)):
            store.set(key_path, always_open())
            changed = True

    offset = store.get_user(UTC_OFFSET_KEY_PATH)
    if isinstance(offset, bool) or not isinstance(offset, (int, float)):
        store.set(UTC_OFFSET_KEY_PATH, utc_offset())
        changed = True

    if changed:
        logger.info("Filled in default operating hours descriptors")
    return changed


def upgrade(ctx) -> bool:
    return validate_descriptors(ctx.store)
