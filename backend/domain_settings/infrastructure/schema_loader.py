"""Schema Loader — reads the settings description document from disk.

Invariants:
    - A missing, unreadable, or malformed document raises SchemaLoadError
    - load_schema_or_exit terminates with SCHEMA_LOAD_EXIT_CODE instead of returning
"""

import json
import logging
from importlib import resources
from pathlib import Path

from domain_settings.core.errors import SchemaLoadError
from domain_settings.core.settings_schema import SettingsSchema

logger = logging.getLogger(__name__)

BUNDLED_DESCRIPTION = "describe-settings.json"


def bundled_description_path() -> Path:
    """Path of the description document shipped with the package."""
    return Path(str(resources.files("domain_settings.resources") / BUNDLED_DESCRIPTION))


def load_schema(path: Path) -> SettingsSchema:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaLoadError(str(e), str(path)) from e
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"{e.msg} at offset {e.pos}", str(path)) from e
    return SettingsSchema.from_document(document, str(path))


def load_schema_or_exit(path: Path) -> SettingsSchema:
    """Load the schema; the process cannot run without one."""
    try:
        schema = load_schema(path)
    except SchemaLoadError as e:
        logger.critical(
            f"{e.message} - unable to continue, domain settings will quit",
            extra={"error_code": e.code, "path": e.path},
        )
        raise SystemExit(e.exit_code)
    logger.info(
        f"Loaded settings description from {path}",
        extra={"schema_version": schema.version},
    )
    return schema
