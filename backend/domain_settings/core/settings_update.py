"""Settings Update — applies a submitted partial settings document to the user config.

Invariants:
    - Every submitted value is tagged with a ValueKind and matched exhaustively
    - Empty strings remove the key (reads fall back to the schema default)
    - Unknown groups/settings and uncoercible values are skipped, never fatal
    - Emptied maps are removed; empty groups never persist
    - Arrays replace the stored value literally (elements are not coerced)
    - Any applied change outside the "security" group requires a restart

Design Decisions:
    - Mutates only the user_map passed in: the caller owns remerge and persist
    - coerce_string/coerce_number are pure (value, type) -> value | ValueCoercionError
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from domain_settings.core.domain_types import (
    PATHS_KEY,
    SECURITY_GROUP,
    SettingType,
    ValueKind,
    VIEWPOINT_KEY,
)
from domain_settings.core.errors import UnknownSettingError, ValueCoercionError
from domain_settings.core.settings_schema import SettingDescriptor, SettingsSchema

logger = logging.getLogger(__name__)


@dataclass
class UpdateOutcome:
    """What applying an update document did."""
    restart_required: bool = False
    security_updated: bool = False
    skipped: list[str] = field(default_factory=list)


def classify(value: Any) -> ValueKind:
    """Tag a decoded JSON value. bool is checked before number (bool is an int)."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, dict):
        return ValueKind.OBJECT
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    raise TypeError(f"Unsupported settings value type: {type(value).__name__}")


def coerce_string(key: str, text: str, setting_type: SettingType) -> Any:
    """Coerce a non-empty submitted string to the schema-declared type."""
    match setting_type:
        case SettingType.DOUBLE:
            try:
                return float(text)
            except ValueError:
                raise ValueCoercionError(key, text, setting_type.value)
        case SettingType.INTEGER:
            try:
                return int(text.strip())
            except ValueError:
                raise ValueCoercionError(key, text, setting_type.value)
        case SettingType.STRING:
            if key == VIEWPOINT_KEY and not text.startswith("/"):
                return "/" + text
            return text


def coerce_number(key: str, number: int | float, setting_type: SettingType) -> Any:
    match setting_type:
        case SettingType.DOUBLE:
            return float(number)
        case SettingType.INTEGER:
            if isinstance(number, float) and not number.is_integer():
                raise ValueCoercionError(key, number, setting_type.value)
            return int(number)
        case SettingType.STRING:
            return number


def update_setting(
    key: str,
    value: Any,
    target: dict,
    descriptor: SettingDescriptor,
    outcome: UpdateOutcome,
    key_path: str,
) -> bool:
    """Apply one value into target[key]. Returns True when it was applied."""
    try:
        kind = classify(value)
    except TypeError as e:
        logger.warning(f"Skipping {key_path}: {e}", extra={"key_path": key_path})
        outcome.skipped.append(key_path)
        return False

    match kind:
        case ValueKind.STRING:
            if value == "":
                target.pop(key, None)
                return True
            try:
                target[key] = coerce_string(key, value, descriptor.type)
            except ValueCoercionError as e:
                logger.warning(e.message, extra={"key_path": key_path})
                outcome.skipped.append(key_path)
                return False
            return True
        case ValueKind.BOOL:
            target[key] = value
            return True
        case ValueKind.NUMBER:
            try:
                target[key] = coerce_number(key, value, descriptor.type)
            except ValueCoercionError as e:
                logger.warning(e.message, extra={"key_path": key_path})
                outcome.skipped.append(key_path)
                return False
            return True
        case ValueKind.OBJECT:
            return _update_object(key, value, target, descriptor, outcome, key_path)
        case ValueKind.ARRAY:
            target[key] = copy.deepcopy(list(value))
            return True
        case ValueKind.NULL:
            logger.info(f"Ignoring null value for {key_path}", extra={"key_path": key_path})
            outcome.skipped.append(key_path)
            return False


def _update_object(
    key: str,
    value: dict,
    target: dict,
    descriptor: SettingDescriptor,
    outcome: UpdateOutcome,
    key_path: str,
) -> bool:
    existing = target.get(key)
    if not isinstance(existing, dict):
        if existing is not None:
            logger.warning(
                f"Value at {key_path} was not a map - replacing it with an empty map",
                extra={"key_path": key_path},
            )
        existing = {}
        target[key] = existing

    applied = False
    for child_key, child_value in value.items():
        child_descriptor = descriptor
        if key != descriptor.name:
            child_descriptor = descriptor.column(child_key) or descriptor

        sanitized_key = child_key
        if key == PATHS_KEY and not sanitized_key.startswith("/"):
            sanitized_key = "/" + sanitized_key

        applied |= update_setting(
            sanitized_key, child_value, existing, child_descriptor,
            outcome, f"{key_path}.{sanitized_key}",
        )

    if not existing:
        target.pop(key, None)
    return applied


def apply_settings_update(
    document: dict, user_map: dict, schema: SettingsSchema,
) -> UpdateOutcome:
    """Recursively apply `document` into `user_map` per the schema."""
    outcome = UpdateOutcome()

    for root_key, root_value in document.items():
        group = schema.group(root_key)
        applied = False

        if group is None:
            try:
                descriptor = _descriptor_or_raise(schema, None, root_key)
            except UnknownSettingError as e:
                logger.warning(e.message, extra={"key_path": root_key})
                outcome.skipped.append(root_key)
                continue
            applied = update_setting(
                root_key, root_value, user_map, descriptor, outcome, root_key,
            )
        elif not isinstance(root_value, dict):
            logger.warning(
                f"Group {root_key} must be updated with an object - skipping",
                extra={"key_path": root_key},
            )
            outcome.skipped.append(root_key)
            continue
        else:
            group_map = user_map.get(root_key)
            if not isinstance(group_map, dict):
                if group_map is not None:
                    logger.warning(
                        f"Value at {root_key} was not a map - replacing it with an empty map",
                        extra={"key_path": root_key},
                    )
                group_map = {}
                user_map[root_key] = group_map
            for setting_key, setting_value in root_value.items():
                key_path = f"{root_key}.{setting_key}"
                try:
                    descriptor = _descriptor_or_raise(schema, root_key, setting_key)
                except UnknownSettingError as e:
                    logger.warning(e.message, extra={"key_path": key_path})
                    outcome.skipped.append(key_path)
                    continue
                applied |= update_setting(
                    setting_key, setting_value, group_map, descriptor, outcome, key_path,
                )
            if not group_map:
                user_map.pop(root_key, None)

        if applied:
            if root_key == SECURITY_GROUP:
                outcome.security_updated = True
            else:
                outcome.restart_required = True

    return outcome


def _descriptor_or_raise(
    schema: SettingsSchema, group_name: str | None, setting_name: str,
) -> SettingDescriptor:
    descriptor = schema.descriptor_for(group_name, setting_name)
    if descriptor is None:
        key_path = f"{group_name}.{setting_name}" if group_name else setting_name
        raise UnknownSettingError(key_path)
    return descriptor
