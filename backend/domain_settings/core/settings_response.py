"""Settings Responses — read views of the merged config shaped by the schema.

Invariants:
    - Settings marked value-hidden are never returned
    - Absent values fall back to the schema default, or "" when none is declared
    - Root-level settings (nameless groups) appear at the top level
    - Groups with no returned settings are omitted
"""

import copy
from typing import Any

from domain_settings.core.settings_schema import SettingsSchema


def response_for_type(
    schema: SettingsSchema,
    merged: dict,
    type_value: str | int | None,
    authenticated: bool = False,
) -> dict[str, Any]:
    """group -> setting -> value for an assignment type.

    With type_value=None and authenticated=True every non-hidden setting is
    returned regardless of assignment type.
    """
    query_type: int | None = None
    if type_value is not None and type_value != "":
        try:
            query_type = int(type_value)
        except (TypeError, ValueError):
            return {}
    elif not authenticated:
        return {}

    response: dict[str, Any] = {}
    for group in schema.all_groups():
        group_values: dict[str, Any] = {}
        stored_group = merged.get(group.name) if group.name else merged
        if not isinstance(stored_group, dict):
            stored_group = {}

        for descriptor in group.settings:
            if descriptor.value_hidden:
                continue
            if query_type is not None:
                if query_type not in group.effective_assignment_types(descriptor):
                    continue

            value = stored_group.get(descriptor.name)
            if value is None:
                value = descriptor.default if descriptor.has_default else ""
            value = copy.deepcopy(value)

            if group.name:
                group_values[descriptor.name] = value
            else:
                response[descriptor.name] = value

        if group.name and group_values:
            response[group.name] = group_values

    return response


def full_response(schema: SettingsSchema, merged: dict, master: dict) -> dict[str, Any]:
    """Authenticated read: descriptions, non-hidden values, and locked master values."""
    return {
        "descriptions": copy.deepcopy(schema.raw_groups),
        "values": response_for_type(schema, merged, None, authenticated=True),
        "locked": copy.deepcopy(master),
    }
