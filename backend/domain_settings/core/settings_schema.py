"""Settings Schema — read-only descriptor tree built from the settings description document.

Invariants:
    - The schema is immutable after construction
    - A group without a "name" holds root-level settings (looked up with group=None)
    - A setting's assignment types fall back to its group's when the setting declares none
    - from_document raises SchemaLoadError for anything but {"version": number, "settings": [..]}
"""

from dataclasses import dataclass, field
from typing import Any

from domain_settings.core.domain_types import SettingType
from domain_settings.core.errors import SchemaLoadError


DESCRIPTION_VERSION_KEY = "version"
DESCRIPTION_SETTINGS_KEY = "settings"
DESCRIPTION_NAME_KEY = "name"
DESCRIPTION_TYPE_KEY = "type"
DESCRIPTION_COLUMNS_KEY = "columns"
SETTING_DEFAULT_KEY = "default"
VALUE_HIDDEN_KEY = "value-hidden"
ASSIGNMENT_TYPES_KEY = "assignment-types"


@dataclass(frozen=True)
class SettingDescriptor:
    """One described setting (or table column) from the schema."""

    name: str
    type: SettingType
    default: Any = None
    has_default: bool = False
    value_hidden: bool = False
    assignment_types: tuple[int, ...] = ()
    columns: tuple["SettingDescriptor", ...] = ()
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, raw: dict) -> "SettingDescriptor":
        columns = tuple(
            cls.from_dict(column)
            for column in raw.get(DESCRIPTION_COLUMNS_KEY) or []
            if isinstance(column, dict)
        )
        return cls(
            name=str(raw.get(DESCRIPTION_NAME_KEY, "")),
            type=SettingType.parse(raw.get(DESCRIPTION_TYPE_KEY)),
            default=raw.get(SETTING_DEFAULT_KEY),
            has_default=SETTING_DEFAULT_KEY in raw,
            value_hidden=bool(raw.get(VALUE_HIDDEN_KEY, False)),
            assignment_types=_int_tuple(raw.get(ASSIGNMENT_TYPES_KEY)),
            columns=columns,
            raw=raw,
        )

    def column(self, name: str) -> "SettingDescriptor | None":
        for column in self.columns:
            if column.name == name:
                return column
        return None


@dataclass(frozen=True)
class SettingGroup:
    """A named group of settings; name is None for root-level settings."""

    name: str | None
    settings: tuple[SettingDescriptor, ...]
    assignment_types: tuple[int, ...] = ()
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    def setting(self, name: str) -> SettingDescriptor | None:
        for descriptor in self.settings:
            if descriptor.name == name:
                return descriptor
        return None

    def effective_assignment_types(self, descriptor: SettingDescriptor) -> tuple[int, ...]:
        return descriptor.assignment_types or self.assignment_types


class SettingsSchema:
    """Descriptor tree with lookups by group and setting name."""

    def __init__(self, version: float, groups: list[SettingGroup], raw_groups: list):
        self._version = version
        self._groups = tuple(groups)
        self._raw_groups = raw_groups

    @classmethod
    def from_document(cls, document: Any, source: str = "<memory>") -> "SettingsSchema":
        if not isinstance(document, dict):
            raise SchemaLoadError("document root is not an object", source)
        version = document.get(DESCRIPTION_VERSION_KEY)
        if isinstance(version, bool) or not isinstance(version, (int, float)):
            raise SchemaLoadError("missing numeric 'version'", source)
        raw_groups = document.get(DESCRIPTION_SETTINGS_KEY)
        if not isinstance(raw_groups, list):
            raise SchemaLoadError("missing 'settings' array", source)

        groups = []
        for raw_group in raw_groups:
            if not isinstance(raw_group, dict):
                raise SchemaLoadError("settings group is not an object", source)
            groups.append(SettingGroup(
                name=raw_group.get(DESCRIPTION_NAME_KEY),
                settings=tuple(
                    SettingDescriptor.from_dict(setting)
                    for setting in raw_group.get(DESCRIPTION_SETTINGS_KEY) or []
                    if isinstance(setting, dict)
                ),
                assignment_types=_int_tuple(raw_group.get(ASSIGNMENT_TYPES_KEY)),
                raw=raw_group,
            ))
        return cls(float(version), groups, raw_groups)

    @property
    def version(self) -> float:
        return self._version

    @property
    def raw_groups(self) -> list:
        """The description array as loaded (served to authenticated clients)."""
        return self._raw_groups

    def all_groups(self) -> tuple[SettingGroup, ...]:
        return self._groups

    def group(self, name: str) -> SettingGroup | None:
        for group in self._groups:
            if group.name is not None and group.name == name:
                return group
        return None

    def descriptor_for(self, group_name: str | None, setting_name: str) -> SettingDescriptor | None:
        """Descriptor for group.setting; group_name=None searches root-level groups."""
        if group_name is None:
            for group in self._groups:
                if group.name is None:
                    descriptor = group.setting(setting_name)
                    if descriptor is not None:
                        return descriptor
            return None
        group = self.group(group_name)
        return group.setting(setting_name) if group else None

    def default_for(self, group_name: str | None, setting_name: str) -> Any | None:
        descriptor = self.descriptor_for(group_name, setting_name)
        return descriptor.default if descriptor else None

    def default_for_key_path(self, key_path: str) -> Any | None:
        """Default for 'group.setting' (or a bare root-level 'setting')."""
        group_name, _, setting_name = key_path.partition(".")
        if not setting_name:
            return self.default_for(None, group_name)
        return self.default_for(group_name, setting_name)


def _int_tuple(raw: Any) -> tuple[int, ...]:
    if not isinstance(raw, list):
        return ()
    values = []
    for item in raw:
        try:
            values.append(int(item))
        except (TypeError, ValueError):
            continue
    return tuple(values)
