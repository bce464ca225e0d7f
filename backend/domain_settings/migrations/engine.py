"""Migration Engine — runs version-gated settings migrations once at startup.

Invariants:
    - Steps run in ascending version order, only when stored < step.version <= target
    - A step that reports a change is persisted and re-merged before the next step runs
    - The permissions registry is unpacked once after all steps, even when none ran
    - The target version is recorded only after the steps and the unpack complete

Design Decisions:
    - Steps registered explicitly in MIGRATION_STEPS (no module auto-discovery)
"""

import logging
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable

from domain_settings.core.settings_schema import SettingsSchema
from domain_settings.infrastructure.config_store import ConfigStore
from domain_settings.infrastructure.version_store import VersionStore
from domain_settings.migrations.versions import (
    v1_0_restricted_access,
    v1_1_persist_file_path,
    v1_2_hash_http_password,
    v1_4_permissions_grid,
    v1_5_operating_hours,
)
from domain_settings.services.permissions_registry import PermissionsRegistry

logger = logging.getLogger(__name__)


MIGRATION_STEPS: tuple[ModuleType, ...] = (
    v1_0_restricted_access,
    v1_1_persist_file_path,
    v1_2_hash_http_password,
    v1_4_permissions_grid,
    v1_5_operating_hours,
)


@dataclass
class MigrationContext:
    """What a migration step may read and mutate."""
    store: ConfigStore
    registry: PermissionsRegistry
    schema: SettingsSchema

    def value_or_default(self, key_path: str) -> Any | None:
        """Merged value at key_path, falling back to the schema default."""
        value = self.store.get(key_path)
        if value is not None:
            return value
        return self.schema.default_for_key_path(key_path)


class MigrationEngine:
    """Brings the persisted user config up to the schema's version."""

    def __init__(
        self,
        context: MigrationContext,
        version_store: VersionStore,
        steps: tuple[ModuleType, ...] = MIGRATION_STEPS,
    ):
        self.context = context
        self.version_store = version_store
        self.steps = tuple(sorted(steps, key=lambda step: step.version))

    @property
    def target_version(self) -> float:
        return self.context.schema.version

    def pending_steps(self, stored_version: float) -> list[ModuleType]:
        return [
            step for step in self.steps
            if stored_version < step.version <= self.target_version
        ]

    def run(self) -> float:
        """Run pending steps, unpack permissions, record the target version."""
        stored_version = self.version_store.load()
        if stored_version != self.target_version:
            logger.info(
                f"Previous settings version was {stored_version:g} and the new version is "
                f"{self.target_version:g} - checking if any re-mapping is required",
                extra={"schema_version": self.target_version},
            )
            for step in self.pending_steps(stored_version):
                self._run_step(step.version, step.description, step.upgrade)

        self.context.registry.unpack()
        self.version_store.save(self.target_version)
        return self.target_version

    def _run_step(
        self,
        version: float,
        description: str,
        upgrade: Callable[[MigrationContext], bool],
    ) -> None:
        changed = upgrade(self.context)
        logger.info(
            f"Settings migration {version:g} ({description}): "
            f"{'applied' if changed else 'nothing to do'}",
            extra={"schema_version": version},
        )
        if changed:
            self.context.store.persist()
            self.context.store.remerge()
