"""Settings Manager — owner context wiring store, schema, registry, migrations and directory sync.

Invariants:
    - setup() runs load -> migrations -> unpack before any request is served
    - A submitted http_password is stored as its SHA-256 hex digest, never as plaintext
    - Every write is re-merged, permission lists re-sorted, and persisted before it returns
    - A non-security change schedules exactly one restart; security-only changes unpack instead
    - Reads never block on the directory service

Design Decisions:
    - Explicitly constructed and held by the app (app.state.settings_manager), no module globals
    - Restart is a pluggable callback scheduled with loop.call_later
"""

import asyncio
import logging
import time
from typing import Any, Callable

from domain_settings.core.credentials import credentials_match, hash_password, is_password_digest
from domain_settings.core.domain_types import HTTP_PASSWORD_KEY_PATH, HTTP_USERNAME_KEY_PATH
from domain_settings.core.settings_response import full_response, response_for_type
from domain_settings.core.settings_schema import SettingsSchema
from domain_settings.core.settings_update import UpdateOutcome, apply_settings_update
from domain_settings.infrastructure.config_store import ConfigStore
from domain_settings.infrastructure.version_store import VersionStore
from domain_settings.migrations.engine import MigrationContext, MigrationEngine
from domain_settings.services.directory_sync import (
    DEFAULT_STALE_AFTER_SECONDS,
    DirectorySync,
    GroupDirectory,
)
from domain_settings.services.permissions_registry import PermissionsRegistry

logger = logging.getLogger(__name__)

DEFAULT_RESTART_DELAY_SECONDS = 1.0

RestartCallback = Callable[[], None]


class SettingsManager:
    """Reads, writes, and startup for domain settings."""

    def __init__(
        self,
        schema: SettingsSchema,
        store: ConfigStore,
        version_store: VersionStore,
        directory: GroupDirectory | None = None,
        restart_callback: RestartCallback | None = None,
        restart_delay_seconds: float = DEFAULT_RESTART_DELAY_SECONDS,
        group_refresh_stale_seconds: float = DEFAULT_STALE_AFTER_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.schema = schema
        self.store = store
        self.version_store = version_store
        self.registry = PermissionsRegistry(store, clock=clock)
        self.directory_sync = DirectorySync(
            self.registry, directory, stale_after_seconds=group_refresh_stale_seconds,
        )
        self.restart_callback = restart_callback
        self.restart_delay_seconds = restart_delay_seconds
        self.ready = False
        self._restart_handle: asyncio.TimerHandle | None = None

    # --- Startup -----------------------------------------------------------------

    def setup(self) -> float:
        """Load config documents and bring them up to the schema version."""
        self.store.load()
        engine = MigrationEngine(
            MigrationContext(self.store, self.registry, self.schema), self.version_store,
        )
        version = engine.run()
        self.ready = True
        logger.info(
            "Domain settings ready",
            extra={"schema_version": version},
        )
        return version

    # --- Reads -------------------------------------------------------------------

    def value_or_default(self, key_path: str) -> Any | None:
        value = self.store.get(key_path)
        if value is not None:
            return value
        return self.schema.default_for_key_path(key_path)

    def settings_for_type(self, type_value: str | int | None, authenticated: bool = False) -> dict:
        return response_for_type(self.schema, self.store.merged, type_value, authenticated)

    def full_settings(self) -> dict:
        return full_response(self.schema, self.store.merged, self.store.master)

    def check_credentials(self, username: str | None, password: str | None) -> bool:
        return credentials_match(
            self.store.get(HTTP_USERNAME_KEY_PATH),
            self.store.get(HTTP_PASSWORD_KEY_PATH),
            username,
            password,
        )

    # --- Writes ------------------------------------------------------------------

    def apply_update(self, document: dict) -> UpdateOutcome:
        """Apply a submitted partial settings document and persist it."""
        outcome = apply_settings_update(document, self.store.user, self.schema)
        if outcome.security_updated:
            self._digest_submitted_password()
        self.store.remerge()
        self.registry.sort_lists()
        self.store.persist()

        if outcome.skipped:
            logger.info(f"Settings update skipped {len(outcome.skipped)} keys: {outcome.skipped}")

        if outcome.restart_required:
            self.schedule_restart()
        else:
            self.registry.unpack()
        return outcome

    def _digest_submitted_password(self) -> None:
        password = self.store.get_user(HTTP_PASSWORD_KEY_PATH)
        if isinstance(password, str) and password and not is_password_digest(password):
            self.store.set(HTTP_PASSWORD_KEY_PATH, hash_password(password))

    def schedule_restart(self) -> None:
        """Invoke the restart callback after restart_delay_seconds (once per burst of writes)."""
        if self.restart_callback is None:
            logger.info("Settings changed that require a restart - no restart callback installed")
            return
        if self._restart_handle is not None and not self._restart_handle.cancelled():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.info("Restarting to apply settings changes")
            self.restart_callback()
            return
        logger.info(
            f"Restarting in {self.restart_delay_seconds}s to apply settings changes",
        )
        self._restart_handle = loop.call_later(self.restart_delay_seconds, self._restart)

    def _restart(self) -> None:
        self._restart_handle = None
        self.restart_callback()
