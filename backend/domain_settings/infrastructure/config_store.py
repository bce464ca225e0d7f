"""Config Store — master (operator-locked) config layered under the persisted user config.

Invariants:
    - The master map is never written by this process
    - The merged map is recomputed after every mutation made through the store
    - Direct readers see merged values; only get_locked() exposes the master layer
    - persist() never raises: an IO failure is logged CRITICAL and reported as False,
      and the in-memory user map stays authoritative

Design Decisions:
    - get_or_create returns a live container inside the user map; callers mutate it
      within one operation and then call remerge()/persist() — handles are not kept
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Callable

from domain_settings.core.config_tree import (
    container_for_key_path,
    merge_configs,
    remove_key_path,
    set_value_for_key_path,
    value_for_key_path,
)
from domain_settings.core.errors import SettingsPersistError

logger = logging.getLogger(__name__)


class ConfigStore:
    """Owns the master, user, and merged config maps."""

    def __init__(self, user_config_path: Path, master_config_path: Path | None = None):
        self.user_config_path = Path(user_config_path)
        self.master_config_path = Path(master_config_path) if master_config_path else None
        self._master: dict = {}
        self._user: dict = {}
        self._merged: dict = {}

    # --- Loading -----------------------------------------------------------------

    def load(self) -> None:
        """(Re)read master and user documents from disk and merge them."""
        self._master = _read_document(self.master_config_path) if self.master_config_path else {}
        self._user = _read_document(self.user_config_path)
        self.remerge()

    def load_from(self, master: dict, user: dict) -> None:
        """Install in-memory documents (used when the caller already parsed them)."""
        self._master = copy.deepcopy(master)
        self._user = copy.deepcopy(user)
        self.remerge()

    # --- Views -------------------------------------------------------------------

    @property
    def user(self) -> dict:
        """The live user map. Mutations must be followed by remerge()."""
        return self._user

    @property
    def merged(self) -> dict:
        return self._merged

    @property
    def master(self) -> dict:
        return self._master

    def remerge(self) -> None:
        self._merged = merge_configs(self._master, self._user)

    # --- Key-path access ---------------------------------------------------------

    def get(self, key_path: str) -> Any | None:
        """Merged value at key_path, or None when absent."""
        return value_for_key_path(self._merged, key_path)

    def get_user(self, key_path: str) -> Any | None:
        return value_for_key_path(self._user, key_path)

    def get_locked(self, key_path: str) -> Any | None:
        return value_for_key_path(self._master, key_path)

    def get_or_create(self, key_path: str, factory: Callable[[], Any] = dict) -> Any:
        """Live value in the user map at key_path, created with factory() if absent."""
        parent, key = container_for_key_path(self._user, key_path)
        if parent.get(key) is None:
            parent[key] = factory()
        return parent[key]

    def set(self, key_path: str, value: Any) -> None:
        set_value_for_key_path(self._user, key_path, value)
        self.remerge()

    def remove(self, key_path: str) -> bool:
        removed = remove_key_path(self._user, key_path)
        if removed:
            self.remerge()
        return removed

    # --- Persistence -------------------------------------------------------------

    def persist(self) -> bool:
        """Write the user map to disk. Returns False (logged) if the write failed."""
        try:
            self._write_user_document()
        except SettingsPersistError as e:
            logger.critical(
                f"{e.message} - unable to persist settings",
                extra={"error_code": e.code, "path": e.path},
            )
            return False
        return True

    def _write_user_document(self) -> None:
        path = self.user_config_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(self._user, indent=4, sort_keys=True, ensure_ascii=False),
                encoding="utf-8",
            )
        except (OSError, TypeError, ValueError) as e:
            raise SettingsPersistError(str(e), str(path)) from e


def _read_document(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        document = json.loads(path.read_text(encoding="utf-8") or "{}")
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read config document {path}: {e}", extra={"path": path})
        return {}
    if not isinstance(document, dict):
        logger.error(f"Config document {path} is not a JSON object - ignoring it")
        return {}
    return document
