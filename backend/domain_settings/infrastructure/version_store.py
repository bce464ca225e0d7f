"""Version Store — the settings schema version the user config was last migrated to.

Invariants:
    - A missing or unreadable state file means version 0.0
    - save() failures are logged, never raised (migrations re-run idempotently)
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

VERSION_KEY = "version"


class VersionStore:
    """Small JSON state file next to the user config: {"version": <float>}."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> float:
        if not self.path.exists():
            return 0.0
        try:
            state = json.loads(self.path.read_text(encoding="utf-8"))
            return float(state.get(VERSION_KEY, 0.0))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Could not read settings version from {self.path}: {e}")
            return 0.0

    def save(self, version: float) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps({VERSION_KEY: version}), encoding="utf-8")
        except OSError as e:
            logger.critical(
                f"Could not record settings version {version}: {e}",
                extra={"path": self.path},
            )
