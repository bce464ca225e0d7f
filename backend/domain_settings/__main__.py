"""CLI entry point: `python -m domain_settings`.

The settings description is checked before the server starts so a missing or
malformed document ends the process with exit code 6.
"""

import uvicorn

from domain_settings.config import get_settings
from domain_settings.infrastructure.schema_loader import bundled_description_path, load_schema_or_exit


def main() -> None:
    settings = get_settings()
    load_schema_or_exit(settings.settings_description_path or bundled_description_path())
    uvicorn.run(
        "domain_settings.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
