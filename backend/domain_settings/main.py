"""Domain Settings API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SettingsRegistryError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Settings loaded and migrated in the lifespan before the first request is served
    - A missing or malformed settings description stops startup with exit code 6

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Periodic directory sweep is a lifespan-owned task, cancelled on shutdown
"""

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from domain_settings import __version__
from domain_settings.api.error_handlers import register_error_handlers
from domain_settings.api.routes import health, settings as settings_routes
from domain_settings.config import Settings, get_settings
from domain_settings.infrastructure.config_store import ConfigStore
from domain_settings.infrastructure.directory_client import GroupDirectoryClient
from domain_settings.infrastructure.observability import setup_logging
from domain_settings.infrastructure.schema_loader import bundled_description_path, load_schema_or_exit
from domain_settings.infrastructure.version_store import VersionStore
from domain_settings.services.settings_manager import SettingsManager

logger = logging.getLogger(__name__)


def restart_process() -> None:
    """Replace the current process with a fresh copy of itself."""
    logger.info("Restarting domain settings process")
    logging.shutdown()
    os.execv(sys.executable, [sys.executable, *sys.argv])


def build_settings_manager(settings: Settings, directory: GroupDirectoryClient | None) -> SettingsManager:
    schema = load_schema_or_exit(settings.settings_description_path or bundled_description_path())
    return SettingsManager(
        schema=schema,
        store=ConfigStore(settings.user_config_path, settings.master_config_path),
        version_store=VersionStore(settings.settings_version_path),
        directory=directory,
        restart_callback=restart_process,
        restart_delay_seconds=settings.restart_delay_seconds,
        group_refresh_stale_seconds=settings.group_refresh_stale_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    directory = GroupDirectoryClient(
        settings.directory_api_url,
        access_token=settings.directory_access_token,
        timeout_seconds=settings.directory_timeout_seconds,
        max_retries=settings.directory_max_retries,
        base_delay_ms=settings.directory_base_delay_ms,
        max_delay_ms=settings.directory_max_delay_ms,
    )
    if not directory.has_auth:
        logger.warning("No directory access token - group ids and ranks will not be resolved")

    manager = build_settings_manager(settings, directory)
    manager.setup()
    app.state.settings_manager = manager

    sweep = asyncio.create_task(
        manager.directory_sync.run_periodic(settings.group_refresh_interval_seconds),
    )
    logger.info("Domain settings API started")
    yield
    logger.info("Domain settings API shutting down")
    sweep.cancel()
    with suppress(asyncio.CancelledError):
        await sweep
    await manager.directory_sync.drain()
    await directory.aclose()


app = FastAPI(
    title="Domain Settings API", version=__version__, lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(settings_routes.router)

register_error_handlers(app)
