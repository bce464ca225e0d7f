"""Settings Routes — filtered public read, authenticated full read and write.

Invariants:
    - GET /settings.json never requires credentials and never returns value-hidden settings
    - /api/v1/settings requires HTTP Basic credentials whenever security.http_username is set
    - A write is persisted before the response is sent; any restart fires after it
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from domain_settings.core.errors import AuthenticationError
from domain_settings.schemas.settings import FullSettingsResponse, SettingsUpdateAck
from domain_settings.services.settings_manager import SettingsManager

logger = logging.getLogger(__name__)
router = APIRouter(tags=["settings"])

http_basic = HTTPBasic(auto_error=False)


def get_settings_manager(request: Request) -> SettingsManager:
    """The manager built by the app lifespan (overridden in tests)."""
    return request.app.state.settings_manager


def require_credentials(
    credentials: HTTPBasicCredentials | None = Depends(http_basic),
    manager: SettingsManager = Depends(get_settings_manager),
) -> SettingsManager:
    username = credentials.username if credentials else None
    password = credentials.password if credentials else None
    if not manager.check_credentials(username, password):
        raise AuthenticationError()
    return manager


@router.get("/settings.json")
async def read_settings_for_type(
    type: str | None = Query(None),
    manager: SettingsManager = Depends(get_settings_manager),
):
    """Settings visible to one assignment type (e.g. an assignment client)."""
    return manager.settings_for_type(type)


@router.get("/api/v1/settings", response_model=FullSettingsResponse)
async def read_all_settings(
    manager: SettingsManager = Depends(require_credentials),
):
    return manager.full_settings()


@router.post("/api/v1/settings", response_model=SettingsUpdateAck)
async def update_settings(
    document: dict[str, Any] = Body(...),
    manager: SettingsManager = Depends(require_credentials),
):
    """Apply a partial settings document. Non-security changes restart the server."""
    outcome = manager.apply_update(document)
    return SettingsUpdateAck(
        restart_required=outcome.restart_required,
        skipped=outcome.skipped,
    )
