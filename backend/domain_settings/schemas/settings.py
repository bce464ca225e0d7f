"""Settings Schemas — Pydantic models for the settings API boundary.

Invariants:
    - SettingsUpdateAck.status is always "success" for an accepted write
    - Submitted documents are JSON objects; per-key validation happens in the update protocol
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class SettingsUpdateAck(BaseModel):
    """Acknowledgement of a settings write."""
    status: Literal["success"] = "success"
    restart_required: bool = False
    skipped: list[str] = Field(default_factory=list)


class FullSettingsResponse(BaseModel):
    """Authenticated read: descriptions, values, and operator-locked values."""
    descriptions: list[Any]
    values: dict[str, Any]
    locked: dict[str, Any]
