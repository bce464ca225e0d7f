"""Error Hierarchy — typed, categorized exceptions for settings registry failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - SchemaLoadError is the only error that terminates the process (SCHEMA_LOAD_EXIT_CODE)

Design Decisions:
    - Single hierarchy with SettingsRegistryError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


# Process exit code when the settings description is absent or malformed.
SCHEMA_LOAD_EXIT_CODE = 6


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    STORAGE = "storage"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    key_path: str | None = None
    group_name: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class SettingsRegistryError(Exception):
    """Base exception for all settings registry errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "key_path": self.context.key_path,
                    "group_name": self.context.group_name,
                },
            }
        }


# ─── Validation Errors (400-level) ──────────────────────────────

class ValueCoercionError(SettingsRegistryError):
    """Submitted value cannot be coerced to the schema-declared type."""
    def __init__(
        self, key: str, value: Any, setting_type: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Value {value!r} for '{key}' cannot be coerced to {setting_type}",
            "VALUE_COERCION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.key = key
        self.setting_type = setting_type


class UnknownSettingError(SettingsRegistryError):
    """No schema descriptor matches the submitted key."""
    def __init__(self, key_path: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.key_path = key_path
        super().__init__(
            f"No settings description for '{key_path}'",
            "UNKNOWN_SETTING", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, ctx, 400,
        )


class AuthenticationError(SettingsRegistryError):
    """Request to the authenticated settings surface lacks valid credentials."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Valid credentials are required to access domain settings",
            "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class SchemaLoadError(SettingsRegistryError):
    """Settings description document is absent or malformed. Fatal at startup."""
    def __init__(self, message: str, path: str, context: ErrorContext | None = None):
        super().__init__(
            f"Did not find settings description in JSON at {path}: {message}",
            "SCHEMA_LOAD_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.path = path
        self.exit_code = SCHEMA_LOAD_EXIT_CODE


class SettingsPersistError(SettingsRegistryError):
    """Writing the user settings document to disk failed."""
    def __init__(self, message: str, path: str, context: ErrorContext | None = None):
        super().__init__(
            f"Could not write settings file {path}: {message}",
            "SETTINGS_PERSIST_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.path = path


class DirectoryServiceError(SettingsRegistryError):
    """Group directory API call failed."""
    def __init__(
        self,
        message: str,
        error_type: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Group directory error ({error_type}): {message}",
            "DIRECTORY_SERVICE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 503,
        )
        self.error_type = error_type
        self.status_code = status_code
