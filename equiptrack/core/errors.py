"""Error Hierarchy — typed, categorized exceptions for all EquipTrack failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages
    - No error in this hierarchy terminates a LedgerSession — callers degrade to a no-op

Design Decisions:
    - Single hierarchy with EquipTrackError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    STORAGE = "storage"
    MALFORMED_DATA = "malformed_data"
    ACCESS = "access"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    day: str | None = None
    category: str | None = None
    item_id: str | None = None
    photo_key: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class EquipTrackError(Exception):
    """Base exception for all EquipTrack errors."""

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
                    "day": self.context.day,
                    "category": self.context.category,
                    "item_id": self.context.item_id,
                    "photo_key": self.context.photo_key,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ItemValidationError(EquipTrackError):
    """A row edit that the ledger cannot accept."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class ReadOnlySessionError(EquipTrackError):
    """An edit reached a session showing a shared, read-only ledger."""
    def __init__(self, blocked: dict, context: ErrorContext | None = None):
        super().__init__(
            blocked["message"], blocked["error_code"], ErrorCategory.ACCESS,
            ErrorSeverity.INFO, context, 403,
        )
        self.offer = blocked.get("offer")
        self.request_pending = blocked.get("request_pending", False)
        self.operation = blocked.get("operation")

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"].update(
            offer=self.offer,
            request_pending=self.request_pending,
            operation=self.operation,
        )
        return response


class MalformedSnapshotError(EquipTrackError):
    """Persisted or shared ledger data could not be decoded."""
    def __init__(self, message: str, source: str, context: ErrorContext | None = None):
        super().__init__(
            f"Malformed {source} data: {message}",
            "MALFORMED_SNAPSHOT", ErrorCategory.MALFORMED_DATA,
            ErrorSeverity.WARNING, context, 400,
        )
        self.source = source


class ResourceNotFoundError(EquipTrackError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class NotificationNotFoundError(ResourceNotFoundError):
    """Notification missing or not bound to the requested action."""
    def __init__(self, notification_id: str, context: ErrorContext | None = None):
        super().__init__("Notification", notification_id, context)
        self.code = "NOTIFICATION_NOT_FOUND"


# ─── Infrastructure Errors (500-level) ──────────────────────────

class PhotoStoreError(EquipTrackError):
    """Photo blob store operation failed or timed out."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Photo store {operation} failed: {message}",
            "PHOTO_STORE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.ERROR, context, 503,
        )
        self.operation = operation


class StorageError(EquipTrackError):
    """Local persistent storage (named slots) operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
