"""Error Hierarchy — typed, categorized exceptions for all Tribunal failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation errors (400-level) are raised before any write is attempted
    - Authorization failures are NOT exceptions: they travel as AuthorizationDecision values
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with TribunalError base: FastAPI global handler catches all (ADR: uniform error shape)
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
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    moderator_id: str | None = None
    user_hash: str | None = None
    action_type: str | None = None
    debug_info: dict[str, Any] | None = None


class TribunalError(Exception):
    """Base exception for all Tribunal errors."""

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
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "moderator_id": self.context.moderator_id,
                    "user_hash": self.context.user_hash,
                    "action_type": self.context.action_type,
                },
            }
        }


# ─── Validation Errors (400-level) ──────────────────────────────

class ValidationError(TribunalError):
    """Input rejected before any state was touched."""
    def __init__(
        self, message: str, field: str, code: str = "VALIDATION_ERROR",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class EmptyReasonError(ValidationError):
    """Every moderation decision must carry a reason."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "A non-empty reason is required for every moderation action.",
            "reason", "EMPTY_REASON", context,
        )


class InvalidAuditFilterError(ValidationError):
    """Audit filter values are malformed or contradictory."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(message, field, "INVALID_AUDIT_FILTER", context)


class NonAppointableRoleError(ValidationError):
    """Appointer's role may not appoint the requested role."""
    def __init__(
        self, appointer_role: str, requested_role: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Role '{appointer_role}' cannot appoint '{requested_role}'.",
            "role", "NON_APPOINTABLE_ROLE", context,
        )
        self.appointer_role = appointer_role
        self.requested_role = requested_role


class InvalidPunishmentLevelError(ValidationError):
    """Punishment level outside the 1–6 ladder."""
    def __init__(self, level: object, context: ErrorContext | None = None):
        super().__init__(
            f"Punishment level must be between 1 and 6, got {level!r}.",
            "level", "INVALID_PUNISHMENT_LEVEL", context,
        )


class ScopeShapeError(ValidationError):
    """scope_id must be present iff scope_type is not global."""
    def __init__(self, scope_type: str, context: ErrorContext | None = None):
        message = (
            "Global scope must not carry a scope_id."
            if scope_type == "global"
            else f"Scope '{scope_type}' requires a scope_id."
        )
        super().__init__(message, "scope_id", "INVALID_SCOPE", context)


# ─── Request Errors (401/404/409) ───────────────────────────────

class AuthenticationError(TribunalError):
    """Caller did not identify as a known moderator."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "NOT_AUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ResourceNotFoundError(TribunalError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class ConcurrencyError(TribunalError):
    """Concurrent modification detected."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(TribunalError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
