"""
Error taxonomy for the rewards ledger.

Validation errors are client-correctable and never mutate state.
Storage errors are infrastructure failures and are surfaced as-is;
nothing in the ledger retries them.
"""

from typing import Any, Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code = "LEDGER_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.details}


# =============================================================================
# Validation (client-correctable)
# =============================================================================


class LedgerValidationError(LedgerError):
    """An event was rejected against the current user state."""

    code = "VALIDATION_ERROR"


class DuplicateActivityError(LedgerValidationError):
    code = "DUPLICATE_ACTIVITY"

    def __init__(self, activity_id: str):
        super().__init__("Activity already completed", {"activity_id": activity_id})
        self.activity_id = activity_id


class DuplicateBadgeError(LedgerValidationError):
    """
    Badge already earned.

    Benign for internal callers: the award is a no-op and may be ignored.
    """

    code = "DUPLICATE_BADGE"

    def __init__(self, badge_id: str):
        super().__init__("User already has this badge", {"badge_id": badge_id})
        self.badge_id = badge_id


class InsufficientTokensError(LedgerValidationError):
    code = "INSUFFICIENT_TOKENS"

    def __init__(self, balance: int, cost: int):
        super().__init__("Insufficient tokens", {"balance": balance, "cost": cost})
        self.balance = balance
        self.cost = cost


class InvalidAmountError(LedgerValidationError):
    code = "INVALID_AMOUNT"

    def __init__(self, field: str, value: int, minimum: int, maximum: Optional[int] = None):
        if maximum is not None and isinstance(value, int) and value > maximum:
            message = f"{field} must be at most {maximum}"
        else:
            message = f"{field} must be at least {minimum}"
        super().__init__(message, {"field": field, "value": value})
        self.field = field
        self.value = value


class UnknownCatalogItemError(LedgerValidationError):
    code = "UNKNOWN_CATALOG_ITEM"

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"Unknown {kind}: {item_id}", {"kind": kind, "id": item_id})
        self.kind = kind
        self.item_id = item_id


class UserNotFoundError(LedgerError):
    code = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__("User not found", {"user_id": user_id})
        self.user_id = user_id


class DuplicateEmailError(LedgerError):
    code = "DUPLICATE_EMAIL"

    def __init__(self, email: str):
        super().__init__("User with this email already exists")
        self.email = email


# =============================================================================
# Storage (infrastructure)
# =============================================================================


class StorageError(LedgerError):
    """The store could not confirm a write. Nothing was persisted."""

    code = "STORAGE_ERROR"


class StorageUnavailableError(StorageError):
    code = "STORAGE_UNAVAILABLE"


class ConstraintViolationError(StorageError):
    code = "CONSTRAINT_VIOLATION"


class ConcurrentUpdateError(StorageError):
    """Optimistic version check kept failing; the caller may resubmit the event."""

    code = "CONCURRENT_UPDATE"

    def __init__(self, user_id: str, attempts: int):
        super().__init__(
            "User state changed concurrently, please retry",
            {"user_id": user_id, "attempts": attempts},
        )
        self.user_id = user_id
        self.attempts = attempts


class VersionConflictError(Exception):
    """Raised by the store when the expected user version is stale."""

    def __init__(self, user_id: str, expected_version: int):
        super().__init__(f"Version conflict for user {user_id} (expected {expected_version})")
        self.user_id = user_id
        self.expected_version = expected_version
