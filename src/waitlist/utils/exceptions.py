"""
Custom exceptions for the waitlist service
"""
from typing import Any
from uuid import UUID


class WaitlistError(Exception):
    """Base exception for waitlist and placement errors"""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "error": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(WaitlistError):
    """Raised when a daycare, choice, placement or application does not exist"""

    http_status = 404

    def __init__(
        self,
        message: str,
        resource_type: str | None = None,
        resource_id: UUID | str | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message, "NOT_FOUND", details)
        self.resource_type = resource_type
        self.resource_id = resource_id

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["resource"] = {
            "type": self.resource_type,
            "id": str(self.resource_id) if self.resource_id is not None else None
        }
        return result


class ForbiddenError(WaitlistError):
    """Raised when an authenticated user may not act on a daycare"""

    http_status = 403

    def __init__(self, message: str = "Access denied", details: dict[str, Any] | None = None):
        super().__init__(message, "ACCESS_DENIED", details)


class AuthenticationError(WaitlistError):
    """Raised when the upstream identity headers are missing or malformed"""

    http_status = 401

    def __init__(self, message: str = "Authentication required", details: dict[str, Any] | None = None):
        super().__init__(message, "AUTHENTICATION_REQUIRED", details)


class InvalidStatusError(WaitlistError):
    """Raised for a status value outside the set an admin may assign"""

    http_status = 400

    def __init__(
        self,
        status: Any,
        allowed: list[str] | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__("Invalid status", "INVALID_STATUS", details)
        self.status = status
        self.allowed = allowed or []

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["status_info"] = {
            "requested": self.status,
            "allowed": self.allowed
        }
        return result


class ValidationError(WaitlistError):
    """Exception raised when request data is inconsistent"""

    http_status = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message, "VALIDATION_FAILED", details)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["validation_info"] = {
            "field": self.field,
            "value": self.value
        }
        return result


class PlacementConflictError(WaitlistError):
    """Raised when accepting a choice would give a child a second active placement"""

    http_status = 409

    def __init__(
        self,
        message: str,
        child_id: UUID | None = None,
        placement_id: UUID | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message, "PLACEMENT_CONFLICT", details)
        self.child_id = child_id
        self.placement_id = placement_id

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["conflict"] = {
            "child_id": str(self.child_id) if self.child_id else None,
            "placement_id": str(self.placement_id) if self.placement_id else None
        }
        return result


class ActiveApplicationExistsError(WaitlistError):
    """Raised when a child already has a pending or waitlisted application"""

    http_status = 409

    def __init__(self, child_id: UUID, details: dict[str, Any] | None = None):
        super().__init__("Child already has an active application", "ACTIVE_APPLICATION_EXISTS", details)
        self.child_id = child_id


class TransactionFailure(WaitlistError):
    """Persistence error inside a multi-step commit; the transaction was rolled back"""

    http_status = 500

    def __init__(self, message: str = "Internal server error", details: dict[str, Any] | None = None):
        super().__init__(message, "TRANSACTION_FAILED", details)

    def to_dict(self) -> dict[str, Any]:
        # underlying database messages stay in the logs
        return {
            "error": "InternalError",
            "error_code": self.error_code,
            "message": "Internal server error",
            "details": {}
        }
