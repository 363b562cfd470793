"""Shared utilities: logging and error types."""

from .exceptions import (
    ActiveApplicationExistsError,
    AuthenticationError,
    ForbiddenError,
    InvalidStatusError,
    NotFoundError,
    PlacementConflictError,
    TransactionFailure,
    ValidationError,
    WaitlistError,
)
from .logger import get_logger

__all__ = [
    "WaitlistError",
    "NotFoundError",
    "ForbiddenError",
    "AuthenticationError",
    "InvalidStatusError",
    "ValidationError",
    "PlacementConflictError",
    "ActiveApplicationExistsError",
    "TransactionFailure",
    "get_logger",
]
