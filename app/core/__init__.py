"""Core application modules: exceptions, middleware, record immutability."""

from app.core.exceptions import (
    AppException,
    ConflictingUpdate,
    ExternalServiceError,
    InvalidInput,
    InvalidTransition,
    NotFoundError,
    RateUnavailable,
    SlotUnavailable,
)

__all__ = [
    "AppException",
    "ConflictingUpdate",
    "ExternalServiceError",
    "InvalidInput",
    "InvalidTransition",
    "NotFoundError",
    "RateUnavailable",
    "SlotUnavailable",
]
