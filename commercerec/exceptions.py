"""Custom exceptions for CommerceRec.

Defines specific exception types for better error handling and reporting.
Each one carries the HTTP status code the API layer answers with.
"""

from typing import Any, Dict, Optional


class CommerceRecException(Exception):
    """Base exception for CommerceRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class InvalidArgumentError(CommerceRecException):
    """Raised when a caller passes an argument outside its valid domain."""

    def __init__(self, argument: str, value: Any, reason: str):
        message = f"Invalid {argument} {value!r}: {reason}"
        super().__init__(
            message=message,
            status_code=400,
            details={"argument": argument, "value": value, "reason": reason},
        )


class NotFoundError(CommerceRecException):
    """Raised when a referenced item, user or rating does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        message = f"{entity.capitalize()} {entity_id} not found"
        super().__init__(
            message=message,
            status_code=404,
            details={"entity": entity, "id": entity_id},
        )


class StorageUnavailableError(CommerceRecException):
    """Raised when the rating store or catalog cannot be reached at all."""

    def __init__(self, source: str, error: Optional[Exception] = None):
        message = f"Storage '{source}' is unavailable"
        details: Dict[str, Any] = {"source": source}
        if error is not None:
            message = f"{message}: {error}"
            details["error"] = str(error)
            details["error_type"] = type(error).__name__
        super().__init__(message=message, status_code=503, details=details)


class RatingOwnershipError(CommerceRecException):
    """Raised when a user tries to change a rating that belongs to someone else."""

    def __init__(self, user_id: int, rating_id: int):
        message = f"Rating {rating_id} does not belong to user {user_id}"
        super().__init__(
            message=message,
            status_code=403,
            details={"user_id": user_id, "rating_id": rating_id},
        )
