"""
Domain errors for the registration core.

Each error is an HTTPException so services can raise it directly and
FastAPI renders {"detail": ...} with the matching status code.
"""

from typing import Optional

from fastapi import HTTPException, status


class DuplicateEmail(HTTPException):
    def __init__(self, email: str):
        self.email = email
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="This email is already registered. Only one registration per person is allowed.",
        )


class CapacityExceeded(HTTPException):
    def __init__(self, region: str):
        self.region = region
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{region} is at capacity; cannot confirm another registration",
        )


class InvalidCapacity(HTTPException):
    def __init__(self, region: str, requested: int, confirmed_count: int):
        self.region = region
        self.requested = requested
        self.confirmed_count = confirmed_count
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Cannot set max for {region} to {requested}: "
                f"below current confirmed count ({confirmed_count})"
            ),
        )


class UnknownRegion(HTTPException):
    def __init__(self, region: str):
        self.region = region
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown region: {region}",
        )


class InvalidStatus(HTTPException):
    def __init__(self, status_value: str):
        self.status_value = status_value
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown status: {status_value}",
        )


class NotFound(HTTPException):
    def __init__(self, registration_id: int):
        self.registration_id = registration_id
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Registration {registration_id} not found",
        )


class StorageUnavailable(HTTPException):
    """Backing database unreachable or failed mid-operation. Retryable."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        self.operation = operation
        self.reason = reason
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Registration storage is temporarily unavailable. Please try again.",
            headers={"Retry-After": "5"},
        )


class RegistrationClosed(HTTPException):
    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=message,
        )
