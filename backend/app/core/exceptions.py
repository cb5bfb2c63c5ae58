"""
Application error taxonomy.

Services raise these instead of HTTPException so the booking core can be
driven outside a request. The handlers in app.main turn every AppError into
a `{"message": ..., "errors": [...]}` body with the matching status code.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors that carry a client-visible message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    """Malformed input, fare mismatch, seat number out of range."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(AppError):
    """Missing, expired or invalid credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppError):
    """Role or ownership violation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Request is well-formed but clashes with current state."""

    status_code = status.HTTP_409_CONFLICT


class OverbookedError(ConflictError):
    """No seat left on the trip."""


class SeatTakenError(ConflictError):
    """The requested seat already has a ticket on this trip."""

    def __init__(self, seat_number: int):
        self.seat_number = seat_number
        super().__init__(f"Seat number {seat_number} is already booked on this trip.")


class TransientError(AppError):
    """Store failure or timeout. Safe to retry."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
