"""Exceptions raised by the store, geocoder and photo pipeline."""

from typing import Optional


class AppraisalError(Exception):
    """Base exception for the appraisal service."""


class ConfigurationError(AppraisalError):
    """Required settings are missing or invalid."""


class LoginRequired(AppraisalError):
    """No authenticated user, or the user has no profile row."""


class StoreError(AppraisalError):
    """
    A call into the remote store failed.

    Attributes:
        message: The platform's message, shown to the user verbatim
        code: Platform error code (Postgres SQLSTATE for table calls), if any
    """

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class UniqueViolation(StoreError):
    """Insert hit a unique constraint (Postgres 23505)."""

    CODE = "23505"

    def __init__(self, message: str):
        super().__init__(message, code=self.CODE)


class ClaimNotFound(AppraisalError):
    """No claim row with the requested id."""


class InvalidTransition(AppraisalError):
    """A status change the transition table does not allow."""


class GeocodeError(AppraisalError):
    """The geocoding lookup failed in transport or returned garbage."""


class PhotoProcessingError(AppraisalError):
    """An uploaded file could not be decoded or compressed."""
