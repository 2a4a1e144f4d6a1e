"""Domain exceptions raised by the reconciliation stack."""

from __future__ import annotations


class SerieslyError(Exception):
    """Base class for failures surfaced to the routing layer."""

    def __init__(self, message: str, original_exception: Exception | None = None):
        super().__init__(message)
        self.original_exception = original_exception


class AuthenticationError(SerieslyError):
    """TheTVDB refused the login exchange or returned no token."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(message, original_exception)
        self.status_code = status_code


class ProviderError(SerieslyError):
    """A TheTVDB request other than login failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(message, original_exception)
        self.status_code = status_code


class StoreError(SerieslyError):
    """The local database rejected or failed an operation."""


class ConstraintViolation(StoreError):
    """An insert collided with an existing ``tvdb_id``."""
