"""
exceptions.py

Error taxonomy shared by the catalog store, the TMDB gateway and the API layer.
"""
from typing import Optional


class CatalogError(Exception):
    """Base exception for catalog and gateway errors."""
    pass


class NotFoundError(CatalogError):
    """Raised by write paths and handlers when a referenced record is absent."""
    pass


class ConflictError(CatalogError):
    """Raised when a write violates a uniqueness or integrity constraint."""
    pass


class ValidationError(CatalogError):
    """Raised when input is malformed or missing required fields."""
    pass


class UpstreamUnavailableError(CatalogError):
    """Raised when the TMDB API is unreachable, misconfigured or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
