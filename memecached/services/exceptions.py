"""Exceptions raised by the catalog services."""

from __future__ import annotations


class CatalogError(Exception):
    """Base exception for catalog errors."""

    def __init__(self, message: str, code: str = "CATALOG_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationFailedError(CatalogError):
    """Raised when a request body or query fails validation.

    Only the first violated constraint is reported.
    """

    def __init__(self, message: str, field: str = "body"):
        self.field = field
        super().__init__(message, "VALIDATION_FAILED")

    @property
    def detail(self) -> str:
        if self.field == "body":
            return self.message
        return f"{self.field}: {self.message}"


class MemeNotFoundError(CatalogError):
    """Raised when a meme does not exist or is not owned by the caller.

    The two cases are deliberately indistinguishable.
    """

    def __init__(self, message: str = "Meme not found"):
        super().__init__(message, "NOT_FOUND")


class ForbiddenError(CatalogError):
    """Raised when a batch names memes the caller does not own."""

    def __init__(self, message: str = "Some memes not found or not owned by user"):
        super().__init__(message, "FORBIDDEN")


class UpstreamError(CatalogError):
    """Raised when object storage or the row store fails after validation."""

    def __init__(self, message: str):
        super().__init__(message, "UPSTREAM_FAILURE")
