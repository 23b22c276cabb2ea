"""Catalog-specific exceptions for error handling."""


class CatalogError(Exception):
    """Base exception for catalog API operations."""

    pass


class CatalogRequestError(CatalogError):
    """Raised when the HTTP request fails or returns a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class CatalogResponseError(CatalogError):
    """Raised when the API answers with success=false or a malformed body."""

    pass
