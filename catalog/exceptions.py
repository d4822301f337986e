"""
Exceptions raised by the catalog service and persistence layers.

The API layer maps each of these to an HTTP status code; see
catalog.api.errors.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""
    pass


class ProductValidationError(CatalogError):
    """Raised when product input is malformed (blank name, negative price or stock)."""
    pass


class DuplicateNameError(CatalogError):
    """Raised when a product with the same name already exists."""
    pass


class ProductNotFoundError(CatalogError):
    """Exception raised when the requested product doesn't exist."""
    pass


class StorageUnavailableError(CatalogError):
    """Raised when the backing store cannot be reached or fails unexpectedly."""
    pass
