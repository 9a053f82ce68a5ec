"""Exception types shared by the storage layer, services and routes."""


class CatalogError(Exception):
    """Base class for catalog errors."""


class InvalidInputError(CatalogError, ValueError):
    """Caller supplied malformed input; never retried."""


class StorageError(CatalogError):
    """The database could not be reached or a statement failed."""

    def __init__(self, message: str = "unable to access storage"):
        super().__init__(message)


class FatalSetupError(CatalogError):
    """Schema drop/create failed; the database state is unknown."""
