"""Custom exceptions for the catalog store."""


class StoreError(Exception):
    """Base exception for catalog store operations."""


class StoreUnavailableError(StoreError):
    """Raised when the store cannot be reached or a query fails."""


class StoreDataError(StoreUnavailableError):
    """Raised when the store returns a row that does not fit the models."""
