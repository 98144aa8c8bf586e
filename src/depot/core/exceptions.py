"""Custom exceptions for Payload Depot."""


class DepotError(Exception):
    """Base exception for Payload Depot."""
    pass


class InputError(DepotError):
    """Exception raised for a missing or invalid request input."""
    pass


class MalformedInputError(InputError):
    """Exception raised when a multipart body cannot be framed."""
    pass


class NotFoundError(DepotError):
    """Exception raised when no stored object matches a lookup."""
    pass


class StorageError(DepotError):
    """Exception raised when storage operations fail."""
    pass


class EncodingError(DepotError):
    """Exception raised when a base64 payload cannot be decoded."""
    pass


class BundleError(DepotError):
    """Exception raised when an archive cannot be written."""
    pass
