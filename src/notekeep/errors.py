"""Exception types for Notekeep."""


class NotekeepError(Exception):
    """Base class for Notekeep errors."""


class StorageError(NotekeepError):
    """A blob backend failed to read or write."""
