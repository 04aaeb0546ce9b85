class StorageError(Exception):
    """Base exception for all storage-related errors."""


class StorageConfigurationError(StorageError):
    """Raised when the storage root is missing, unsafe or unusable."""


class UnsafeStoragePathError(StorageError):
    """Raised when a name or path would address content outside the storage root."""
