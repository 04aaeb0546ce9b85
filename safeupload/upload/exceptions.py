class UploadError(Exception):
    """Base exception for upload pipeline errors."""


class IllegalTransitionError(UploadError):
    """Raised when a pipeline step produces an outcome its state does not allow."""
