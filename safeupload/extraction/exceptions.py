class ExtractionError(Exception):
    """Raised when text extraction fails for any reason."""


class UnsupportedContentTypeError(ExtractionError):
    """Raised when an engine cannot read the given content type."""


class ExtractionTimeoutError(ExtractionError):
    """Raised when an engine does not finish within its time budget."""
