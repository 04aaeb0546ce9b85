class ScannerError(Exception):
    """Raised when a scanning engine cannot produce a verdict."""
