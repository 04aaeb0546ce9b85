from collections.abc import Iterable

from safeupload.logging.logger import Log, sanitize_for_log
from safeupload.upload.models import Rejection, RejectionReason, UploadRequest
from safeupload.upload.sanitizer import split_extension


class UploadValidator:
    """Rejects malformed, oversized or disallowed uploads before any side effect."""

    def __init__(self, max_size_bytes: int, allowed_extensions: Iterable[str]) -> None:
        if max_size_bytes <= 0:
            raise ValueError("max_size_bytes must be positive")
        self._max_size_bytes = max_size_bytes
        self._allowed_extensions = frozenset(
            ext.strip().lstrip(".").lower() for ext in allowed_extensions
        )

    @property
    def allowed_extensions(self) -> frozenset[str]:
        return self._allowed_extensions

    def validate(self, request: UploadRequest) -> Rejection | None:
        """Check the request; return the first rule it breaks, or None.

        Rules, in order: empty content, size limit, NUL byte in the name,
        extension allow-set, ".." in the name.
        """
        filename = request.original_filename or ""
        safe_name = sanitize_for_log(filename)

        if request.size == 0:
            Log.warning(f"Validation failed: empty file {safe_name}")
            return Rejection(RejectionReason.EMPTY_FILE, "Cannot store empty file")

        size_rejection = self.check_size(request.size)
        if size_rejection is not None:
            return size_rejection

        if "\x00" in filename:
            Log.warning(f"Validation failed: NUL byte in filename {safe_name}")
            return Rejection(RejectionReason.UNSAFE_NAME, "Filename contains NUL bytes")

        _, extension = split_extension(filename)
        extension = extension.lower()
        if extension not in self._allowed_extensions:
            Log.warning(
                f"Validation failed: type '{sanitize_for_log(extension)}' not in "
                f"{sorted(self._allowed_extensions)}"
            )
            return Rejection(
                RejectionReason.DISALLOWED_TYPE,
                f"File type not allowed: {sanitize_for_log(extension) or '(none)'}",
            )

        if ".." in filename:
            Log.warning(f"Validation failed: path sequence in filename {safe_name}")
            return Rejection(
                RejectionReason.UNSAFE_NAME,
                "Filename contains invalid path sequence",
            )

        Log.debug(f"Validation passed for {safe_name}")
        return None

    def check_size(self, size: int) -> Rejection | None:
        """Apply the size limit alone, e.g. before a file is read into memory."""
        if size > self._max_size_bytes:
            Log.warning(f"Validation failed: size {size} exceeds maximum {self._max_size_bytes}")
            return Rejection(
                RejectionReason.SIZE_EXCEEDED,
                "File size exceeds maximum allowed size",
            )
        return None
