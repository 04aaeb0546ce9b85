from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

UPLOADED_AT_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class RejectionReason(str, Enum):
    EMPTY_FILE = "empty_file"
    SIZE_EXCEEDED = "size_exceeded"
    DISALLOWED_TYPE = "disallowed_type"
    UNSAFE_NAME = "unsafe_name"
    INFECTED = "infected"
    SCANNER_UNAVAILABLE = "scanner_unavailable"


@dataclass(frozen=True)
class UploadRequest:
    """One untrusted upload, discarded after processing."""

    original_filename: str
    content_type: str | None
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class Rejection:
    """A client-visible reason for refusing an upload."""

    reason: RejectionReason
    message: str


@dataclass(frozen=True)
class UploadResult:
    """What the caller gets back for a completed upload."""

    filename: str
    size: int
    mime_type: str
    extracted_text: str
    uploaded_at: datetime
    scan_passed: bool
    storage_path: str

    def to_dict(self) -> dict[str, object]:
        uploaded_at = self.uploaded_at
        if uploaded_at.tzinfo is not None:
            uploaded_at = uploaded_at.astimezone(timezone.utc)
        return {
            "filename": self.filename,
            "size": self.size,
            "mimeType": self.mime_type,
            "extractedText": self.extracted_text,
            "uploadedAt": uploaded_at.strftime(UPLOADED_AT_FORMAT),
            "scanPassed": self.scan_passed,
            "storagePath": self.storage_path,
        }


@dataclass(frozen=True)
class UploadCompleted:
    result: UploadResult

    def to_dict(self) -> dict[str, object]:
        return {"status": "completed", **self.result.to_dict()}


@dataclass(frozen=True)
class UploadRejected:
    reason: RejectionReason
    message: str

    def to_dict(self) -> dict[str, object]:
        return {"status": "rejected", "reason": self.reason.value, "message": self.message}


@dataclass(frozen=True)
class UploadFailed:
    """A server-side fault; the message never contains internal paths."""

    message: str

    def to_dict(self) -> dict[str, object]:
        return {"status": "failed", "message": self.message}


UploadOutcome = UploadCompleted | UploadRejected | UploadFailed
