from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StorageDescriptor:
    """Metadata describing one stored file."""

    original_filename: str  # display only, never used to address storage
    stored_filename: str  # "{uuid}_{base}.{ext}"
    content_type: str
    size: int
    storage_path: str  # absolute, always under the storage root
    relative_path: str  # "yyyy/MM/dd/{stored_filename}"
    upload_timestamp: datetime
    checksum: str | None = None  # hex SHA-256, None if it could not be computed
