import hashlib

CHECKSUM_ALGORITHM = "sha256"


def compute_checksum(content: bytes) -> str:
    """Return the lower-case hex SHA-256 digest of content (64 characters)."""
    return hashlib.new(CHECKSUM_ALGORITHM, content).hexdigest()
