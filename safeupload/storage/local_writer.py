import os
from datetime import datetime
from pathlib import Path

from safeupload.logging.logger import Log, sanitize_for_log
from safeupload.storage.checksum import compute_checksum
from safeupload.storage.exceptions import (
    StorageConfigurationError,
    StorageError,
    UnsafeStoragePathError,
)
from safeupload.storage.models import StorageDescriptor


def partition_path(root: Path, moment: datetime) -> Path:
    """Build the date partition directory: {root}/{yyyy}/{MM}/{dd}"""
    return root / f"{moment.year:04d}" / f"{moment.month:02d}" / f"{moment.day:02d}"


class LocalStorageWriter:
    """Persists upload bytes under a fixed root with a date-partitioned layout.

    The root is resolved once, here; requests only ever contribute a bare,
    sanitized file name. No lock guards writes: stored names are unique, and
    concurrent creation of the same partition directory is not an error.
    """

    def __init__(self, root: str | Path) -> None:
        raw = str(root).strip()
        if not raw:
            raise StorageConfigurationError("Storage root is not configured")
        if ".." in Path(raw).parts:
            raise StorageConfigurationError(
                f"Storage root must not contain '..' segments: {raw}"
            )
        try:
            expanded = Path(raw).expanduser()
        except RuntimeError as exc:
            raise StorageConfigurationError(
                f"Storage root home directory cannot be determined: {raw}"
            ) from exc
        if expanded.parts and expanded.parts[0].startswith("~"):
            raise StorageConfigurationError(f"Storage root has an unknown home directory: {raw}")
        self._root = expanded.resolve()
        self._prepare_root()
        Log.info(f"Storage initialized at {self._root}")

    @property
    def root(self) -> Path:
        return self._root

    def _prepare_root(self) -> None:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageConfigurationError(
                f"Could not create storage root '{self._root}': {exc}"
            ) from exc
        if not self._root.is_dir():
            raise StorageConfigurationError(f"Storage root '{self._root}' is not a directory")
        if not os.access(self._root, os.W_OK):
            raise StorageConfigurationError(f"Storage root '{self._root}' is not writable")

    def store(
        self,
        content: bytes,
        stored_filename: str,
        now: datetime,
        *,
        original_filename: str,
        content_type: str,
    ) -> StorageDescriptor:
        """Write content to {root}/{yyyy}/{MM}/{dd}/{stored_filename}.

        Raises:
            UnsafeStoragePathError: if stored_filename is not a bare file name.
            StorageError: if the directory or file cannot be written.
        """
        self._check_bare_name(stored_filename)
        directory = partition_path(self._root, now)
        target = directory / stored_filename
        self._ensure_inside_root(target)

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            Log.error(f"Failed to create partition {directory}: {exc}")
            raise StorageError("Failed to prepare storage directory") from exc

        try:
            with open(target, "wb") as out:
                out.write(content)
        except OSError as exc:
            Log.error(f"Failed to write {target}: {exc}")
            self._remove_partial(target)
            raise StorageError("Failed to store file") from exc

        checksum = self._checksum(content, stored_filename)
        Log.info(
            f"Stored {sanitize_for_log(original_filename)} -> {target} ({len(content)} bytes)"
        )
        return StorageDescriptor(
            original_filename=original_filename,
            stored_filename=stored_filename,
            content_type=content_type,
            size=len(content),
            storage_path=str(target),
            relative_path=target.relative_to(self._root).as_posix(),
            upload_timestamp=now,
            checksum=checksum,
        )

    def resolve(self, relative_path: str) -> Path:
        """Map a stored relative path to its absolute location under the root.

        Raises:
            UnsafeStoragePathError: if the path escapes the storage root.
        """
        if "\x00" in relative_path:
            raise UnsafeStoragePathError("Stored path contains a NUL byte")
        path = (self._root / relative_path).resolve()
        self._ensure_inside_root(path)
        return path

    def exists(self, relative_path: str) -> bool:
        path = self.resolve(relative_path)
        return path.is_file()

    def read(self, relative_path: str) -> bytes:
        """Read a stored file back.

        Raises:
            FileNotFoundError: if nothing is stored at relative_path.
        """
        path = self.resolve(relative_path)
        if not path.is_file():
            raise FileNotFoundError(f"Stored file not found: {relative_path}")
        return path.read_bytes()

    def _check_bare_name(self, name: str) -> None:
        if (
            not name
            or name in (".", "..")
            or "\x00" in name
            or "/" in name
            or "\\" in name
            or Path(name).name != name
        ):
            raise UnsafeStoragePathError(
                f"Stored filename must be a bare file name: {sanitize_for_log(name)}"
            )

    def _ensure_inside_root(self, path: Path) -> None:
        if path != self._root and not path.is_relative_to(self._root):
            raise UnsafeStoragePathError("Path resolves outside the storage root")

    def _remove_partial(self, target: Path) -> None:
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            Log.warning(f"Could not remove partial file {target}: {exc}")

    def _checksum(self, content: bytes, stored_filename: str) -> str | None:
        try:
            return compute_checksum(content)
        except (ValueError, TypeError) as exc:
            Log.warning(f"Failed to calculate checksum for {stored_filename}: {exc}")
            return None
