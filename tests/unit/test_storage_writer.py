import hashlib
import threading
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from safeupload.storage.checksum import compute_checksum
from safeupload.storage.exceptions import (
    StorageConfigurationError,
    StorageError,
    UnsafeStoragePathError,
)
from safeupload.storage.local_writer import LocalStorageWriter, partition_path
from safeupload.storage.models import StorageDescriptor
from safeupload.upload.sanitizer import build_stored_filename

NOW = datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc)
STORED_NAME = "0b7c1f8e-3d0a-4f53-9a4c-2f1e5d6b7a80_report.pdf"


def _store(
    storage: LocalStorageWriter,
    content: bytes = b"%PDF-1.4 body",
    name: str = STORED_NAME,
) -> StorageDescriptor:
    return storage.store(
        content,
        name,
        NOW,
        original_filename="report.PDF",
        content_type="application/pdf",
    )


def _files_under(root: Path) -> list[Path]:
    return [path for path in root.rglob("*") if path.is_file()]


class TestChecksum:
    def test_is_deterministic_sha256_hex(self) -> None:
        first = compute_checksum(b"abc")
        second = compute_checksum(b"abc")
        assert first == second
        assert len(first) == 64
        assert first == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_is_lowercase(self) -> None:
        digest = compute_checksum(b"\x00\xff")
        assert digest == digest.lower()


class TestConstruction:
    def test_resolves_root_to_absolute_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        storage = LocalStorageWriter("./uploads")
        assert storage.root == (tmp_path / "uploads").resolve()
        assert storage.root.is_dir()

    @pytest.mark.parametrize("root", ["", "   "])
    def test_rejects_empty_root(self, root: str) -> None:
        with pytest.raises(StorageConfigurationError, match="not configured"):
            LocalStorageWriter(root)

    def test_rejects_traversal_segments(self, tmp_path: Path) -> None:
        with pytest.raises(StorageConfigurationError, match=r"\.\."):
            LocalStorageWriter(f"{tmp_path}/uploads/../elsewhere")

    def test_expands_home_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.chdir(tmp_path)
        storage = LocalStorageWriter("~/uploads")
        assert storage.root == (tmp_path / "uploads").resolve()
        assert not (tmp_path / "~").exists()

    def test_rejects_unknown_user_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(StorageConfigurationError, match="home directory"):
            LocalStorageWriter("~no-such-user-safeupload/uploads")
        assert not (tmp_path / "~no-such-user-safeupload").exists()

    def test_rejects_root_that_is_a_file(self, tmp_path: Path) -> None:
        blocker = tmp_path / "uploads"
        blocker.write_bytes(b"")
        with pytest.raises(StorageConfigurationError):
            LocalStorageWriter(blocker)


class TestStore:
    def test_writes_under_date_partition(self, storage: LocalStorageWriter, storage_root: Path) -> None:
        descriptor = _store(storage)

        expected = storage_root.resolve() / "2024" / "03" / "05" / STORED_NAME
        assert descriptor.storage_path == str(expected)
        assert descriptor.relative_path == f"2024/03/05/{STORED_NAME}"
        assert expected.read_bytes() == b"%PDF-1.4 body"

    def test_descriptor_fields(self, storage: LocalStorageWriter) -> None:
        descriptor = _store(storage, content=b"12345")

        assert descriptor.original_filename == "report.PDF"
        assert descriptor.stored_filename == STORED_NAME
        assert descriptor.content_type == "application/pdf"
        assert descriptor.size == 5
        assert descriptor.upload_timestamp == NOW
        assert descriptor.checksum == hashlib.sha256(b"12345").hexdigest()

    def test_replaces_file_at_same_path(self, storage: LocalStorageWriter) -> None:
        _store(storage, content=b"first")
        descriptor = _store(storage, content=b"second")
        assert Path(descriptor.storage_path).read_bytes() == b"second"

    def test_existing_partition_is_not_an_error(self, storage: LocalStorageWriter) -> None:
        partition_path(storage.root, NOW).mkdir(parents=True)
        descriptor = _store(storage)
        assert Path(descriptor.storage_path).exists()

    def test_concurrent_writers_share_partition(self, storage: LocalStorageWriter) -> None:
        errors: list[Exception] = []
        names = [build_stored_filename("photo.jpg") for _ in range(16)]
        barrier = threading.Barrier(len(names))

        def _write(name: str) -> None:
            barrier.wait()
            try:
                _store(storage, content=name.encode(), name=name)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=_write, args=(name,)) for name in names]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        partition = partition_path(storage.root, NOW)
        assert sorted(p.name for p in partition.iterdir()) == sorted(names)

    def test_traversal_original_name_stays_under_root(self, storage: LocalStorageWriter) -> None:
        name = build_stored_filename("../../etc/passwd")
        descriptor = _store(storage, name=name)
        assert Path(descriptor.storage_path).resolve().is_relative_to(storage.root)

    def test_long_multibyte_original_name_is_stored(self, storage: LocalStorageWriter) -> None:
        name = build_stored_filename("検査結果" * 25 + ".pdf")
        descriptor = _store(storage, name=name)

        assert Path(descriptor.storage_path).read_bytes() == b"%PDF-1.4 body"
        assert descriptor.stored_filename.endswith(".pdf")

    @pytest.mark.parametrize("name", ["", ".", "..", "../escape.pdf", "a/b.pdf", "a\\b.pdf", "a\x00b.pdf"])
    def test_rejects_non_bare_names(self, storage: LocalStorageWriter, name: str) -> None:
        with pytest.raises(UnsafeStoragePathError):
            _store(storage, name=name)
        assert list(storage.root.iterdir()) == []

    def test_checksum_failure_keeps_file(self, storage: LocalStorageWriter) -> None:
        with patch(
            "safeupload.storage.local_writer.compute_checksum",
            side_effect=ValueError("unsupported hash type"),
        ):
            descriptor = _store(storage)

        assert descriptor.checksum is None
        assert Path(descriptor.storage_path).exists()


class TestWriteFailure:
    def test_raises_generic_error_and_removes_partial_file(
        self, storage: LocalStorageWriter, tmp_path: Path
    ) -> None:
        real_open = open

        def _open_then_fail(path, mode="r", *args, **kwargs):  # type: ignore[no-untyped-def]
            handle = real_open(path, mode, *args, **kwargs)
            handle.close()
            raise OSError("No space left on device")

        with patch("builtins.open", side_effect=_open_then_fail):
            with pytest.raises(StorageError) as exc_info:
                _store(storage)

        assert str(exc_info.value) == "Failed to store file"
        assert str(tmp_path) not in str(exc_info.value)
        assert _files_under(storage.root) == []

    def test_partition_creation_failure(self, storage: LocalStorageWriter) -> None:
        with patch.object(Path, "mkdir", side_effect=PermissionError("denied")):
            with pytest.raises(StorageError, match="prepare storage directory"):
                _store(storage)


class TestRetrieval:
    def test_read_and_exists(self, storage: LocalStorageWriter) -> None:
        descriptor = _store(storage, content=b"payload")
        assert storage.exists(descriptor.relative_path)
        assert storage.read(descriptor.relative_path) == b"payload"

    def test_missing_file(self, storage: LocalStorageWriter) -> None:
        assert not storage.exists("2024/03/05/missing.pdf")
        with pytest.raises(FileNotFoundError, match="missing.pdf"):
            storage.read("2024/03/05/missing.pdf")

    @pytest.mark.parametrize("relative", ["../outside.pdf", "2024/../../outside.pdf", "/etc/passwd"])
    def test_resolve_refuses_escape(self, storage: LocalStorageWriter, relative: str) -> None:
        with pytest.raises(UnsafeStoragePathError):
            storage.resolve(relative)
