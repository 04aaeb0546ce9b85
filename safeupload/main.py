import argparse
import json
import mimetypes
import sys
from pathlib import Path

from safeupload.config.settings import Settings
from safeupload.logging.logger import Log, sanitize_for_log
from safeupload.upload.models import (
    UploadCompleted,
    UploadFailed,
    UploadOutcome,
    UploadRejected,
    UploadRequest,
)
from safeupload.upload.orchestrator import build_orchestrator
from safeupload.upload.validator import UploadValidator
from safeupload.worker.pool import UploadWorkerPool


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="safeupload",
        description="Validate, scan, extract and store local files.",
    )
    parser.add_argument("files", nargs="+", type=Path, help="files to upload")
    parser.add_argument(
        "--content-type",
        default=None,
        help="declared content type for every file (guessed per file when omitted)",
    )
    return parser.parse_args(argv)


def _read_request(
    path: Path,
    content_type: str | None,
    validator: UploadValidator,
) -> UploadRequest | UploadOutcome:
    """Load one local file, or explain why it never reaches the pipeline.

    The size limit is checked on the file's metadata so an oversized file is
    never read into memory.
    """
    try:
        if not path.is_file():
            Log.error(f"Not a readable file: {sanitize_for_log(path)}")
            return UploadFailed(message=f"File not found: {path.name}")
        rejection = validator.check_size(path.stat().st_size)
        if rejection is not None:
            return UploadRejected(reason=rejection.reason, message=rejection.message)
        content = path.read_bytes()
    except OSError as exc:
        Log.error(f"Failed to read {sanitize_for_log(path)}: {exc}")
        return UploadFailed(message=f"File could not be read: {path.name}")

    return UploadRequest(
        original_filename=path.name,
        content_type=content_type or mimetypes.guess_type(path.name)[0],
        content=content,
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> build pipeline -> upload files concurrently."""
    args = _parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    validator = UploadValidator(
        max_size_bytes=settings.max_upload_size_bytes,
        allowed_extensions=settings.allowed_extensions,
    )
    loaded = [_read_request(path, args.content_type, validator) for path in args.files]
    requests = [item for item in loaded if isinstance(item, UploadRequest)]

    with build_orchestrator(settings) as orchestrator:
        with UploadWorkerPool(orchestrator, settings.upload_workers) as pool:
            processed = iter(pool.process_all(requests))

    outcomes = [next(processed) if isinstance(item, UploadRequest) else item for item in loaded]
    for outcome in outcomes:
        print(json.dumps(outcome.to_dict()))
    return 0 if all(isinstance(o, UploadCompleted) for o in outcomes) else 1


if __name__ == "__main__":
    sys.exit(main())
