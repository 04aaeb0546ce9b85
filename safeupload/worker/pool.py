from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from types import TracebackType

from safeupload.logging.logger import Log
from safeupload.upload.models import UploadOutcome, UploadRequest
from safeupload.upload.orchestrator import UploadOrchestrator


class UploadWorkerPool:
    """Runs each upload on its own worker thread.

    Workers share only the orchestrator, whose storage root is fixed at
    startup and whose adapters are thread-safe.
    """

    def __init__(self, orchestrator: UploadOrchestrator, max_workers: int) -> None:
        self._orchestrator = orchestrator
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="upload",
        )

    def submit(self, request: UploadRequest) -> "Future[UploadOutcome]":
        return self._executor.submit(self._orchestrator.process, request)

    def process_all(self, requests: Iterable[UploadRequest]) -> list[UploadOutcome]:
        """Process requests concurrently; outcomes keep the input order."""
        futures = [self.submit(request) for request in requests]
        Log.info(f"Dispatched {len(futures)} uploads")
        return [future.result() for future in futures]

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "UploadWorkerPool":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()
