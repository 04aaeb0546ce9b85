import threading
from unittest.mock import MagicMock

from safeupload.upload.models import UploadFailed, UploadRequest
from safeupload.upload.orchestrator import UploadOrchestrator
from safeupload.worker.pool import UploadWorkerPool


def _make_request(name: str) -> UploadRequest:
    return UploadRequest(original_filename=name, content_type="application/pdf", content=b"x")


class TestUploadWorkerPool:
    def test_outcomes_keep_input_order(self) -> None:
        orchestrator = MagicMock(spec=UploadOrchestrator)
        orchestrator.process.side_effect = lambda request: UploadFailed(request.original_filename)

        with UploadWorkerPool(orchestrator, max_workers=3) as pool:
            outcomes = pool.process_all([_make_request(f"{i}.pdf") for i in range(6)])

        assert outcomes == [UploadFailed(f"{i}.pdf") for i in range(6)]

    def test_runs_requests_concurrently(self) -> None:
        barrier = threading.Barrier(2, timeout=5)
        orchestrator = MagicMock(spec=UploadOrchestrator)

        def _process(request: UploadRequest) -> UploadFailed:
            barrier.wait()
            return UploadFailed("done")

        orchestrator.process.side_effect = _process

        with UploadWorkerPool(orchestrator, max_workers=2) as pool:
            outcomes = pool.process_all([_make_request("a.pdf"), _make_request("b.pdf")])

        assert len(outcomes) == 2

    def test_submit_returns_future(self) -> None:
        orchestrator = MagicMock(spec=UploadOrchestrator)
        orchestrator.process.return_value = UploadFailed("x")
        request = _make_request("a.pdf")

        with UploadWorkerPool(orchestrator, max_workers=1) as pool:
            future = pool.submit(request)
            assert future.result(timeout=5) == UploadFailed("x")

        orchestrator.process.assert_called_once_with(request)
