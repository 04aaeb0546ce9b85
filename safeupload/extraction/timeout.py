from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

from safeupload.extraction.base import BaseTextExtractor
from safeupload.extraction.exceptions import ExtractionTimeoutError


class TimeoutExtractor(BaseTextExtractor):
    """Bounds the wall-clock time of another extractor.

    The wrapped call runs on a small thread pool; when the budget is spent the
    caller gets ExtractionTimeoutError while the engine thread finishes in the
    background.
    """

    def __init__(
        self,
        inner: BaseTextExtractor,
        timeout_seconds: float,
        max_workers: int = 4,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self._inner = inner
        self._timeout_seconds = timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="extract",
        )

    @property
    def inner(self) -> BaseTextExtractor:
        return self._inner

    def supports(self, content_type: str) -> bool:
        return self._inner.supports(content_type)

    def extract_text(self, content: bytes, content_type: str) -> str:
        future = self._executor.submit(self._inner.extract_text, content, content_type)
        try:
            return future.result(timeout=self._timeout_seconds)
        except FuturesTimeoutError as exc:
            future.cancel()
            raise ExtractionTimeoutError(
                f"extraction did not finish within {self._timeout_seconds}s"
            ) from exc

    def is_available(self) -> bool:
        return self._inner.is_available()

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._inner.close()
