import time
from typing import ClassVar

import httpx

from safeupload.logging.logger import Log, sanitize_for_log
from safeupload.scanning.base import BaseScanner
from safeupload.scanning.exceptions import ScannerError
from safeupload.scanning.models import Clean, Infected, ScanVerdict, Unavailable


class ClamAvRestAdapter(BaseScanner):
    """Scans content through a ClamAV REST service.

    One httpx.Client is shared by all workers; httpx clients are thread-safe
    and the configured timeout bounds every call.
    """

    SCAN_PATH: ClassVar[str] = "/api/scan"
    HEALTH_PATH: ClassVar[str] = "/api/health-check"

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    def scan(self, content: bytes) -> ScanVerdict:
        started = time.monotonic()
        try:
            payload = self._post_scan(content)
        except ScannerError as exc:
            Log.error(f"ClamAV scan failed: {exc}")
            return Unavailable(reason=str(exc))

        elapsed_ms = int((time.monotonic() - started) * 1000)
        status = sanitize_for_log(payload.get("status", "")).upper()
        message = sanitize_for_log(payload.get("message") or "")
        if status == "OK":
            Log.info(f"ClamAV scan completed in {elapsed_ms}ms - CLEAN")
            return Clean()
        if status == "FOUND":
            Log.warning(f"ClamAV scan completed in {elapsed_ms}ms - FOUND {message}")
            return Infected(signature=message or "unknown")
        Log.error(f"ClamAV returned status '{status}': {message}")
        return Unavailable(reason=f"scanner error: {message or status or 'no status'}")

    def _post_scan(self, content: bytes) -> dict[str, object]:
        try:
            response = self._client.post(
                self.SCAN_PATH,
                files={"file": ("upload", content, "application/octet-stream")},
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ScannerError(f"ClamAV timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ScannerError(f"ClamAV request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise ScannerError("ClamAV returned a non-JSON body") from exc
        if not isinstance(payload, dict):
            raise ScannerError("ClamAV returned an unexpected body")
        return payload

    def is_available(self) -> bool:
        try:
            response = self._client.get(self.HEALTH_PATH)
        except httpx.HTTPError as exc:
            Log.warning(f"ClamAV service not available: {exc}")
            return False
        return response.status_code == 200

    def close(self) -> None:
        self._client.close()
