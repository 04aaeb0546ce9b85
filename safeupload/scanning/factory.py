from safeupload.config.settings import Settings
from safeupload.scanning.base import BaseScanner
from safeupload.scanning.clamav_adapter import ClamAvRestAdapter
from safeupload.scanning.eicar_adapter import EicarScannerAdapter


class ScannerFactory:
    """Creates the configured scanning adapter."""

    ENGINES: tuple[str, ...] = ("clamav", "eicar")

    @classmethod
    def create(cls, settings: Settings) -> BaseScanner:
        engine = settings.scanner_engine.lower()
        if engine == "clamav":
            return ClamAvRestAdapter(
                base_url=settings.clamav_api_url,
                timeout_seconds=settings.clamav_timeout_seconds,
            )
        if engine == "eicar":
            return EicarScannerAdapter()
        raise ValueError(
            f"Unknown scanner engine '{engine}'. Choose from: {list(cls.ENGINES)}"
        )
