from pathlib import Path

import pytest

from safeupload.config.settings import Settings
from safeupload.upload.orchestrator import UploadOrchestrator, build_orchestrator


@pytest.fixture
def integration_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Offline stack: EICAR scanner, pdfplumber extraction, temporary storage root."""
    monkeypatch.setenv("SCANNER_UNAVAILABLE_POLICY", "fail_closed")
    monkeypatch.setenv("SCANNER_ENGINE", "eicar")
    monkeypatch.setenv("EXTRACTION_ENGINE", "pdfplumber")
    monkeypatch.setenv("EXTRACTION_TIMEOUT_SECONDS", "10")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "uploads"))
    return Settings()


@pytest.fixture
def orchestrator(integration_settings: Settings) -> UploadOrchestrator:
    return build_orchestrator(integration_settings)
