from pydantic import PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from safeupload.scanning.models import ScannerUnavailablePolicy


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    storage_root: str = "./uploads"
    max_upload_size_bytes: PositiveInt = 10 * 1024 * 1024
    allowed_extensions: list[str] = ["jpg", "jpeg", "png", "pdf"]

    # No default: operators must choose how an unreachable scanner is handled.
    scanner_unavailable_policy: ScannerUnavailablePolicy
    scanner_engine: str = "clamav"
    clamav_api_url: str = "http://localhost:6000"
    clamav_timeout_seconds: PositiveInt = 10

    extraction_engine: str = "pymupdf"
    extraction_timeout_seconds: int = 30
    ocr_language: str = "eng"
    ocr_tessdata: str | None = None

    upload_workers: PositiveInt = 4

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        normalized = [ext.strip().lstrip(".").lower() for ext in value]
        return [ext for ext in normalized if ext]

    @field_validator("scanner_unavailable_policy", mode="before")
    @classmethod
    def _normalize_policy(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value
