from collections.abc import Callable
from datetime import datetime, timezone
from types import TracebackType

from safeupload.config.settings import Settings
from safeupload.extraction.base import BaseTextExtractor
from safeupload.extraction.factory import TextExtractorFactory
from safeupload.logging.logger import Log, sanitize_for_log
from safeupload.scanning.base import BaseScanner
from safeupload.scanning.factory import ScannerFactory
from safeupload.scanning.models import ScannerUnavailablePolicy
from safeupload.storage.local_writer import LocalStorageWriter
from safeupload.upload.exceptions import IllegalTransitionError
from safeupload.upload.models import (
    UploadCompleted,
    UploadFailed,
    UploadOutcome,
    UploadRejected,
    UploadRequest,
)
from safeupload.upload.pipeline import (
    Fail,
    PipelineState,
    PipelineStep,
    Reject,
    UploadContext,
)
from safeupload.upload.steps import (
    AssembleStep,
    ExtractStep,
    ScanStep,
    StoreStep,
    ValidateStep,
)
from safeupload.upload.validator import UploadValidator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UploadOrchestrator:
    """Runs the upload state machine.

    Pipeline: validate -> scan -> extract (best effort) -> store -> assemble.
    The orchestrator owns the scanner and extractor for its whole lifetime;
    close() releases them.
    """

    def __init__(
        self,
        *,
        validator: UploadValidator,
        scanner: BaseScanner,
        extractor: BaseTextExtractor,
        storage: LocalStorageWriter,
        unavailable_policy: ScannerUnavailablePolicy,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._scanner = scanner
        self._extractor = extractor
        self._clock = clock
        self._steps: tuple[PipelineStep, ...] = (
            ValidateStep(validator),
            ScanStep(scanner, unavailable_policy),
            ExtractStep(extractor),
            StoreStep(storage),
            AssembleStep(),
        )

    @property
    def steps(self) -> tuple[PipelineStep, ...]:
        return self._steps

    def upload(
        self,
        content: bytes,
        original_filename: str,
        content_type: str | None,
    ) -> UploadOutcome:
        """Process one upload from raw bytes and its client-supplied metadata."""
        return self.process(
            UploadRequest(
                original_filename=original_filename,
                content_type=content_type,
                content=content,
            )
        )

    def process(self, request: UploadRequest) -> UploadOutcome:
        context = UploadContext(request=request, received_at=self._clock())
        Log.info(
            f"Processing upload {sanitize_for_log(request.original_filename)} "
            f"({request.size} bytes)"
        )

        for step in self._steps:
            if context.state is not step.source:
                raise IllegalTransitionError(
                    f"{type(step).__name__} expects {step.source.value}, "
                    f"pipeline is {context.state.value}"
                )
            outcome = step.run(context)
            if isinstance(outcome, Reject):
                self._enter_terminal(step, context, PipelineState.REJECTED)
                return UploadRejected(
                    reason=outcome.rejection.reason,
                    message=outcome.rejection.message,
                )
            if isinstance(outcome, Fail):
                self._enter_terminal(step, context, PipelineState.FAILED)
                return UploadFailed(message=outcome.message)
            context.state = step.target
            Log.debug(f"Upload {context.stored_filename or '-'} -> {context.state.value}")

        if context.result is None:
            raise IllegalTransitionError("Pipeline completed without a result")
        Log.info(
            f"Upload completed: {context.result.filename} "
            f"(scan_passed={context.result.scan_passed}, "
            f"extraction_degraded={context.extraction_degraded})"
        )
        return UploadCompleted(result=context.result)

    def _enter_terminal(
        self,
        step: PipelineStep,
        context: UploadContext,
        terminal: PipelineState,
    ) -> None:
        if step.terminal is not terminal:
            raise IllegalTransitionError(
                f"{type(step).__name__} cannot end in {terminal.value} "
                f"from {context.state.value}"
            )
        Log.warning(
            f"Upload {sanitize_for_log(context.request.original_filename)} "
            f"{terminal.value} at {step.source.value}"
        )
        context.state = terminal

    def is_healthy(self) -> bool:
        """True when both the scanner and the extractor are available."""
        return self._scanner.is_available() and self._extractor.is_available()

    def close(self) -> None:
        self._scanner.close()
        self._extractor.close()

    def __enter__(self) -> "UploadOrchestrator":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def build_orchestrator(settings: Settings) -> UploadOrchestrator:
    """Build an UploadOrchestrator with all required adapters."""
    validator = UploadValidator(
        max_size_bytes=settings.max_upload_size_bytes,
        allowed_extensions=settings.allowed_extensions,
    )
    storage = LocalStorageWriter(settings.storage_root)
    scanner = ScannerFactory.create(settings)
    extractor = TextExtractorFactory.create(settings)
    Log.info(
        f"Upload pipeline ready: scanner={settings.scanner_engine}, "
        f"extractor={settings.extraction_engine}, "
        f"unavailable_policy={settings.scanner_unavailable_policy.value}"
    )
    return UploadOrchestrator(
        validator=validator,
        scanner=scanner,
        extractor=extractor,
        storage=storage,
        unavailable_policy=settings.scanner_unavailable_policy,
    )
