from typing import ClassVar

from safeupload.extraction.base import BaseTextExtractor
from safeupload.extraction.models import ExtractedText, ExtractionFailed, ExtractionOutcome
from safeupload.logging.logger import Log, sanitize_for_log
from safeupload.scanning.base import BaseScanner
from safeupload.scanning.models import (
    Infected,
    ScannerUnavailablePolicy,
    ScanVerdict,
    Unavailable,
)
from safeupload.storage.exceptions import StorageError
from safeupload.storage.local_writer import LocalStorageWriter
from safeupload.upload.content_types import resolve_content_type
from safeupload.upload.models import Rejection, RejectionReason, UploadResult
from safeupload.upload.pipeline import (
    Advance,
    Fail,
    PipelineState,
    PipelineStep,
    Reject,
    StepOutcome,
    UploadContext,
)
from safeupload.upload.sanitizer import build_stored_filename, sanitize
from safeupload.upload.validator import UploadValidator

EXTRACTION_PLACEHOLDER_TEXT = ""
STORAGE_FAILURE_MESSAGE = "File could not be stored"


class ValidateStep(PipelineStep):
    source: ClassVar[PipelineState] = PipelineState.RECEIVED
    target: ClassVar[PipelineState] = PipelineState.VALIDATED
    terminal: ClassVar[PipelineState | None] = PipelineState.REJECTED

    def __init__(self, validator: UploadValidator) -> None:
        self._validator = validator

    def run(self, context: UploadContext) -> StepOutcome:
        rejection = self._validator.validate(context.request)
        if rejection is not None:
            return Reject(rejection)
        _, extension = sanitize(context.request.original_filename)
        context.mime_type = resolve_content_type(context.request.content_type, extension)
        return Advance()


class ScanStep(PipelineStep):
    source: ClassVar[PipelineState] = PipelineState.VALIDATED
    target: ClassVar[PipelineState] = PipelineState.SCANNED
    terminal: ClassVar[PipelineState | None] = PipelineState.REJECTED

    def __init__(self, scanner: BaseScanner, unavailable_policy: ScannerUnavailablePolicy) -> None:
        self._scanner = scanner
        self._unavailable_policy = unavailable_policy

    def run(self, context: UploadContext) -> StepOutcome:
        verdict = self._scan(context)
        name = sanitize_for_log(context.request.original_filename)

        if isinstance(verdict, Infected):
            signature = sanitize_for_log(verdict.signature)
            Log.error(f"Malicious content in {name}: {signature}")
            return Reject(
                Rejection(
                    RejectionReason.INFECTED,
                    f"Malicious content detected: {signature}",
                )
            )

        if isinstance(verdict, Unavailable):
            if self._unavailable_policy is ScannerUnavailablePolicy.FAIL_CLOSED:
                Log.error(f"Scanner unavailable, rejecting {name} (fail_closed)")
                return Reject(
                    Rejection(
                        RejectionReason.SCANNER_UNAVAILABLE,
                        "Content scanner is unavailable",
                    )
                )
            Log.warning(f"Scanner unavailable, accepting {name} unscanned (fail_open)")
            context.scan_passed = False
            return Advance()

        context.scan_passed = True
        Log.debug(f"Scan clean for {name}")
        return Advance()

    def _scan(self, context: UploadContext) -> ScanVerdict:
        try:
            return self._scanner.scan(context.request.content)
        except Exception as exc:
            Log.error(f"Scanner raised instead of returning a verdict: {sanitize_for_log(exc)}")
            return Unavailable(reason=str(exc))


class ExtractStep(PipelineStep):
    """Best-effort enrichment: any failure degrades to placeholder text."""

    source: ClassVar[PipelineState] = PipelineState.SCANNED
    target: ClassVar[PipelineState] = PipelineState.EXTRACTED

    def __init__(self, extractor: BaseTextExtractor) -> None:
        self._extractor = extractor

    def run(self, context: UploadContext) -> StepOutcome:
        outcome = self._extract(context)
        name = sanitize_for_log(context.request.original_filename)
        if isinstance(outcome, ExtractionFailed):
            Log.warning(f"Text extraction failed for {name}: {sanitize_for_log(outcome.reason)}")
            context.extracted_text = EXTRACTION_PLACEHOLDER_TEXT
            context.extraction_degraded = True
            return Advance()
        context.extracted_text = outcome.text
        Log.info(f"Extracted {len(outcome.text)} chars from {name}")
        return Advance()

    def _extract(self, context: UploadContext) -> ExtractionOutcome:
        try:
            outcome = self._extractor.extract(context.request.content, context.mime_type)
        except Exception as exc:
            return ExtractionFailed(reason=f"extractor crashed: {exc}")
        if not isinstance(outcome, (ExtractedText, ExtractionFailed)):
            return ExtractionFailed(reason=f"unexpected extractor result {outcome!r}")
        return outcome


class StoreStep(PipelineStep):
    source: ClassVar[PipelineState] = PipelineState.EXTRACTED
    target: ClassVar[PipelineState] = PipelineState.STORED
    terminal: ClassVar[PipelineState | None] = PipelineState.FAILED

    def __init__(self, storage: LocalStorageWriter) -> None:
        self._storage = storage

    def run(self, context: UploadContext) -> StepOutcome:
        request = context.request
        context.stored_filename = build_stored_filename(request.original_filename)
        try:
            context.descriptor = self._storage.store(
                request.content,
                context.stored_filename,
                context.received_at,
                original_filename=request.original_filename,
                content_type=context.mime_type,
            )
        except StorageError as exc:
            Log.error(f"Storage fault for {context.stored_filename}: {exc}")
            return Fail(STORAGE_FAILURE_MESSAGE)
        return Advance()


class AssembleStep(PipelineStep):
    source: ClassVar[PipelineState] = PipelineState.STORED
    target: ClassVar[PipelineState] = PipelineState.COMPLETED

    def run(self, context: UploadContext) -> StepOutcome:
        descriptor = context.descriptor
        if descriptor is None:
            raise ValueError("UploadContext.descriptor must be set before assembly")
        context.result = UploadResult(
            filename=descriptor.stored_filename,
            size=descriptor.size,
            mime_type=descriptor.content_type,
            extracted_text=context.extracted_text,
            uploaded_at=descriptor.upload_timestamp,
            scan_passed=context.scan_passed,
            storage_path=descriptor.storage_path,
        )
        return Advance()
