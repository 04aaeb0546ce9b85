from safeupload.upload.orchestrator import UploadOrchestrator, build_orchestrator
from safeupload.upload.validator import UploadValidator

__all__ = ["UploadOrchestrator", "UploadValidator", "build_orchestrator"]
