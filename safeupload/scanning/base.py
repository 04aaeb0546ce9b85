from abc import ABC, abstractmethod

from safeupload.scanning.models import ScanVerdict


class BaseScanner(ABC):
    """Contract for all malicious-content scanning adapters.

    Adapters are shared by every upload worker, so each one must be safe to
    call from several threads at once and must bound its own call time.
    """

    @abstractmethod
    def scan(self, content: bytes) -> ScanVerdict:
        """Screen raw upload bytes.

        Args:
            content: Full upload content.

        Returns:
            Clean, Infected(signature) or Unavailable(reason). Engine errors
            and timeouts are reported as Unavailable, never raised.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return True when the engine is reachable."""

    def close(self) -> None:
        """Release engine resources."""
