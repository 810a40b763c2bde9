"""
Exception hierarchy for the SBPL printer driver.

Every error raised by this package derives from PrinterError, so callers
can catch the whole family with one clause and still tell validation
mistakes, broken connections, busy timeouts and hardware faults apart.
"""

from typing import Optional


class PrinterError(Exception):
    """Base exception for all printer errors."""

    pass


class ValidationError(PrinterError, ValueError):
    """A command parameter is outside its documented range.

    Raised before any byte is produced, so the command buffer is unchanged.
    """

    pass


class TransportError(PrinterError):
    """The connection failed to open, write, or return a well-formed frame.

    Attributes:
        errno: Underlying OS / Win32 error code, if one was available.
    """

    def __init__(self, message: str, errno: Optional[int] = None):
        super().__init__(message)
        self.errno = errno


class ProtocolTimeoutError(PrinterError):
    """Printer stayed busy past the configured deadline."""

    def __init__(self, message: str, attempts: int = 0, elapsed: float = 0.0):
        super().__init__(message)
        self.attempts = attempts
        self.elapsed = elapsed


class DeviceFaultError(PrinterError):
    """Printer reported a fatal health state (paper out, head error, ...).

    Attributes:
        health: Raw health byte from the status frame.
        frame: The parsed StatusFrame, when available.
    """

    def __init__(self, message: str, health: int, frame=None):
        super().__init__(message)
        self.health = health
        self.frame = frame

    @property
    def health_char(self) -> str:
        return chr(self.health)


class TransmissionCancelledError(PrinterError):
    """The health-wait loop was aborted through a cancellation token."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class ImageError(PrinterError):
    """Error loading or converting an image for a graphic command."""

    pass
