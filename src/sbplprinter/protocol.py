"""
Transmission Protocol.

Every page is sent with the same handshake:

    IDLE -> AWAITING_HEALTH -> SENDING -> COMPLETE
                 |    ^
                 v    |
               RETRYING          (printer busy, wait and ask again)
                 |
                 v
               FAILED / CANCELLED

A fault reported by the printer fails immediately. A busy printer is asked
again every poll_interval until it is ready or the deadline passes. Write
failures are never retried: the connection is assumed to be unusable.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .config import TransmissionConfig
from .connection import TransportPort
from .exceptions import (
    DeviceFaultError,
    ProtocolTimeoutError,
    TransmissionCancelledError,
    TransportError,
)
from .responses import HealthState
from .status import StatusMonitor

logger = logging.getLogger(__name__)


class TransmissionState(Enum):
    """Protocol state for the current page."""
    IDLE = "idle"
    AWAITING_HEALTH = "awaiting_health"
    RETRYING = "retrying"
    SENDING = "sending"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class TransmissionAttempt:
    """Elapsed time and inquiry count for one health wait."""

    started: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    attempts: int = 0

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started


class TransmissionProtocol:
    """Waits for a ready printer, then writes one page."""

    def __init__(
        self,
        transport: TransportPort,
        config: Optional[TransmissionConfig] = None,
        monitor: Optional[StatusMonitor] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport
        self.config = config or TransmissionConfig()
        self.monitor = monitor or StatusMonitor(self.config.read_timeout)
        self.clock = clock
        self.state = TransmissionState.IDLE

    def _expired(self, attempt: TransmissionAttempt) -> bool:
        if self.config.max_attempts is not None and attempt.attempts >= self.config.max_attempts:
            return True
        return attempt.elapsed >= self.config.deadline

    async def _pause(self, cancel: Optional[asyncio.Event],
                     attempt: TransmissionAttempt) -> bool:
        """
        Sleep one poll interval, but not past the deadline.

        Returns True if cancelled meanwhile.
        """
        delay = min(self.config.poll_interval,
                    max(0.0, self.config.deadline - attempt.elapsed))
        if cancel is None:
            await asyncio.sleep(delay)
            return False
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def wait_until_ready(
        self, cancel: Optional[asyncio.Event] = None
    ) -> TransmissionAttempt:
        """
        Query health until the printer is ready.

        Args:
            cancel: Optional event; setting it aborts the wait

        Returns:
            The TransmissionAttempt that ended in READY

        Raises:
            DeviceFaultError: Printer reported a fault (no retry)
            ProtocolTimeoutError: Printer stayed busy past the deadline
            TransmissionCancelledError: cancel was set while waiting
            TransportError: Inquiry could not be written or answered
        """
        attempt = TransmissionAttempt(started=self.clock(), clock=self.clock)

        try:
            while True:
                if cancel is not None and cancel.is_set():
                    self.state = TransmissionState.CANCELLED
                    raise TransmissionCancelledError(
                        "Transmission cancelled while waiting for printer",
                        attempts=attempt.attempts,
                    )

                self.state = TransmissionState.AWAITING_HEALTH
                health = await self.monitor.query(self.transport)
                attempt.attempts += 1

                if health is HealthState.READY:
                    return attempt

                frame = self.monitor.last_frame
                if health is HealthState.FAULT_FATAL:
                    self.state = TransmissionState.FAILED
                    logger.warning("Printer fault: health=%r", frame.health_char)
                    raise DeviceFaultError(
                        f"Printer reported fault (health {frame.health_char!r})",
                        health=frame.health,
                        frame=frame,
                    )

                if self._expired(attempt):
                    self.state = TransmissionState.FAILED
                    logger.warning(
                        "Printer still busy after %d inquiries (%.1fs)",
                        attempt.attempts, attempt.elapsed,
                    )
                    raise ProtocolTimeoutError(
                        f"Printer busy (health {frame.health_char!r}) for "
                        f"{attempt.elapsed:.1f}s after {attempt.attempts} inquiries",
                        attempts=attempt.attempts,
                        elapsed=attempt.elapsed,
                    )

                self.state = TransmissionState.RETRYING
                logger.info(
                    "Printer busy (health %r), retry %d...",
                    frame.health_char, attempt.attempts,
                )
                if await self._pause(cancel, attempt):
                    self.state = TransmissionState.CANCELLED
                    raise TransmissionCancelledError(
                        "Transmission cancelled while waiting for printer",
                        attempts=attempt.attempts,
                    )
        except TransportError:
            self.state = TransmissionState.FAILED
            raise
        except asyncio.CancelledError:
            self.state = TransmissionState.CANCELLED
            raise

    async def transmit(self, payload: bytes, cancel: Optional[asyncio.Event] = None) -> int:
        """
        Send one page once the printer is ready.

        Args:
            payload: Complete framed page bytes
            cancel: Optional event; setting it aborts the health wait

        Returns:
            Number of bytes written

        Raises:
            DeviceFaultError, ProtocolTimeoutError, TransmissionCancelledError,
            TransportError
        """
        if self.transport.supports_status:
            await self.wait_until_ready(cancel)

        self.state = TransmissionState.SENDING
        logger.debug(
            "TX %d bytes: %s",
            len(payload),
            payload.hex() if len(payload) < 50 else payload[:50].hex() + "...",
        )
        try:
            written = await self.transport.write(payload)
        except TransportError:
            self.state = TransmissionState.FAILED
            raise
        except asyncio.CancelledError:
            self.state = TransmissionState.CANCELLED
            raise

        if written != len(payload):
            self.state = TransmissionState.FAILED
            raise TransportError(f"Short write: {written} of {len(payload)} bytes")

        self.state = TransmissionState.COMPLETE
        return written
