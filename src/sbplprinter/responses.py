"""
Response Parsers for SBPL Printer Status Inquiries.

After an ENQ (0x05) the printer answers with a fixed-width STATUS4 frame:

    Offset  Length  Field
    0-3     4       Body length, big-endian (always 0x0000001C = 28)
    4       1       ENQ echo (0x05)
    5       1       STX (0x02)
    6-7     2       Job ID (ASCII)
    8       1       Health byte
    9-14    6       Remaining label count (ASCII digits)
    15-30   16      Job name (ASCII, space padded)
    31      1       ETX (0x03)

A frame that does not match this layout is a transport problem, never a
health state.
"""

from dataclasses import dataclass
from enum import Enum

from .exceptions import TransportError

FRAME_LENGTH = 32
FRAME_HEADER = b"\x00\x00\x00\x1c\x05\x02"
FRAME_TERMINATOR = 0x03


class HealthState(Enum):
    """Classified printer health."""
    READY = "ready"
    BUSY_RECOVERABLE = "busy"
    FAULT_FATAL = "fault"


# Health byte -> state. Anything not listed is a fault.
HEALTH_STATES = {
    ord("A"): HealthState.READY,             # online, waiting
    ord("C"): HealthState.BUSY_RECOVERABLE,  # online, print buffer near full
    ord("0"): HealthState.BUSY_RECOVERABLE,  # offline, still answering ENQ
}


def classify_health(health: int) -> HealthState:
    """Map a raw health byte to a HealthState (unknown bytes are faults)."""
    return HEALTH_STATES.get(health, HealthState.FAULT_FATAL)


@dataclass
class StatusFrame:
    """Parsed STATUS4 response to an ENQ inquiry."""

    job_id: str
    health: int
    labels_remaining: int
    job_name: str
    raw_data: bytes = b""

    @classmethod
    def parse(cls, data: bytes) -> "StatusFrame":
        """
        Parse a status frame.

        Args:
            data: Raw response bytes (exactly 32 bytes)

        Returns:
            StatusFrame instance

        Raises:
            TransportError: If the frame is truncated or malformed
        """
        if len(data) != FRAME_LENGTH:
            raise TransportError(
                f"Status frame must be {FRAME_LENGTH} bytes, got {len(data)}"
            )
        if data[:6] != FRAME_HEADER:
            raise TransportError(f"Bad status frame header: {data[:6].hex()}")
        if data[-1] != FRAME_TERMINATOR:
            raise TransportError(f"Bad status frame terminator: 0x{data[-1]:02x}")

        remaining = data[9:15]
        if not remaining.isdigit():
            raise TransportError(f"Bad remaining label count: {remaining!r}")

        try:
            job_id = data[6:8].decode("ascii")
            job_name = data[15:31].decode("ascii").rstrip()
        except UnicodeDecodeError as e:
            raise TransportError(f"Status frame is not ASCII: {data.hex()}") from e

        return cls(
            job_id=job_id,
            health=data[8],
            labels_remaining=int(remaining),
            job_name=job_name,
            raw_data=bytes(data),
        )

    @property
    def state(self) -> HealthState:
        return classify_health(self.health)

    @property
    def health_char(self) -> str:
        return chr(self.health)

    def __str__(self) -> str:
        return (
            f"Status: {self.state.value} (health={self.health_char!r}), "
            f"job_id={self.job_id!r}, job_name={self.job_name!r}, "
            f"remaining={self.labels_remaining}"
        )
