"""
SBPL Command Encoders.

SBPL (SATO Barcode Printer Language) commands are ASCII strings introduced
by an ESC byte. Each encoder below validates its parameters and returns the
complete operation as bytes, so nothing reaches a command buffer unless the
whole command could be encoded.

Two kinds of operations exist:
    - content commands (position, calendar, quantity) that belong to the
      page currently being built;
    - document settings (gap, density, speed, paper size, sensor) that are
      wrapped in their own ESC A ... ESC Z block and must precede content.

Reference: SBPL Programming Reference (CL4NX / GL4xxe series)
"""

from datetime import datetime
from enum import Enum, IntEnum

from .exceptions import ValidationError

# Control bytes
STX = b"\x02"
ETX = b"\x03"
ENQ = b"\x05"
ESC = b"\x1b"

# Page envelope
PAGE_START = ESC + b"A"
PAGE_END = ESC + b"Z"


class SensorType(IntEnum):
    """Label sensor used to find the top of form."""
    REFLECTION = 0
    TRANSPARENT = 1
    IGNORE = 2


class DensitySpec(str, Enum):
    """Density specification letter sent with the density level."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"


def _check_range(value: int, low: int, high: int, what: str) -> None:
    if not (low <= value <= high):
        raise ValidationError(f"Specify {low}-{high} {what}, got {value}.")


class SBPLCommands:
    """
    Encoders for individual SBPL commands.

    All methods are static and return bytes. Out-of-range parameters raise
    ValidationError before anything is encoded.
    """

    @staticmethod
    def command(body: str) -> bytes:
        """Encode an arbitrary command body as ESC + ASCII text."""
        try:
            return ESC + body.encode("ascii")
        except UnicodeEncodeError as e:
            raise ValidationError(f"SBPL commands must be ASCII: {body!r}") from e

    @staticmethod
    def setting(body: str) -> bytes:
        """Wrap a document setting in its own ESC A ... ESC Z block."""
        return PAGE_START + SBPLCommands.command(body) + PAGE_END

    # ---- Position Commands ----

    @staticmethod
    def move_to_x(x: int) -> bytes:
        """Horizontal print position in dots (1-9999)."""
        _check_range(x, 1, 9999, "dots")
        return SBPLCommands.command(f"H{x:04d}")

    @staticmethod
    def move_to_y(y: int) -> bytes:
        """Vertical print position in dots (1-9999)."""
        _check_range(y, 1, 9999, "dots")
        return SBPLCommands.command(f"V{y:04d}")

    @staticmethod
    def start_position(x: int, y: int) -> bytes:
        """
        Base reference point adjustment (A3).

        Args:
            x: Horizontal shift in dots (-999..999)
            y: Vertical shift in dots (-999..999)

        Note: the vertical value is encoded first.
        """
        _check_range(x, -999, 999, "dots for x")
        _check_range(y, -999, 999, "dots for y")
        return SBPLCommands.command(f"A3V{y:+04d}H{x:+04d}")

    # ---- Job Commands ----

    @staticmethod
    def calendar(dt: datetime) -> bytes:
        """Set the printer calendar (WT) to year%1000, month, day, hour, minute."""
        return SBPLCommands.command(
            f"WT{dt.year % 1000:02d}{dt.month:02d}{dt.day:02d}"
            f"{dt.hour:02d}{dt.minute:02d}"
        )

    @staticmethod
    def page_count(number_of_pages: int) -> bytes:
        """Print quantity (Q), 1-999999."""
        _check_range(number_of_pages, 1, 999999, "pages")
        return SBPLCommands.command(f"Q{number_of_pages:06d}")

    # ---- Document Settings ----

    @staticmethod
    def gap(dots: int) -> bytes:
        """Gap between labels in dots (0-64)."""
        _check_range(dots, 0, 64, "dots")
        return SBPLCommands.setting(f"TG{dots:02d}")

    @staticmethod
    def density(level: int, spec: DensitySpec = DensitySpec.A) -> bytes:
        """Print darkness (1-5) with density specification letter A-F."""
        _check_range(level, 1, 5, "density")
        try:
            spec = DensitySpec(spec)
        except ValueError as e:
            raise ValidationError(f"Specify density spec A-F, got {spec!r}.") from e
        return SBPLCommands.setting(f"#E{level:1d}{spec.value}")

    @staticmethod
    def speed(speed: int) -> bytes:
        """Print speed (1-5)."""
        _check_range(speed, 1, 5, "speed")
        return SBPLCommands.setting(f"CS{speed:02d}")

    @staticmethod
    def paper_size(height: int, width: int) -> bytes:
        """Paper size in dots, height first (1-9999 each)."""
        _check_range(height, 1, 9999, "dots for height")
        _check_range(width, 1, 9999, "dots for width")
        return SBPLCommands.setting(f"A1{height:04d}{width:04d}")

    @staticmethod
    def sensor_type(sensor: SensorType) -> bytes:
        """Select the label sensor (0 reflection, 1 transparent, 2 ignore)."""
        try:
            sensor = SensorType(sensor)
        except ValueError as e:
            raise ValidationError(f"Specify sensor type 0-2, got {sensor!r}.") from e
        return SBPLCommands.setting(f"IG{int(sensor):1d}")
