"""
Native Barcode Commands for SBPL Printers.

The printer draws barcodes itself; the host only sends the symbology,
module width, bar height and data:

    ESC <ratio> <type> nn hhh <data>
        ratio - B (1:3), D (1:2) or BD (2:5) narrow:wide bar ratio
        type  - 0 NW-7, 1 CODE39, 2 ITF, 3 JAN13, 4 JAN8, G CODE128
        nn    - narrow bar width in dots, 01-12
        hhh   - bar height in dots, 001-999
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

from .exceptions import ValidationError
from .sbpl_commands import SBPLCommands

if TYPE_CHECKING:
    from .printer import SBPLPrinter


class BarcodeType(str, Enum):
    """Symbology selector."""
    CODABAR = "0"
    CODE39 = "1"
    ITF = "2"
    JAN13 = "3"
    JAN8 = "4"
    CODE128 = "G"


class BarcodeRatio(str, Enum):
    """Narrow to wide bar ratio."""
    RATIO_1_3 = "B"
    RATIO_1_2 = "D"
    RATIO_2_5 = "BD"


# Accepted data lengths for fixed-length symbologies (check digit optional)
_FIXED_LENGTHS = {
    BarcodeType.JAN13: (12, 13),
    BarcodeType.JAN8: (7, 8),
}

_NUMERIC_ONLY = {BarcodeType.ITF, BarcodeType.JAN13, BarcodeType.JAN8}


class Barcode:
    """Adds native barcode commands to a printer's buffer."""

    def __init__(self, printer: "SBPLPrinter"):
        self.printer = printer

    @staticmethod
    def encode(
        barcode_type: BarcodeType,
        data: str,
        narrow: int = 2,
        height: int = 100,
        ratio: BarcodeRatio = BarcodeRatio.RATIO_1_3,
    ) -> bytes:
        """
        Encode one barcode command.

        Args:
            barcode_type: Symbology
            data: Barcode content
            narrow: Narrow bar width in dots (1-12)
            height: Bar height in dots (1-999)
            ratio: Narrow:wide ratio (CODE128 only supports 1:3)

        Raises:
            ValidationError: If any parameter or the data is invalid
        """
        try:
            barcode_type = BarcodeType(barcode_type)
            ratio = BarcodeRatio(ratio)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if not (1 <= narrow <= 12):
            raise ValidationError(f"Specify 1-12 dots for narrow bar width, got {narrow}.")
        if not (1 <= height <= 999):
            raise ValidationError(f"Specify 1-999 dots for bar height, got {height}.")
        if not data:
            raise ValidationError("Barcode data must not be empty.")
        if barcode_type is BarcodeType.CODE128 and ratio is not BarcodeRatio.RATIO_1_3:
            raise ValidationError("CODE128 only supports the 1:3 ratio.")
        if barcode_type in _NUMERIC_ONLY and not data.isdigit():
            raise ValidationError(f"{barcode_type.name} data must be numeric, got {data!r}.")

        lengths = _FIXED_LENGTHS.get(barcode_type)
        if lengths and len(data) not in lengths:
            raise ValidationError(
                f"{barcode_type.name} data must be {' or '.join(map(str, lengths))} "
                f"digits, got {len(data)}."
            )

        if barcode_type is BarcodeType.CODE39 and not data.startswith("*"):
            data = f"*{data}*"

        return SBPLCommands.command(
            f"{ratio.value}{barcode_type.value}{narrow:02d}{height:03d}{data}"
        )

    def _add(self, barcode_type, data, narrow, height, ratio, x, y) -> None:
        # Encode everything before touching the buffer
        ops = []
        if x is not None:
            ops.append(self.printer.encode_move_to_x(x))
        if y is not None:
            ops.append(self.printer.encode_move_to_y(y))
        ops.append(self.encode(barcode_type, data, narrow, height, ratio))
        for op in ops:
            self.printer.add_raw(op)

    def code39(self, data: str, narrow: int = 2, height: int = 100,
               ratio: BarcodeRatio = BarcodeRatio.RATIO_1_3,
               x: Optional[int] = None, y: Optional[int] = None) -> None:
        """CODE39; data is wrapped in '*' start/stop characters if needed."""
        self._add(BarcodeType.CODE39, data, narrow, height, ratio, x, y)

    def code128(self, data: str, narrow: int = 2, height: int = 100,
                x: Optional[int] = None, y: Optional[int] = None) -> None:
        """CODE128. Subset switching codes are passed through in data."""
        self._add(BarcodeType.CODE128, data, narrow, height, BarcodeRatio.RATIO_1_3, x, y)

    def jan13(self, data: str, narrow: int = 2, height: int = 100,
              ratio: BarcodeRatio = BarcodeRatio.RATIO_1_3,
              x: Optional[int] = None, y: Optional[int] = None) -> None:
        """JAN13 / EAN13 (12 digits, or 13 with check digit)."""
        self._add(BarcodeType.JAN13, data, narrow, height, ratio, x, y)

    def jan8(self, data: str, narrow: int = 2, height: int = 100,
             ratio: BarcodeRatio = BarcodeRatio.RATIO_1_3,
             x: Optional[int] = None, y: Optional[int] = None) -> None:
        """JAN8 / EAN8 (7 digits, or 8 with check digit)."""
        self._add(BarcodeType.JAN8, data, narrow, height, ratio, x, y)

    def codabar(self, data: str, narrow: int = 2, height: int = 100,
                ratio: BarcodeRatio = BarcodeRatio.RATIO_1_3,
                x: Optional[int] = None, y: Optional[int] = None) -> None:
        """NW-7 / Codabar."""
        self._add(BarcodeType.CODABAR, data, narrow, height, ratio, x, y)

    def itf(self, data: str, narrow: int = 2, height: int = 100,
            ratio: BarcodeRatio = BarcodeRatio.RATIO_1_3,
            x: Optional[int] = None, y: Optional[int] = None) -> None:
        """Interleaved 2 of 5."""
        self._add(BarcodeType.ITF, data, narrow, height, ratio, x, y)
