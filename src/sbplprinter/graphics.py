"""
Graphic Commands for SBPL Printers.

Converts images to the binary graphic command (ESC GB), which prints a
1-bit bitmap made of 8x8 dot blocks:

    ESC GB aaa bbb <data>
        aaa  - horizontal size in bytes (8 dots each), 001-999
        bbb  - vertical size in 8-dot blocks, 001-999
        data - aaa * bbb * 8 bytes, row by row, MSB first, 1 = black
"""

from io import BytesIO
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from PIL import Image

from .exceptions import ImageError
from .sbpl_commands import ESC

if TYPE_CHECKING:
    from .printer import SBPLPrinter

MAX_BLOCKS = 999
# 999 blocks of 8 dots in either direction
MAX_IMAGE_DIMENSION = MAX_BLOCKS * 8

ImageSource = Union[str, Path, bytes, Image.Image]


class Graphic:
    """Encodes images as SBPL graphics and adds them to a printer's buffer."""

    def __init__(self, printer: "SBPLPrinter", threshold: int = 128):
        """
        Args:
            printer: Session whose buffer receives the graphic
            threshold: Grayscale level below which a pixel prints black (0-255)
        """
        self.printer = printer
        self.threshold = threshold

    @staticmethod
    def load(source: ImageSource) -> Image.Image:
        """
        Load an image from a path, raw file bytes, or a PIL Image.

        Raises:
            ImageError: If the image cannot be loaded or is too large
        """
        try:
            if isinstance(source, Image.Image):
                img = source
            elif isinstance(source, (str, Path)):
                path = Path(source)
                if not path.exists():
                    raise ImageError(f"Image file not found: {path}")
                img = Image.open(path)
            elif isinstance(source, bytes):
                img = Image.open(BytesIO(source))
            else:
                raise ImageError(f"Unsupported image type: {type(source)}")
        except ImageError:
            raise
        except (OSError, ValueError) as e:
            raise ImageError(f"Failed to load image: {e}") from e

        if img.width > MAX_IMAGE_DIMENSION or img.height > MAX_IMAGE_DIMENSION:
            raise ImageError(
                f"Image dimensions ({img.width}x{img.height}) exceed maximum "
                f"({MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION})"
            )
        return img

    def encode(self, image: ImageSource) -> bytes:
        """Encode an image as an ESC GB command."""
        img = self.load(image)

        # Black pixels become set bits
        mono = img.convert("L").point(
            lambda v: 255 if v < self.threshold else 0, mode="1"
        )

        width_bytes = (mono.width + 7) // 8
        height_blocks = (mono.height + 7) // 8

        # Pad to whole 8x8 blocks with white
        canvas = Image.new("1", (width_bytes * 8, height_blocks * 8), 0)
        canvas.paste(mono, (0, 0))

        header = f"GB{width_bytes:03d}{height_blocks:03d}".encode("ascii")
        return ESC + header + canvas.tobytes()

    def print_image(
        self,
        image: ImageSource,
        x: Optional[int] = None,
        y: Optional[int] = None,
    ) -> None:
        """
        Add an image to the current page.

        Args:
            image: Image source (path, bytes, or PIL Image)
            x, y: Optional position in dots; the soft offset applies
        """
        # Encode first so a bad image leaves the buffer untouched
        data = self.encode(image)
        ops = []
        if x is not None:
            ops.append(self.printer.encode_move_to_x(x))
        if y is not None:
            ops.append(self.printer.encode_move_to_y(y))
        for op in ops:
            self.printer.add_raw(op)
        self.printer.add_raw(data)
