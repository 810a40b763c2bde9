"""
Ordered command buffer for one SBPL print job.

Operations are already-encoded byte strings. Document settings are inserted
at the insertion cursor so they stay ahead of any content appended later;
content is appended at the tail.
"""

from dataclasses import dataclass, field

from .exceptions import ValidationError

MAX_SOFT_OFFSET = 9999


@dataclass
class CommandBuffer:
    """
    Operations of the page currently being built.

    Attributes:
        operations: Encoded operations in transmission order
        insertion_cursor: Index before which document settings are inserted.
            Always at or before the first content operation.
        soft_offset: (x, y) offset added to move_to_x / move_to_y positions
    """

    operations: list[bytes] = field(default_factory=list)
    insertion_cursor: int = 0
    soft_offset: tuple[int, int] = (0, 0)

    def __len__(self) -> int:
        return len(self.operations)

    @property
    def is_empty(self) -> bool:
        return not self.operations

    @property
    def offset_x(self) -> int:
        return self.soft_offset[0]

    @property
    def offset_y(self) -> int:
        return self.soft_offset[1]

    def append(self, op: bytes) -> None:
        """Append an encoded operation to the tail."""
        self.operations.append(bytes(op))

    def insert_at_cursor(self, op: bytes) -> None:
        """Insert a document setting at the cursor and move the cursor past it."""
        self.operations.insert(self.insertion_cursor, bytes(op))
        self.insertion_cursor += 1

    def set_soft_offset(self, x: int, y: int) -> None:
        """
        Store the offset applied to subsequent coordinate commands.

        Raises:
            ValidationError: If either value is outside -9999..9999
        """
        if abs(x) > MAX_SOFT_OFFSET:
            raise ValidationError(f"Specify -9999 <= x <= 9999 dots, got {x}.")
        if abs(y) > MAX_SOFT_OFFSET:
            raise ValidationError(f"Specify -9999 <= y <= 9999 dots, got {y}.")
        self.soft_offset = (x, y)

    def flatten(self) -> bytes:
        """Concatenate all operations in order. Does not modify the buffer."""
        return b"".join(self.operations)

    def framed(self, start: bytes, end: bytes) -> bytes:
        """
        Flatten with `start` inserted at the cursor and `end` at the tail.

        The buffer itself is left untouched, so a failed transmission can be
        retried without the markers being inserted twice.
        """
        settings = self.operations[:self.insertion_cursor]
        content = self.operations[self.insertion_cursor:]
        return b"".join(settings) + start + b"".join(content) + end

    def clear(self) -> None:
        """Drop all operations and reset the cursor. The soft offset is kept."""
        self.operations.clear()
        self.insertion_cursor = 0
