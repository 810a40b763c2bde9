"""
High-Level SBPL Printer Interface.

Provides a session API for building and sending SBPL label jobs:

    async with SBPLPrinter.network("192.168.1.50") as printer:
        printer.set_density(3, DensitySpec.A)
        printer.move_to_x(100)
        printer.move_to_y(50)
        printer.barcode.code128("ABC-123")
        await printer.send(number_of_pages=2)
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from .barcodes import Barcode
from .buffer import CommandBuffer
from .config import DEFAULT_PORT, TransmissionConfig
from .connection import SocketConnection, SpoolerConnection, TransportPort
from .exceptions import PrinterError, TransportError
from .graphics import Graphic
from .protocol import TransmissionProtocol, TransmissionState
from .responses import StatusFrame
from .sbpl_commands import DensitySpec, SBPLCommands, SensorType
from .stream import StreamController

logger = logging.getLogger(__name__)


class SBPLPrinter:
    """
    One print session: a transport, a command buffer and the send protocol.

    Commands are buffered until add_stream() (send a page, keep the job
    open) or send() (send the rest and end the job). Buffer mutation and
    sends must not overlap; a session handles one job at a time.
    """

    def __init__(
        self,
        transport: TransportPort,
        config: Optional[TransmissionConfig] = None,
        send_on_close: bool = False,
    ):
        """
        Initialize a printer session.

        Args:
            transport: Connection to the printer (not yet opened)
            config: Handshake timing (defaults to TransmissionConfig())
            send_on_close: Send pending operations once when the session closes
        """
        self.transport = transport
        self.config = config or TransmissionConfig()
        self.send_on_close = send_on_close

        self.buffer = CommandBuffer()
        self.protocol = TransmissionProtocol(transport, self.config)
        self.streams = StreamController(self.buffer, self.protocol)

        self.barcode = Barcode(self)
        self.graphic = Graphic(self)

        self._send_lock = asyncio.Lock()
        self._closed = False

    @classmethod
    def network(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        config: Optional[TransmissionConfig] = None,
        send_on_close: bool = False,
    ) -> "SBPLPrinter":
        """Session over a raw TCP connection."""
        config = config or TransmissionConfig()
        transport = SocketConnection(host, port, connect_timeout=config.connect_timeout)
        return cls(transport, config, send_on_close)

    @classmethod
    def spooler(
        cls,
        printer_name: str,
        config: Optional[TransmissionConfig] = None,
        send_on_close: bool = False,
    ) -> "SBPLPrinter":
        """Session over a local Windows printer queue."""
        return cls(SpoolerConnection(printer_name), config, send_on_close)

    def set_debug(self, enabled: bool):
        """Enable/disable debug logging for the whole package."""
        logging.getLogger("sbplprinter").setLevel(
            logging.DEBUG if enabled else logging.NOTSET
        )

    # ---- Lifecycle ----

    async def open(self, wait_ready: bool = False,
                   cancel: Optional[asyncio.Event] = None) -> None:
        """
        Open the transport.

        Args:
            wait_ready: Also wait until the printer reports ready
            cancel: Optional event that aborts the ready wait

        Raises:
            TransportError: If the connection cannot be opened
            DeviceFaultError, ProtocolTimeoutError, TransmissionCancelledError:
                From the ready wait; the transport is released again
        """
        if self._closed:
            raise TransportError("Printer session already closed")
        await self.transport.open()
        if not (wait_ready and self.transport.supports_status):
            return
        try:
            await self.protocol.wait_until_ready(cancel)
        except BaseException:
            await self.transport.close()
            raise

    async def close(self) -> None:
        """
        Release the session. Repeated calls do nothing.

        With send_on_close, pending operations are sent once first. A failure
        of that send is logged and re-raised after the transport is released.
        """
        if self._closed:
            return
        self._closed = True

        flush_error: Optional[PrinterError] = None
        try:
            if self.send_on_close and not self.buffer.is_empty:
                logger.debug("Sending %d pending operations on close", len(self.buffer))
                try:
                    await self.send()
                except PrinterError as e:
                    logger.error("Failed to send pending operations on close: %s", e)
                    flush_error = e
        finally:
            self.buffer.clear()
            await self.transport.close()
            logger.debug("Session closed")

        if flush_error is not None:
            raise flush_error

    async def __aenter__(self) -> "SBPLPrinter":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await self.close()
        except PrinterError:
            # Already logged by close(); don't mask the block's own error
            if exc_type is None:
                raise

    # ---- Raw Operations ----

    def add(self, command: str) -> None:
        """Append an SBPL command body; the ESC prefix is added."""
        self.buffer.append(SBPLCommands.command(command))

    def add_raw(self, data: bytes) -> None:
        """Append an already-encoded operation as-is."""
        self.buffer.append(data)

    # ---- Position Commands ----

    def encode_move_to_x(self, x: int) -> bytes:
        """Encode a horizontal position with the soft offset applied."""
        return SBPLCommands.move_to_x(x + self.buffer.offset_x)

    def encode_move_to_y(self, y: int) -> bytes:
        """Encode a vertical position with the soft offset applied."""
        return SBPLCommands.move_to_y(y + self.buffer.offset_y)

    def move_to_x(self, x: int) -> None:
        """Move to horizontal position x (1-9999 dots after the soft offset)."""
        self.buffer.append(self.encode_move_to_x(x))

    def move_to_y(self, y: int) -> None:
        """Move to vertical position y (1-9999 dots after the soft offset)."""
        self.buffer.append(self.encode_move_to_y(y))

    def set_start_position(self, x: int, y: int) -> None:
        """Shift the printer's base reference point (-999..999 dots)."""
        self.buffer.append(SBPLCommands.start_position(x, y))

    def set_start_position_ex(self, x: int, y: int) -> None:
        """
        Shift positions on the host side (-9999..9999 dots).

        Unlike set_start_position, nothing is sent: the offset is added to
        every later move_to_x / move_to_y.
        """
        self.buffer.set_soft_offset(x, y)

    # ---- Job Commands ----

    def set_calendar(self, dt: datetime) -> None:
        """Set the printer's calendar clock."""
        self.buffer.append(SBPLCommands.calendar(dt))

    def set_page_number(self, number_of_pages: int) -> None:
        """Number of copies of the current page (1-999999)."""
        self.buffer.append(SBPLCommands.page_count(number_of_pages))

    # ---- Document Settings ----

    def set_gap_size_between_labels(self, dots: int) -> None:
        """Gap between labels (0-64 dots)."""
        self.buffer.insert_at_cursor(SBPLCommands.gap(dots))

    def set_density(self, density: int, spec: DensitySpec = DensitySpec.A) -> None:
        """Print darkness (1-5) and density specification (A-F)."""
        self.buffer.insert_at_cursor(SBPLCommands.density(density, spec))

    def set_speed(self, speed: int) -> None:
        """Print speed (1-5)."""
        self.buffer.insert_at_cursor(SBPLCommands.speed(speed))

    def set_paper_size(self, height: int, width: int) -> None:
        """Paper size in dots (1-9999 each)."""
        self.buffer.insert_at_cursor(SBPLCommands.paper_size(height, width))

    def set_sensor_type(self, sensor: SensorType) -> None:
        """Label sensor used to detect the top of form."""
        self.buffer.insert_at_cursor(SBPLCommands.sensor_type(sensor))

    # ---- Transmission ----

    async def add_stream(self, cancel: Optional[asyncio.Event] = None) -> int:
        """
        Send the buffered operations as one page and keep the job open.

        Use this to print several different pages in one job; finish with
        send().

        Returns:
            Number of bytes written
        """
        async with self._send_lock:
            return await self.streams.begin_stream(cancel)

    async def send(
        self,
        number_of_pages: Optional[int] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> int:
        """
        Send the buffered operations and end the job.

        Args:
            number_of_pages: If given, a page count command ends the page.
                It is not kept in the buffer, so retrying a failed send with
                the same count sends it once.
            cancel: Optional event that aborts the health wait

        Returns:
            Number of bytes written

        Raises:
            ValidationError: number_of_pages out of range (nothing is sent)
            DeviceFaultError: Printer reported a fault
            ProtocolTimeoutError: Printer stayed busy past the deadline
            TransmissionCancelledError: cancel was set while waiting
            TransportError: Connection failure
        """
        tail = b""
        if number_of_pages is not None:
            tail = SBPLCommands.page_count(number_of_pages)
        async with self._send_lock:
            return await self.streams.finalize_and_send(cancel, tail)

    async def get_status(self) -> StatusFrame:
        """Query the printer's current status frame."""
        if not self.transport.supports_status:
            raise TransportError(f"{self.transport!r} cannot report printer status")
        return await self.protocol.monitor.query_frame(self.transport)

    @property
    def state(self) -> TransmissionState:
        """State of the last (or current) transmission."""
        return self.protocol.state

    @property
    def is_connected(self) -> bool:
        """Check if the transport is open."""
        return self.transport.is_connected

    @property
    def is_closed(self) -> bool:
        return self._closed
