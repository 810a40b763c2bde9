"""
Transports for SBPL Printers.

A transport moves raw bytes to the printer and, where the medium allows it,
reads status frames back. Two transports are provided:

    SocketConnection   - raw TCP (port 9100) using asyncio streams
    SpoolerConnection  - Windows print spooler RAW document (pywin32)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from .config import DEFAULT_PORT
from .exceptions import TransportError

logger = logging.getLogger(__name__)


class TransportPort(ABC):
    """Byte sink / byte source used by the transmission protocol."""

    # Whether read() can return status frames
    supports_status = True

    @abstractmethod
    async def open(self) -> None:
        """Acquire the underlying connection."""

    @abstractmethod
    async def close(self) -> None:
        """Release the connection. Safe to call more than once."""

    @abstractmethod
    async def write(self, data: bytes) -> int:
        """Write bytes, returning the count written.

        Raises:
            TransportError: If not connected or the write fails
        """

    @abstractmethod
    async def read(self, max_bytes: int, timeout: float) -> bytes:
        """Read up to max_bytes, waiting at most timeout seconds.

        Raises:
            TransportError: On timeout, end of stream, or if not connected
        """

    async def end_job(self) -> None:
        """Called after the last page of a job has been written."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if currently connected."""

    async def __aenter__(self) -> "TransportPort":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class SocketConnection(TransportPort):
    """Raw TCP connection to a networked printer."""

    def __init__(self, host: str, port: int = DEFAULT_PORT, connect_timeout: float = 5.0):
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    def __repr__(self) -> str:
        return f"SocketConnection({self.host!r}, {self.port})"

    async def open(self) -> None:
        if self.is_connected:
            return
        logger.debug("Connecting to %s:%d...", self.host, self.port)
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Timed out connecting to {self.host}:{self.port}"
            ) from e
        except OSError as e:
            raise TransportError(
                f"Failed to connect to {self.host}:{self.port}: {e}", errno=e.errno
            ) from e
        logger.debug("Connected to %s:%d", self.host, self.port)

    async def close(self) -> None:
        writer = self._writer
        self._reader = None
        self._writer = None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            # Peer already gone; the socket is released either way
            logger.debug("Error while closing %s:%d: %s", self.host, self.port, e)
        logger.debug("Disconnected from %s:%d", self.host, self.port)

    async def write(self, data: bytes) -> int:
        if self._writer is None:
            raise TransportError("Not connected to printer")
        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as e:
            raise TransportError(f"Write failed: {e}", errno=e.errno) from e
        return len(data)

    async def read(self, max_bytes: int, timeout: float) -> bytes:
        if self._reader is None:
            raise TransportError("Not connected to printer")
        try:
            data = await asyncio.wait_for(self._reader.read(max_bytes), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(f"No response from printer within {timeout}s") from e
        except OSError as e:
            raise TransportError(f"Read failed: {e}", errno=e.errno) from e
        if not data:
            raise TransportError("Connection closed by printer")
        return data

    @property
    def is_connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()


def _import_win32print():
    """Import pywin32's spooler bindings with an install hint on failure."""
    try:
        import pywintypes
        import win32print
    except ImportError:
        raise ImportError(
            "pywin32 is required for spooler printing. "
            "Install with: pip install sbplprinter[windows]"
        ) from None
    return win32print, pywintypes


class SpoolerConnection(TransportPort):
    """
    Local Windows printer queue in RAW mode.

    Each write() becomes one spooler page; end_job() closes the document so
    the spooler releases it to the device. The spooler cannot report the
    printer's health, so status inquiries are skipped for this transport.
    """

    supports_status = False

    DOC_NAME = "RAW DOCUMENT"

    def __init__(self, printer_name: str):
        self.printer_name = printer_name
        self._handle = None
        self._doc_started = False

    def __repr__(self) -> str:
        return f"SpoolerConnection({self.printer_name!r})"

    async def open(self) -> None:
        if self._handle is not None:
            return
        win32print, pywintypes = _import_win32print()
        try:
            self._handle = await asyncio.to_thread(win32print.OpenPrinter, self.printer_name)
        except pywintypes.error as e:
            raise TransportError(
                f"Failed to open printer {self.printer_name!r}: {e.strerror}",
                errno=e.winerror,
            ) from e
        logger.debug("Opened spooler queue %r", self.printer_name)

    def _start_doc(self, win32print) -> None:
        if not self._doc_started:
            win32print.StartDocPrinter(self._handle, 1, (self.DOC_NAME, None, "RAW"))
            self._doc_started = True

    def _write_page(self, data: bytes) -> int:
        win32print, _ = _import_win32print()
        self._start_doc(win32print)
        win32print.StartPagePrinter(self._handle)
        try:
            return win32print.WritePrinter(self._handle, data)
        finally:
            win32print.EndPagePrinter(self._handle)

    def _end_doc(self) -> None:
        win32print, _ = _import_win32print()
        if self._doc_started:
            self._doc_started = False
            win32print.EndDocPrinter(self._handle)

    async def write(self, data: bytes) -> int:
        if self._handle is None:
            raise TransportError("Not connected to printer")
        _, pywintypes = _import_win32print()
        try:
            return await asyncio.to_thread(self._write_page, data)
        except pywintypes.error as e:
            raise TransportError(f"Write failed: {e.strerror}", errno=e.winerror) from e

    async def read(self, max_bytes: int, timeout: float) -> bytes:
        raise TransportError("The print spooler does not return printer status")

    async def end_job(self) -> None:
        if self._handle is None:
            return
        _, pywintypes = _import_win32print()
        try:
            await asyncio.to_thread(self._end_doc)
        except pywintypes.error as e:
            raise TransportError(f"Failed to end document: {e.strerror}", errno=e.winerror) from e

    async def close(self) -> None:
        if self._handle is None:
            return
        win32print, pywintypes = _import_win32print()
        handle = self._handle
        try:
            await asyncio.to_thread(self._end_doc)
        except pywintypes.error as e:
            logger.warning("Failed to end document on %r: %s", self.printer_name, e.strerror)
        finally:
            self._handle = None
            self._doc_started = False
        try:
            await asyncio.to_thread(win32print.ClosePrinter, handle)
        except pywintypes.error as e:
            raise TransportError(
                f"Failed to close printer {self.printer_name!r}: {e.strerror}",
                errno=e.winerror,
            ) from e
        logger.debug("Closed spooler queue %r", self.printer_name)

    @property
    def is_connected(self) -> bool:
        return self._handle is not None
