"""
Pytest configuration for SBPL printer tests.

Provides an in-memory transport that answers status inquiries from a
script, plus fixtures and command-line options for hardware tests.
"""

import asyncio

import pytest
import pytest_asyncio

from sbplprinter import SBPLPrinter, TransmissionConfig
from sbplprinter.cli import parse_address
from sbplprinter.connection import TransportPort
from sbplprinter.exceptions import TransportError
from sbplprinter.sbpl_commands import ENQ


def make_frame(health: str = "A", job_id: str = "01", remaining: int = 0,
               name: str = "") -> bytes:
    """Build a 32-byte STATUS4 frame."""
    return (
        b"\x00\x00\x00\x1c\x05\x02"
        + job_id.encode("ascii")
        + health.encode("ascii")
        + f"{remaining:06d}".encode("ascii")
        + name.encode("ascii").ljust(16)
        + b"\x03"
    )


class FakeTransport(TransportPort):
    """
    Transport that records writes and answers each ENQ with the next
    scripted frame. The last frame repeats once the script runs out.
    """

    def __init__(self, frames=(), supports_status=True, chunk_size=None):
        self.frames = list(frames)
        self.supports_status = supports_status
        self.chunk_size = chunk_size
        self.writes: list[bytes] = []
        self.write_error = None
        self.short_write = False
        self.hang = False
        self.connected = False
        self.open_calls = 0
        self.close_calls = 0
        self.end_job_calls = 0
        self._pending = b""

    async def open(self):
        self.open_calls += 1
        self.connected = True

    async def close(self):
        self.close_calls += 1
        self.connected = False

    async def write(self, data: bytes) -> int:
        if not self.connected:
            raise TransportError("Not connected to printer")
        if data == ENQ:
            self.writes.append(bytes(data))
            if self.frames:
                frame = self.frames.pop(0) if len(self.frames) > 1 else self.frames[0]
                self._pending += frame
            return 1
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(bytes(data))
        if self.short_write:
            return len(data) - 1
        return len(data)

    async def read(self, max_bytes: int, timeout: float) -> bytes:
        if not self._pending:
            if self.hang:
                await asyncio.Event().wait()
            await asyncio.sleep(min(timeout, 0.01))
            raise TransportError(f"No response from printer within {timeout}s")
        n = min(max_bytes, self.chunk_size or max_bytes)
        data, self._pending = self._pending[:n], self._pending[n:]
        return data

    async def end_job(self):
        self.end_job_calls += 1

    @property
    def is_connected(self) -> bool:
        return self.connected

    @property
    def wire(self) -> bytes:
        return b"".join(self.writes)

    @property
    def enq_count(self) -> int:
        return self.writes.count(ENQ)

    @property
    def payloads(self) -> list[bytes]:
        return [w for w in self.writes if w != ENQ]


@pytest.fixture
def fast_config():
    """Config that polls without delay."""
    return TransmissionConfig(poll_interval=0, read_timeout=0.5)


@pytest.fixture
def transport():
    """Fake transport that always reports ready."""
    return FakeTransport([make_frame("A")])


@pytest_asyncio.fixture
async def printer(transport, fast_config):
    """Open printer session over the fake transport."""
    p = SBPLPrinter(transport, fast_config)
    await p.open()
    yield p
    await p.close()


def pytest_addoption(parser):
    """Add command-line options for hardware tests."""
    parser.addoption(
        "--address",
        action="store",
        default=None,
        help="Network address HOST[:PORT] of the printer for hardware tests",
    )


@pytest.fixture
def printer_address(request):
    """Get the printer address from command line."""
    address = request.config.getoption("--address")
    if address is None:
        pytest.skip("No printer address provided (use --address=HOST[:PORT])")
    return address


@pytest_asyncio.fixture
async def connected_printer(printer_address):
    """Provide a connected printer instance."""
    host, port = parse_address(printer_address)
    p = SBPLPrinter.network(host, port)
    p.set_debug(True)

    try:
        await p.open()
    except TransportError as e:
        pytest.skip(f"Could not connect to printer at {printer_address}: {e}")

    yield p

    await p.close()
