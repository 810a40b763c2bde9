"""
Printer health inquiry.

Writes ENQ and reads one STATUS4 frame back from the transport.
"""

import asyncio
import logging
from typing import Optional

from .connection import TransportPort
from .exceptions import TransportError
from .responses import FRAME_LENGTH, HealthState, StatusFrame
from .sbpl_commands import ENQ

logger = logging.getLogger(__name__)


class StatusMonitor:
    """Queries and classifies printer health."""

    def __init__(self, read_timeout: float = 5.0):
        self.read_timeout = read_timeout
        self.last_frame: Optional[StatusFrame] = None

    async def query_frame(self, transport: TransportPort) -> StatusFrame:
        """
        Send one inquiry and parse the reply.

        Partial reads are accumulated until a full frame has arrived or the
        read timeout has elapsed.

        Raises:
            TransportError: On write/read failure or a malformed frame
        """
        await transport.write(ENQ)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.read_timeout
        data = b""
        while len(data) < FRAME_LENGTH:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise TransportError(
                    f"Incomplete status frame ({len(data)}/{FRAME_LENGTH} bytes)"
                )
            data += await transport.read(FRAME_LENGTH - len(data), remaining)

        frame = StatusFrame.parse(data)
        self.last_frame = frame
        logger.debug("RX status: %s", frame)
        return frame

    async def query(self, transport: TransportPort) -> HealthState:
        """Send one inquiry and return the classified health state."""
        frame = await self.query_frame(transport)
        return frame.state
