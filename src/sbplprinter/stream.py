"""
Page framing for multi-page SBPL jobs.

A job on the wire looks like:

    STX  ESC A ... ESC Z  ESC A ... ESC Z  ...  ESC A ESC Z ETX
    |    `- page (stream) -'                    `- job terminator -'
    `- sent once, with the first page of the job

begin_stream() sends the buffered page and keeps the job open;
finalize_and_send() sends what is left and terminates the job.
"""

import asyncio
import logging
from typing import Optional

from .buffer import CommandBuffer
from .protocol import TransmissionProtocol
from .sbpl_commands import ETX, PAGE_END, PAGE_START, STX

logger = logging.getLogger(__name__)

JOB_TERMINATOR = PAGE_START + PAGE_END + ETX


class StreamController:
    """Turns the command buffer into framed pages and hands them to the protocol."""

    def __init__(self, buffer: CommandBuffer, protocol: TransmissionProtocol):
        self.buffer = buffer
        self.protocol = protocol
        # True once STX has gone out for the current job
        self.job_open = False

    def _job_prefix(self) -> bytes:
        return b"" if self.job_open else STX

    def _page(self, tail: bytes = b"") -> bytes:
        return self.buffer.framed(PAGE_START, tail + PAGE_END)

    async def begin_stream(self, cancel: Optional[asyncio.Event] = None) -> int:
        """
        Send the buffered operations as one intermediate page.

        The job stays open; the buffer is cleared for the next page only
        after the page was written.

        Returns:
            Number of bytes written
        """
        payload = self._job_prefix() + self._page()
        written = await self.protocol.transmit(payload, cancel)

        self.job_open = True
        self.buffer.clear()
        logger.debug("Stream sent (%d bytes)", written)
        return written

    async def finalize_and_send(
        self, cancel: Optional[asyncio.Event] = None, tail: bytes = b""
    ) -> int:
        """
        Send any buffered operations followed by the job terminator.

        Args:
            cancel: Optional event that aborts the health wait
            tail: Operations appended to the last page for this send only;
                they never enter the buffer

        Returns:
            Number of bytes written
        """
        payload = self._job_prefix()
        if tail or not self.buffer.is_empty:
            payload += self._page(tail)
        payload += JOB_TERMINATOR

        written = await self.protocol.transmit(payload, cancel)

        self.job_open = False
        self.buffer.clear()
        await self.protocol.transport.end_job()
        logger.debug("Job sent (%d bytes)", written)
        return written
