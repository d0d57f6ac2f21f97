from __future__ import annotations

"""
Byte Stream
"""

import asyncio
import contextlib
from typing import Optional


class Stream:
    """
    A connected byte stream wrapping an asyncio reader / writer pair
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        authority: Optional[str] = None,
    ):
        self.reader = reader
        self.writer = writer
        self.authority = authority
        self._closed = False

    @property
    def is_closed(self) -> bool:
        """
        Returns True if the stream was closed locally or by the peer
        """
        return self._closed or self.writer.is_closing()

    async def read(self, n: int = 65536) -> bytes:
        """
        Reads up to `n` bytes, returns b'' at EOF
        """
        return await self.reader.read(n)

    async def write(self, data: bytes) -> None:
        """
        Writes the data and waits for the buffer to drain
        """
        self.writer.write(data)
        await self.writer.drain()

    def close(self) -> None:
        """
        Closes the stream. Safe to call more than once
        """
        if self._closed: return
        self._closed = True
        self.writer.close()

    async def wait_closed(self) -> None:
        """
        Waits until the underlying transport is closed
        """
        with contextlib.suppress(ConnectionError, OSError):
            await self.writer.wait_closed()

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.authority} closed={self.is_closed}>'
