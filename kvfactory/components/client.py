from __future__ import annotations

"""
Streaming Client

A pipelined RESP client over a single connected stream. Replies are
matched to requests in FIFO order by a background reader task.
"""

import asyncio
import contextlib
from collections import deque
from redis.exceptions import ConnectionError, ResponseError
from kvfactory.utils.logs import logger
from .protocol import NOT_ENOUGH_DATA, EncodableT, ResponseParser, RequestSerializer
from .stream import Stream
from typing import Any, Deque, Optional


class StreamClient:
    """
    The client handle returned once a connection is ready
    """

    def __init__(
        self,
        stream: Stream,
        parser: ResponseParser,
        serializer: RequestSerializer,
    ):
        self.stream = stream
        self.parser = parser
        self.serializer = serializer
        self.db: Optional[int] = None
        self._pending: Deque[asyncio.Future] = deque()
        self._closed = False
        self._reader_task = asyncio.get_running_loop().create_task(self._read_replies())

    @property
    def is_closed(self) -> bool:
        """
        Returns True once the client was closed or lost its stream
        """
        return self._closed

    async def _read_replies(self):
        """
        Feeds the parser and resolves pending requests
        """
        try:
            while True:
                data = await self.stream.read()
                if not data:
                    raise ConnectionError('Connection closed by server')
                self.parser.feed(data)
                while (reply := self.parser.gets()) is not NOT_ENOUGH_DATA:
                    self._resolve(reply)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._closed: logger.debug(f'Stream to {self.stream.authority} failed: {e}')
            self._shutdown(e if isinstance(e, ConnectionError) else ConnectionError(str(e)))

    def _resolve(self, reply: Any):
        """
        Resolves the oldest pending request
        """
        if not self._pending:
            logger.warning(f'Received an unexpected reply from {self.stream.authority}')
            return
        fut = self._pending.popleft()
        if fut.done(): return
        if isinstance(reply, ResponseError): fut.set_exception(reply)
        else: fut.set_result(reply)

    def _shutdown(self, exc: Exception):
        """
        Closes the stream and fails every pending request
        """
        self._closed = True
        self.stream.close()
        while self._pending:
            fut = self._pending.popleft()
            if not fut.done(): fut.set_exception(exc)

    async def execute_command(self, *args: EncodableT) -> Any:
        """
        Sends a command and waits for its reply

        Server error replies are raised as `ResponseError`
        """
        if self._closed: raise ConnectionError('Client is closed')
        fut = asyncio.get_running_loop().create_future()
        self._pending.append(fut)
        try:
            await self.stream.write(self.serializer.pack(*args))
        except (OSError, RuntimeError) as e:
            self._shutdown(ConnectionError(str(e)))
            raise ConnectionError(f'Error writing to {self.stream.authority}: {e}') from e
        return await fut

    async def auth(self, password: str, username: Optional[str] = None) -> bool:
        """
        Authenticates the connection
        """
        args = ('AUTH', username, password) if username else ('AUTH', password)
        return await self.execute_command(*args) in {b'OK', 'OK'}

    async def select(self, index: int) -> bool:
        """
        Selects the logical database
        """
        ok = await self.execute_command('SELECT', index) in {b'OK', 'OK'}
        if ok: self.db = index
        return ok

    async def ping(self) -> Any:
        """
        Sends a PING
        """
        return await self.execute_command('PING')

    def close(self):
        """
        Closes the client. Safe to call more than once
        """
        if self._closed and self._reader_task.done(): return
        self._shutdown(ConnectionError('Connection closed'))
        self._reader_task.cancel()

    async def aclose(self):
        """
        Closes the client and waits for the stream to close
        """
        self.close()
        with contextlib.suppress(asyncio.CancelledError):
            await self._reader_task
        await self.stream.wait_closed()

    async def __aenter__(self) -> 'StreamClient':
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.stream.authority} db={self.db} closed={self._closed}>'
