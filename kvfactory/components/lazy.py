from __future__ import annotations

"""
Lazy Client

Defers connecting until the first command is sent. A client that was
lost is recreated on the next command; failed attempts are not retried
within the same call.
"""

import asyncio
from redis.exceptions import ConnectionError
from kvfactory.utils.logs import logger
from .handshake import close_quietly
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from kvfactory.factory import Factory
    from kvfactory.types.descriptor import ConnectionDescriptor
    from .client import StreamClient
    from .pending import PendingClient
    from .protocol import EncodableT


class LazyClient:
    """
    A client that connects on first use
    """

    def __init__(
        self,
        factory: 'Factory',
        descriptor: 'ConnectionDescriptor',
    ):
        self.factory = factory
        self.descriptor = descriptor
        self._client: Optional['StreamClient'] = None
        self._pending: Optional['PendingClient'] = None
        self._closed = False

    @property
    def is_connected(self) -> bool:
        return self._client is not None and not self._client.is_closed

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def get_client(self) -> 'StreamClient':
        """
        Returns the connected client, connecting if needed
        """
        if self._closed: raise ConnectionError(f'Client for {self.descriptor.redacted} is closed')
        if self.is_connected: return self._client
        if self._pending is None:
            if self._client is not None:
                logger.debug(f'Reconnecting to {self.descriptor.redacted}')
            self._pending = self.factory.connect(self.descriptor)
        pending = self._pending
        try:
            # Concurrent callers share the attempt, one of them going away does not cancel it
            client = await asyncio.shield(pending)
        finally:
            if self._pending is pending and pending.done(): self._pending = None
        if self._closed:
            close_quietly(client)
            raise ConnectionError(f'Client for {self.descriptor.redacted} is closed')
        self._client = client
        return client

    async def execute_command(self, *args: 'EncodableT') -> Any:
        """
        Sends a command, connecting first if needed
        """
        client = await self.get_client()
        return await client.execute_command(*args)

    async def ping(self) -> Any:
        return await self.execute_command('PING')

    def close(self):
        """
        Closes the client and abandons any attempt in flight
        """
        self._closed = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        if self._client is not None:
            close_quietly(self._client)

    async def aclose(self):
        client = self._client
        self.close()
        if client is not None: await client.aclose()

    async def __aenter__(self) -> 'LazyClient':
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.descriptor.redacted} connected={self.is_connected}>'
