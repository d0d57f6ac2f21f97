from __future__ import annotations

"""
Transport Connectors

A connector turns an authority (`tcp://host:port`, `tls://host:port`
or `unix:///path`) into a connected `Stream`.
"""

import abc
import ssl
import asyncio
from urllib.parse import urlsplit
from kvfactory.utils.logs import logger
from .stream import Stream
from typing import Optional


class BaseConnector(abc.ABC):
    """
    The Base Connector

    Implementations must be safe to share between concurrent connection attempts
    and must let `asyncio.CancelledError` propagate while pending.
    """

    @abc.abstractmethod
    async def connect(self, authority: str) -> Stream:
        """
        Opens a stream to the authority
        """
        ...


class Connector(BaseConnector):
    """
    Opens tcp, tls and unix socket streams with asyncio
    """

    def __init__(
        self,
        ssl_context: Optional[ssl.SSLContext] = None,
        limit: Optional[int] = None,
    ):
        self.ssl_context = ssl_context
        self.limit = limit

    def get_ssl_context(self) -> ssl.SSLContext:
        """
        Returns the ssl context used for tls streams
        """
        if self.ssl_context is None:
            self.ssl_context = ssl.create_default_context()
        return self.ssl_context

    async def connect(self, authority: str) -> Stream:
        """
        Opens a stream to the authority
        """
        parts = urlsplit(authority)
        kwargs = {'limit': self.limit} if self.limit else {}
        if parts.scheme == 'unix':
            logger.debug(f'Opening unix socket stream to {parts.path}')
            reader, writer = await asyncio.open_unix_connection(parts.path, **kwargs)
        elif parts.scheme in {'tcp', 'tls'}:
            if not parts.hostname or not parts.port:
                raise ValueError(f'Invalid authority: {authority}')
            ssl_context = self.get_ssl_context() if parts.scheme == 'tls' else None
            logger.debug(f'Opening {parts.scheme} stream to {parts.hostname}:{parts.port}')
            reader, writer = await asyncio.open_connection(
                parts.hostname,
                parts.port,
                ssl = ssl_context,
                **kwargs
            )
        else:
            raise ValueError(f'Unsupported authority: {authority}')
        return Stream(reader, writer, authority = authority)
