from __future__ import annotations

"""
The Client Factory

Usage:

    from kvfactory import Factory

    factory = Factory()
    client = await factory.create_client('redis://:secret@localhost:6379/2?timeout=5')
    await client.execute_command('SET', 'key', 'value')

    # Cancel an attempt
    pending = factory.create_client('redis://localhost:6379')
    pending.cancel()
"""

from kvfactory.errors import InvalidDescriptorError
from kvfactory.types.descriptor import ConnectionDescriptor
from kvfactory.utils.lazy import settings
from kvfactory.components.pending import PendingClient
from kvfactory.components.lazy import LazyClient
from kvfactory.components.protocol import ProtocolFactory
from typing import Optional, Type, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from kvfactory.components.connector import BaseConnector
    from kvfactory.components.client import StreamClient


class Factory:
    """
    Creates clients connected to a key-value server
    """

    def __init__(
        self,
        connector: Optional['BaseConnector'] = None,
        protocol: Optional[ProtocolFactory] = None,
        client_class: Optional[Union[str, Type['StreamClient']]] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initializes the factory

        :param connector: Opens the transport. Defaults to the configured connector class
        :param protocol: Creates the parser and serializer for each client
        :param client_class: Wraps the stream once connected
        :param timeout: The default timeout in seconds. Defaults to `settings.default_socket_timeout`.
            A negative value disables the timeout
        """
        self.connector = connector if connector is not None else settings.get_connector_class()()
        self.protocol = protocol if protocol is not None else ProtocolFactory()
        self.client_class = settings.get_client_class(client_class)
        self._timeout = timeout

    @property
    def timeout(self) -> Optional[float]:
        """
        Returns the default timeout applied to targets without `?timeout=`
        """
        return settings.default_socket_timeout if self._timeout is None else self._timeout

    def parse_target(self, target: Optional[str] = None) -> ConnectionDescriptor:
        """
        Parses the target using the factory's default timeout
        """
        return ConnectionDescriptor.from_target(target, default_timeout = self.timeout)

    def connect(self, descriptor: ConnectionDescriptor) -> PendingClient:
        """
        Starts a connection attempt for a parsed descriptor
        """
        return PendingClient(
            descriptor,
            connector = self.connector,
            protocol = self.protocol,
            client_class = self.client_class,
        )

    def create_client(self, target: Optional[str] = None) -> PendingClient:
        """
        Starts a connection attempt

        The returned `PendingClient` resolves with a ready client. An invalid
        target resolves it with `InvalidDescriptorError` without connecting.
        """
        try:
            descriptor = self.parse_target(target)
        except InvalidDescriptorError as e:
            return PendingClient.from_error(e)
        return self.connect(descriptor)

    def create_lazy_client(self, target: Optional[str] = None) -> LazyClient:
        """
        Returns a client that connects on first use

        Raises `InvalidDescriptorError` if the target can not be parsed
        """
        return LazyClient(self, self.parse_target(target))


_default_factory: Optional[Factory] = None


def get_factory() -> Factory:
    """
    Returns the default factory
    """
    global _default_factory
    if _default_factory is None:
        _default_factory = Factory()
    return _default_factory


def create_client(target: Optional[str] = None) -> PendingClient:
    """
    Starts a connection attempt with the default factory
    """
    return get_factory().create_client(target)


def create_lazy_client(target: Optional[str] = None) -> LazyClient:
    """
    Returns a lazy client from the default factory
    """
    return get_factory().create_lazy_client(target)
