from __future__ import annotations

"""
KVFactory - Async connection factory for Redis-compatible servers
"""

from . import errors
from .errors import (
    KVFactoryException,
    InvalidDescriptorError,
    ConnectionFailedError,
    AuthError,
    SelectError,
    ConnectTimeoutError,
    ClientCancelledError,
)
from .types.descriptor import ConnectionDescriptor, redact_target
from .components import (
    Stream,
    BaseConnector,
    Connector,
    ProtocolFactory,
    StreamClient,
    PendingClient,
    ConnectState,
    LazyClient,
)
from .factory import Factory, get_factory, create_client, create_lazy_client
from .version import VERSION
