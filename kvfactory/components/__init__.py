from .stream import Stream
from .connector import BaseConnector, Connector
from .protocol import ProtocolFactory, RequestSerializer, ResponseParser
from .client import StreamClient
from .pending import PendingClient, ConnectState
from .lazy import LazyClient
