"""
RESP Protocol Factory

Serializers and parsers are built on hiredis and carry no I/O.
"""

import hiredis
from redis.exceptions import ResponseError, InvalidResponse
from typing import Any, Optional, Union

NOT_ENOUGH_DATA = object()

EncodableT = Union[bytes, memoryview, str, int, float]


class RequestSerializer:
    """
    Packs a command into its RESP representation
    """

    def pack(self, *args: EncodableT) -> bytes:
        """
        Packs the command arguments
        """
        return hiredis.pack_command(args)


class ResponseParser:
    """
    Incremental RESP reply parser

    Error replies are returned as `ResponseError` instances, not raised.
    """

    def __init__(self, encoding: Optional[str] = None, errors: Optional[str] = None):
        kwargs = {}
        if encoding: kwargs['encoding'] = encoding
        if errors: kwargs['errors'] = errors
        self._reader = hiredis.Reader(
            protocolError = InvalidResponse,
            replyError = ResponseError,
            notEnoughData = NOT_ENOUGH_DATA,
            **kwargs
        )

    def feed(self, data: bytes) -> None:
        """
        Feeds raw bytes into the parser
        """
        self._reader.feed(data)

    def gets(self) -> Any:
        """
        Returns the next complete reply or `NOT_ENOUGH_DATA`
        """
        return self._reader.gets()


class ProtocolFactory:
    """
    Creates the codec pair for a client
    """

    def __init__(self, encoding: Optional[str] = None, errors: Optional[str] = None):
        self.encoding = encoding
        self.errors = errors

    def create_request_serializer(self) -> RequestSerializer:
        return RequestSerializer()

    def create_response_parser(self) -> ResponseParser:
        return ResponseParser(encoding = self.encoding, errors = self.errors)
