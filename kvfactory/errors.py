"""
Exceptions raised while creating a client
"""

from redis.exceptions import RedisError
from typing import Optional, Union, TYPE_CHECKING
from .utils.logs import logger

if TYPE_CHECKING:
    from kvfactory.types.descriptor import ConnectionDescriptor


class KVFactoryException(Exception):

    verbose: Optional[bool] = None
    fatal: Optional[bool] = None
    level: Optional[str] = 'ERROR'
    traceback_depth: Optional[int] = None

    def __init__(
        self,
        msg: Optional[str] = None,
        fatal: Optional[bool] = None,
        verbose: Optional[bool] = None,
        level: Optional[str] = None,
        traceback_depth: Optional[int] = None,
        source_error: Optional[Union[RedisError, Exception]] = None,
        *args,
    ):

        self.msg = msg or ''
        self.source_error = source_error
        if source_error is not None: self.msg += f' ({source_error.__class__.__name__}: {source_error})'
        if fatal is not None: self.fatal = fatal
        if verbose is not None: self.verbose = verbose
        if level is not None: self.level = level
        if traceback_depth is not None: self.traceback_depth = traceback_depth
        super().__init__(self.msg, *args)
        self.display()

    def display(self):
        """
        Displays the error
        """
        if self.verbose:
            logger.log(self.level, self.log_msg)

    @property
    def error_name(self) -> str:
        """
        Returns the error name
        """
        return self.__class__.__name__

    @property
    def log_msg(self) -> str:
        """
        Returns the log message
        """
        msg = f'[{self.error_name}]'
        if self.msg: msg += f' {self.msg}'
        if self.fatal:
            import traceback
            msg += f'\n{traceback.format_exc(limit = self.traceback_depth)}'
        return msg.strip()


class InvalidDescriptorError(KVFactoryException, ValueError):
    """
    Raised when the connection target can not be parsed
    """
    level = 'WARNING'
    traceback_depth = 1
    verbose = False


class DescriptorError(KVFactoryException):
    """
    Base for errors raised against a parsed descriptor

    The message is always composed from the redacted descriptor.
    """
    step: Optional[str] = None

    def __init__(
        self,
        descriptor: 'ConnectionDescriptor',
        msg: Optional[str] = None,
        **kwargs,
    ):
        self.descriptor = descriptor
        msg = msg or f'Connection to {descriptor.redacted} failed'
        if self.step: msg += f' during {self.step}'
        super().__init__(msg = msg, **kwargs)

    @property
    def target(self) -> str:
        """
        Returns the redacted target
        """
        return self.descriptor.redacted


class ConnectionFailedError(DescriptorError):
    """
    Raised when the transport could not be established
    """
    level = 'ERROR'
    traceback_depth = 2
    verbose = True

    def __init__(self, descriptor: 'ConnectionDescriptor', **kwargs):
        super().__init__(descriptor, msg = f'Connection to {descriptor.redacted} failed', **kwargs)


class AuthError(DescriptorError):
    """
    Raised when the server rejects AUTH
    """
    level = 'ERROR'
    traceback_depth = 2
    verbose = True
    step = 'AUTH'


class SelectError(DescriptorError):
    """
    Raised when the server rejects SELECT
    """
    level = 'ERROR'
    traceback_depth = 2
    verbose = True
    step = 'SELECT'


class ConnectTimeoutError(DescriptorError):
    """
    Raised when the connection was not ready before the deadline
    """
    level = 'WARNING'
    traceback_depth = 1
    verbose = True

    def __init__(self, descriptor: 'ConnectionDescriptor', timeout: float, **kwargs):
        self.timeout = timeout
        super().__init__(descriptor, msg = f'Connection to {descriptor.redacted} timed out after {timeout} seconds', **kwargs)


class ClientCancelledError(DescriptorError):
    """
    Raised when the connection attempt was cancelled by the caller
    """
    level = 'DEBUG'
    traceback_depth = 1
    verbose = False

    def __init__(self, descriptor: 'ConnectionDescriptor', **kwargs):
        super().__init__(descriptor, msg = f'Connection to {descriptor.redacted} cancelled', **kwargs)
