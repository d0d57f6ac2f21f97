from __future__ import annotations

"""
Pending Client

The awaitable returned by `Factory.create_client`. It resolves exactly once:
with a ready client, with an error, or as cancelled. Cancelling it (directly
or by cancelling the task awaiting it) and hitting the deadline both resolve
the outcome first and then tear down whatever the attempt holds.
"""

import asyncio
from enum import Enum
import kvfactory.errors as errors
from kvfactory.utils.logs import logger
from .handshake import run_handshake, close_quietly
from typing import Any, Callable, Generator, Optional, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from kvfactory.types.descriptor import ConnectionDescriptor
    from .connector import BaseConnector
    from .protocol import ProtocolFactory
    from .client import StreamClient


class ConnectState(str, Enum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    AUTHENTICATING = "AUTHENTICATING"
    SELECTING = "SELECTING"
    READY = "READY"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


HANDSHAKE_STATES = {
    'AUTH': ConnectState.AUTHENTICATING,
    'SELECT': ConnectState.SELECTING,
}

TERMINAL_STATES = {
    ConnectState.READY,
    ConnectState.FAILED,
    ConnectState.CANCELLED,
}


class PendingClient:
    """
    A single connection attempt
    """

    def __init__(
        self,
        descriptor: Optional['ConnectionDescriptor'],
        connector: Optional['BaseConnector'] = None,
        protocol: Optional['ProtocolFactory'] = None,
        client_class: Optional[Type['StreamClient']] = None,
        error: Optional[Exception] = None,
    ):
        self.descriptor = descriptor
        self.connector = connector
        self.protocol = protocol
        self.client_class = client_class
        self.state = ConnectState.IDLE

        self._loop = asyncio.get_running_loop()
        self._future: asyncio.Future = self._loop.create_future()
        self._attempt: Optional[asyncio.Task] = None
        self._client: Optional['StreamClient'] = None
        self._task: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.TimerHandle] = None

        if error is not None:
            self.state = ConnectState.FAILED
            self._future.set_exception(error)
            return

        self._future.add_done_callback(self._on_future_done)
        self._task = self._loop.create_task(self._run())
        self._task.add_done_callback(self._on_task_done)
        if descriptor.timeout_enabled:
            self._timer = self._loop.call_later(descriptor.timeout, self._expire)

    @classmethod
    def from_error(cls, error: Exception) -> 'PendingClient':
        """
        Returns an already failed attempt
        """
        return cls(None, error = error)

    """
    Pipeline
    """

    def _set_step(self, name: str):
        """
        Tracks the handshake step in flight
        """
        self.state = HANDSHAKE_STATES.get(name, self.state)

    async def _run(self) -> 'StreamClient':
        """
        Connects, wraps the stream and runs the handshake
        """
        self.state = ConnectState.CONNECTING
        logger.debug(f'Connecting to {self.descriptor.redacted}')
        self._attempt = self._loop.create_task(self.connector.connect(self.descriptor.authority))
        try:
            # The attempt is released by `_teardown` when the caller gives up
            stream = await asyncio.shield(self._attempt)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise errors.ConnectionFailedError(self.descriptor, source_error = e) from e

        try:
            self._client = self.client_class(
                stream,
                self.protocol.create_response_parser(),
                self.protocol.create_request_serializer(),
            )
        except Exception as e:
            stream.close()
            raise errors.ConnectionFailedError(self.descriptor, source_error = e) from e
        return await run_handshake(self._client, self.descriptor, on_step = self._set_step)

    def _on_task_done(self, task: asyncio.Task):
        """
        Routes the natural outcome of the pipeline
        """
        if task.cancelled(): return
        exc = task.exception()
        if self._future.done():
            # The outcome was already observed, release a late client
            if exc is None: close_quietly(task.result())
            return
        self._cancel_timer()
        if exc is not None:
            self.state = ConnectState.FAILED
            self._future.set_exception(exc)
        else:
            self.state = ConnectState.READY
            logger.debug(f'Connected to {self.descriptor.redacted}')
            self._future.set_result(task.result())

    """
    Cancellation and Timeout
    """

    def _on_future_done(self, fut: asyncio.Future):
        """
        Tears down the attempt when the outcome resolved before the pipeline
        """
        self._cancel_timer()
        if self._task.done(): return
        if fut.cancelled(): self.state = ConnectState.CANCELLED
        self._teardown()

    def _teardown(self):
        """
        Cancels the pending transport attempt or closes what it produced
        """
        try:
            self._task.cancel()
            attempt = self._attempt
            if attempt is not None:
                if not attempt.done():
                    attempt.cancel()
                elif self._client is None and not attempt.cancelled() and attempt.exception() is None:
                    attempt.result().close()
            if self._client is not None:
                close_quietly(self._client)
        except Exception as e:
            logger.warning(f'Error tearing down connection to {self.descriptor.redacted}: {e}')

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _expire(self):
        """
        Called when the deadline elapses
        """
        self._timer = None
        if self._future.done(): return
        self.state = ConnectState.FAILED
        self._future.set_exception(errors.ConnectTimeoutError(self.descriptor, self.descriptor.timeout))

    def cancel(self, msg: Optional[Any] = None) -> bool:
        """
        Abandons the attempt

        Returns False if the outcome was already resolved
        """
        if self._future.done(): return False
        self.state = ConnectState.CANCELLED
        self._future.set_exception(errors.ClientCancelledError(self.descriptor))
        # The caller asked for this outcome, it does not need to be retrieved
        self._future.exception()
        return True

    """
    Future Interface
    """

    def done(self) -> bool:
        return self._future.done()

    def cancelled(self) -> bool:
        """
        Returns True if the attempt was cancelled
        """
        if self._future.cancelled(): return True
        return self._future.done() and isinstance(self._future.exception(), errors.ClientCancelledError)

    def result(self) -> 'StreamClient':
        return self._future.result()

    def exception(self) -> Optional[BaseException]:
        return self._future.exception()

    def add_done_callback(self, fn: Callable[['PendingClient'], Any]):
        """
        Calls `fn` with this attempt once it resolves
        """
        self._future.add_done_callback(lambda _: fn(self))

    def __await__(self) -> Generator[Any, None, 'StreamClient']:
        return self._future.__await__()

    def __repr__(self) -> str:
        target = self.descriptor.redacted if self.descriptor is not None else None
        return f'<{self.__class__.__name__} {target} state={self.state.value}>'
