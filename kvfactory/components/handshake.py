from __future__ import annotations

"""
Connection Handshake

Runs the post-connect steps in a fixed order: AUTH, then SELECT.
Each step gates on the same client; a failed step closes the client
before the error is raised.
"""

import asyncio
import kvfactory.errors as errors
from kvfactory.utils.logs import logger
from typing import Awaitable, Callable, List, Optional, Tuple, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from kvfactory.types.descriptor import ConnectionDescriptor
    from .client import StreamClient


HandshakeStepT = Tuple[str, Type[errors.DescriptorError], Callable[['StreamClient'], Awaitable]]


def close_quietly(client: 'StreamClient'):
    """
    Closes the client, logging instead of raising on failure
    """
    try:
        client.close()
    except Exception as e:
        logger.warning(f'Error closing client: {e}')


def build_handshake(descriptor: 'ConnectionDescriptor') -> List[HandshakeStepT]:
    """
    Returns the handshake steps required by the descriptor
    """
    steps: List[HandshakeStepT] = []
    if descriptor.has_auth:
        steps.append(('AUTH', errors.AuthError, lambda client: client.auth(descriptor.password, username = descriptor.username)))
    if descriptor.has_db:
        steps.append(('SELECT', errors.SelectError, lambda client: client.select(descriptor.db)))
    return steps


async def run_handshake(
    client: 'StreamClient',
    descriptor: 'ConnectionDescriptor',
    on_step: Optional[Callable[[str], None]] = None,
) -> 'StreamClient':
    """
    Runs the handshake against the client and returns the same client

    `on_step` is called with the step name before each step runs
    """
    for name, error_cls, step in build_handshake(descriptor):
        if on_step is not None: on_step(name)
        logger.debug(f'Running {name} against {descriptor.redacted}')
        try:
            await step(client)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            close_quietly(client)
            raise error_cls(descriptor, source_error = e) from e
    return client
