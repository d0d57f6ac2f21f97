from __future__ import annotations

"""
KVFactory CLI
"""
import sys
import asyncio
import typer
from typing import Optional


cmd = typer.Typer(
   name = "KVFactory CLI",
   help = "Check connections to Redis-compatible servers",
   invoke_without_command = True,
)


async def _check(target: Optional[str], timeout: Optional[float]):
    """
    Connects, sends a PING and closes the client
    """
    from kvfactory.factory import Factory
    factory = Factory(timeout = timeout)
    descriptor = factory.parse_target(target)
    typer.echo(f"Connecting to {descriptor.redacted} ({descriptor.authority})")
    client = await factory.connect(descriptor)
    try:
        reply = await client.ping()
    finally:
        await client.aclose()
    typer.echo(f"PING: {reply!r}")


@cmd.callback()
def callback():
    """
    Check connections to Redis-compatible servers
    """


@cmd.command()
def check(
    target: Optional[str] = typer.Argument(None, help = "Connection target, e.g. redis://:password@localhost:6379/0"),
    timeout: Optional[float] = typer.Option(None, '-t', help = "Timeout in seconds. Negative disables the timeout"),
):
    """
    Checks that a client can be created for the target
    """
    from kvfactory.errors import KVFactoryException
    from kvfactory.utils.logs import logger
    try:
        asyncio.run(_check(target, timeout))
    except KVFactoryException as e:
        typer.echo(f"Failed: {e}", err = True)
        sys.exit(1)
    except Exception as e:
        logger.exception(e)
        sys.exit(1)


def main():
    """
    Main entrypoint
    """
    cmd()

if __name__ == "__main__":
    cmd()
