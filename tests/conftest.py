import asyncio
import hiredis
import pytest
from typing import Any, Callable, Dict, List, Optional, Type
from kvfactory import Factory
from kvfactory.components.connector import BaseConnector


SECRET = "s3cr3t-pa55"


class FakeStream:
    """
    Stands in for a connected stream
    """

    def __init__(self, authority: Optional[str] = None):
        self.authority = authority
        self.close_calls = 0

    @property
    def is_closed(self) -> bool:
        return self.close_calls > 0

    def close(self):
        self.close_calls += 1

    async def wait_closed(self):
        pass


class FakeConnector(BaseConnector):
    """
    Records connect calls and cancellations
    """

    def __init__(
        self,
        error: Optional[Exception] = None,
        delay: Optional[float] = None,
        hang: bool = False,
    ):
        self.error = error
        self.delay = delay
        self.hang = hang
        self.calls: List[str] = []
        self.streams: List[FakeStream] = []
        self.cancel_calls = 0
        self.on_connect: Optional[Callable[[], Any]] = None

    async def connect(self, authority: str) -> FakeStream:
        self.calls.append(authority)
        try:
            if self.hang: await asyncio.get_running_loop().create_future()
            if self.delay: await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancel_calls += 1
            raise
        if self.error is not None: raise self.error
        stream = FakeStream(authority)
        self.streams.append(stream)
        if self.on_connect is not None: self.on_connect()
        return stream


class FakeClient:
    """
    A client whose AUTH / SELECT outcome is set per test
    """

    auth_error: Optional[Exception] = None
    select_error: Optional[Exception] = None
    hang_on: Optional[str] = None
    after_select: Optional[Callable[[], Any]] = None
    instances: List['FakeClient'] = []

    def __init__(self, stream, parser, serializer):
        self.stream = stream
        self.parser = parser
        self.serializer = serializer
        self.calls: List[tuple] = []
        self.close_calls = 0
        self.instances.append(self)

    @property
    def is_closed(self) -> bool:
        return self.close_calls > 0

    async def _step(self, name: str, error: Optional[Exception]):
        if self.hang_on == name: await asyncio.get_running_loop().create_future()
        if error is not None: raise error
        return True

    async def auth(self, password: str, username: Optional[str] = None):
        self.calls.append(('AUTH', username, password))
        return await self._step('AUTH', self.auth_error)

    async def select(self, index: int):
        self.calls.append(('SELECT', index))
        result = await self._step('SELECT', self.select_error)
        if self.after_select is not None: self.after_select()
        return result

    async def execute_command(self, *args):
        self.calls.append(args)
        return b'PONG'

    def close(self):
        self.calls.append(('CLOSE',))
        self.close_calls += 1

    async def aclose(self):
        self.close()


@pytest.fixture
def make_client_class():
    """
    Returns a FakeClient subclass with the given behavior
    """
    def _make(**attrs) -> Type[FakeClient]:
        attrs.setdefault('instances', [])
        return type('TestClient', (FakeClient,), attrs)
    return _make


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def factory(connector: FakeConnector, make_client_class) -> Factory:
    return Factory(connector = connector, client_class = make_client_class(), timeout = -1)


class RespServer:
    """
    A minimal in-process RESP server
    """

    def __init__(self, password: Optional[str] = None, username: Optional[str] = None):
        self.password = password
        self.username = username
        self.connections: List[Dict] = []
        self.writers: List[asyncio.StreamWriter] = []
        self.server: Optional[asyncio.AbstractServer] = None
        self.port: Optional[int] = None
        self.path: Optional[str] = None

    async def start(self, path: Optional[str] = None) -> 'RespServer':
        if path:
            self.path = path
            self.server = await asyncio.start_unix_server(self.handle, path = path)
        else:
            self.server = await asyncio.start_server(self.handle, '127.0.0.1', 0)
            self.port = self.server.sockets[0].getsockname()[1]
        return self

    @property
    def url(self) -> str:
        return f'redis://127.0.0.1:{self.port}'

    def reply(self, state: Dict, command: List[bytes]) -> bytes:
        name = command[0].decode().upper()
        args = [a.decode() for a in command[1:]]
        state['commands'].append(name)
        if name == 'AUTH':
            username, password = (args[0], args[1]) if len(args) == 2 else (None, args[0])
            if password == self.password and username == self.username:
                state['authed'] = True
                return b'+OK\r\n'
            return b'-WRONGPASS invalid username-password pair or user is disabled.\r\n'
        if not state['authed']:
            return b'-NOAUTH Authentication required.\r\n'
        if name == 'SELECT':
            db = int(args[0])
            if db >= 16: return b'-ERR DB index is out of range\r\n'
            state['db'] = db
            return b'+OK\r\n'
        if name == 'PING':
            return b'+PONG\r\n'
        if name == 'ECHO':
            return b'$%d\r\n%s\r\n' % (len(command[1]), command[1])
        if name == 'CLIENT' and args and args[0].upper() == 'INFO':
            info = f"id={len(self.connections)} db={state['db']}".encode()
            return b'$%d\r\n%s\r\n' % (len(info), info)
        return b"-ERR unknown command '%s'\r\n" % command[0]

    async def handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        state = {'db': 0, 'authed': self.password is None, 'commands': []}
        self.connections.append(state)
        self.writers.append(writer)
        parser = hiredis.Reader()
        try:
            while data := await reader.read(65536):
                parser.feed(data)
                while (command := parser.gets()) is not False:
                    writer.write(self.reply(state, command))
                await writer.drain()
        except (ConnectionError, OSError):
            pass
        finally:
            writer.close()

    def drop_connections(self):
        for writer in self.writers:
            writer.close()
        self.writers.clear()

    async def stop(self):
        self.drop_connections()
        self.server.close()
        await self.server.wait_closed()


@pytest.fixture
async def resp_server():
    server = await RespServer().start()
    yield server
    await server.stop()


@pytest.fixture
async def auth_resp_server():
    server = await RespServer(password = SECRET).start()
    yield server
    await server.stop()
