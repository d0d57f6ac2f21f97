from __future__ import annotations

"""
Connection Descriptor

Parses a connection target into the parameters used to open the
transport and run the handshake.

Usage:

    descriptor = ConnectionDescriptor.from_target('redis://:secret@localhost:6379/2?timeout=1.5')
    descriptor.authority  # 'tcp://127.0.0.1:6379'
    descriptor.redacted   # 'redis://:***@localhost:6379/2?timeout=1.5'
"""

import re
import math
from urllib.parse import urlsplit, parse_qs, unquote, unquote_plus
from pydantic import BaseModel, ConfigDict, Field
from kvfactory.errors import InvalidDescriptorError
from kvfactory.types.base import (
    TransportT,
    kv_db_schemas,
    supported_schemas,
    DEFAULT_SCHEME,
    DEFAULT_PORT,
)
from typing import Dict, List, Optional


MASK = '***'

_HEAD_RE = re.compile(r'^(?:[A-Za-z][A-Za-z0-9+.\-]*:)?//')


def _mask_query(query: str) -> str:
    """
    Masks every `password` value, matching keys as they decode
    """
    params = []
    for param in query.split('&'):
        key, sep, _ = param.partition('=')
        if sep and unquote_plus(key).strip().lower() == 'password': param = f'{key}={MASK}'
        params.append(param)
    return '&'.join(params)


def redact_target(target: str) -> str:
    """
    Masks the credentials of the target, keeping its original layout

    - `user:pass@` becomes `user:***@`
    - `secret@` becomes `***@`
    - `password=secret` becomes `password=***`

    Everything up to the last `@` is treated as userinfo, so a password holding
    `/`, `?`, `#` or `@` is masked whole.
    """
    head = match.group(0) if (match := _HEAD_RE.match(target)) else ''
    userinfo, at, rest = target[len(head):].rpartition('@')
    if userinfo:
        user, colon, _ = userinfo.partition(':')
        userinfo = f'{user}:{MASK}' if colon else MASK
    address, q, query = rest.partition('?')
    if q: query = _mask_query(query)
    return f'{head}{userinfo}{at}{address}{q}{query}'


def _get_query_param(query: Dict[str, List[str]], key: str) -> Optional[str]:
    """
    Returns the last value of the query parameter
    """
    values = query.get(key)
    return values[-1] if values else None


def _parse_db(value: str, redacted: str) -> int:
    """
    Parses the database index
    """
    try:
        db = int(value)
    except ValueError:
        raise InvalidDescriptorError(f'Invalid database index in {redacted}') from None
    if db < 0: raise InvalidDescriptorError(f'Invalid database index in {redacted}')
    return db


class ConnectionDescriptor(BaseModel):
    """
    The parsed connection target
    """
    target: str
    scheme: str
    backend: str
    transport: TransportT
    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = Field(None, repr = False)
    db: Optional[int] = None
    timeout: Optional[float] = None
    redacted: str

    model_config = ConfigDict(
        frozen = True,
        extra = 'forbid',
    )

    @classmethod
    def from_target(
        cls,
        target: Optional[str] = None,
        default_timeout: Optional[float] = None,
    ) -> 'ConnectionDescriptor':
        """
        Parses the target into a descriptor

        Raises `InvalidDescriptorError` if the target can not be used
        """
        if not target:
            from kvfactory.configs import settings
            target = settings.default_target
        target = target.strip()
        redacted = redact_target(target)
        url = target if '://' in target else f'{DEFAULT_SCHEME}://{target}'
        try:
            parts = urlsplit(url)
        except ValueError:
            raise InvalidDescriptorError(f'Unable to parse target {redacted}') from None

        scheme = parts.scheme.lower()
        if scheme not in kv_db_schemas:
            raise InvalidDescriptorError(f'Unsupported scheme `{parts.scheme}` in {redacted}. Supported schemes: {", ".join(supported_schemas)}')
        backend, transport = kv_db_schemas[scheme]
        query = parse_qs(parts.query, keep_blank_values = True)

        # Credentials
        username = unquote(parts.username) if parts.username else None
        password = unquote(parts.password) if parts.password else None
        if password is None and username is not None and ':' not in parts.netloc.rpartition('@')[0]:
            # `secret@host` carries the password only
            username, password = None, username
        if query_password := _get_query_param(query, 'password'):
            password = query_password

        host, port, path, db = None, None, None, None
        if transport == 'unix':
            if parts.hostname:
                raise InvalidDescriptorError(f'Socket path must be absolute in {redacted}')
            path = unquote(parts.path)
            if not path.startswith('/'):
                raise InvalidDescriptorError(f'Missing socket path in {redacted}')
        else:
            if not parts.hostname:
                raise InvalidDescriptorError(f'Missing host in {redacted}')
            host = unquote(parts.hostname)
            try:
                port = parts.port or DEFAULT_PORT
            except ValueError:
                raise InvalidDescriptorError(f'Invalid port in {redacted}') from None
            db_path = parts.path[1:] if parts.path.startswith('/') else parts.path
            if db_path: db = _parse_db(unquote(db_path), redacted)

        if query_db := _get_query_param(query, 'db'):
            db = _parse_db(query_db, redacted)

        # Timeout
        timeout = default_timeout
        if query_timeout := _get_query_param(query, 'timeout'):
            try:
                timeout = float(query_timeout)
            except ValueError:
                raise InvalidDescriptorError(f'Invalid timeout in {redacted}') from None
        if timeout is not None and (timeout < 0 or not math.isfinite(timeout)):
            timeout = None

        return cls(
            target = target,
            scheme = scheme,
            backend = backend,
            transport = transport,
            host = host,
            port = port,
            path = path,
            username = username,
            password = password,
            db = db,
            timeout = timeout,
            redacted = redacted,
        )

    @property
    def authority(self) -> str:
        """
        Returns the address handed to the connector
        """
        if self.transport == 'unix': return f'unix://{self.path}'
        host = '127.0.0.1' if self.host == 'localhost' else self.host
        if ':' in host: host = f'[{host}]'
        return f'{self.transport}://{host}:{self.port}'

    @property
    def has_auth(self) -> bool:
        """
        Returns True if the handshake should run AUTH
        """
        return self.password is not None

    @property
    def has_db(self) -> bool:
        """
        Returns True if the handshake should run SELECT
        """
        return self.db is not None

    @property
    def timeout_enabled(self) -> bool:
        """
        Returns True if the connection should race a deadline
        """
        return self.timeout is not None and self.timeout > 0

    def __repr__(self) -> str:
        """
        Returns the redacted target
        """
        return f"{self.__class__.__name__}('{self.redacted}')"

    def __str__(self) -> str:
        """
        Returns the redacted target
        """
        return self.redacted
