from __future__ import annotations

"""
Base Types
"""

from typing import Dict, Literal

TransportT = Literal['tcp', 'tls', 'unix']

# scheme -> (backend, transport)
kv_db_schemas: Dict[str, tuple[str, TransportT]] = {
    "redis": ("redis", "tcp"),
    "redis+unix": ("redis", "unix"),
    "redis+socket": ("redis", "unix"),
    "redis+tls": ("redis", "tls"),
    "rediss": ("redis", "tls"),

    "dfly": ("dragonfly", "tcp"),
    "dfly+unix": ("dragonfly", "unix"),
    "dfly+socket": ("dragonfly", "unix"),
    "dfly+tls": ("dragonfly", "tls"),
    "dflys": ("dragonfly", "tls"),

    "dragonfly": ("dragonfly", "tcp"),
    "dragonflys": ("dragonfly", "tls"),

    "keydb": ("keydb", "tcp"),
    "keydb+unix": ("keydb", "unix"),
    "keydb+socket": ("keydb", "unix"),
    "keydb+tls": ("keydb", "tls"),
    "keydbs": ("keydb", "tls"),

    "kdb": ("keydb", "tcp"),
    "kdbs": ("keydb", "tls"),

    # transport-only schemes
    "tcp": ("redis", "tcp"),
    "tls": ("redis", "tls"),
    "unix": ("redis", "unix"),
}

supported_schemas = sorted(kv_db_schemas.keys())

DEFAULT_SCHEME = "redis"
DEFAULT_PORT = 6379
