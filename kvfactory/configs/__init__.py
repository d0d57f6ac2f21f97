from __future__ import annotations

from kvfactory.utils.lazy import settings, get_settings
from .main import KVFactorySettings
