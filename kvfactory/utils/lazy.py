from __future__ import annotations

# Lazy Initialization
from lazy_object_proxy import Proxy
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from kvfactory.configs.main import KVFactorySettings

_kvfactory_settings: Optional['KVFactorySettings'] = None


def get_settings() -> 'KVFactorySettings':
    """
    Gets the settings object
    """
    global _kvfactory_settings
    if _kvfactory_settings is None:
        from kvfactory.configs.main import KVFactorySettings
        _kvfactory_settings = KVFactorySettings()
    return _kvfactory_settings


settings: 'KVFactorySettings' = Proxy(get_settings)
