from __future__ import annotations

"""
Main Config Class
"""

from pydantic import Field, AliasChoices, ImportString, TypeAdapter, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any, Optional, Type, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from kvfactory.components.connector import BaseConnector
    from kvfactory.components.client import StreamClient


DEFAULT_TARGET = "redis://127.0.0.1:6379"
DEFAULT_SOCKET_TIMEOUT = 60.0

_import_string = TypeAdapter(ImportString)


class KVFactorySettings(BaseSettings):
    """
    KVFactory Settings

    The default socket timeout is applied to every connection attempt
    unless the target overrides it with `?timeout=`
    """

    default_target: str = Field(DEFAULT_TARGET, validation_alias = AliasChoices('KVFACTORY_DEFAULT_TARGET', 'KVFACTORY_URL', 'default_target'))
    default_socket_timeout: Optional[float] = Field(DEFAULT_SOCKET_TIMEOUT, validation_alias = AliasChoices('KVFACTORY_DEFAULT_SOCKET_TIMEOUT', 'DEFAULT_SOCKET_TIMEOUT', 'default_socket_timeout'))

    connector_class: Optional[ImportString] = None
    client_class: Optional[ImportString] = None

    debug: Optional[bool] = None

    model_config = SettingsConfigDict(
        env_prefix = 'KVFACTORY_',
        case_sensitive = False,
        populate_by_name = True,
        validate_assignment = True,
    )

    @field_validator('default_socket_timeout', mode = 'before')
    def validate_default_socket_timeout(cls, v: Optional[Union[str, float]]) -> Optional[float]:
        """
        An empty value disables the default timeout
        """
        if v is None or (isinstance(v, str) and not v.strip()): return None
        return float(v)

    def model_post_init(self, __context: Any) -> None:
        if self.debug: self.configure_logging()

    def configure_logging(self):
        """
        Sets the package log level, `debug` lowers it to DEBUG
        """
        from kvfactory.utils.logs import logger, logger_level
        logger.set_level("DEBUG" if self.debug else logger_level)

    def configure(self, **kwargs):
        """
        Update the settings
        """
        for k, v in kwargs.items():
            if not hasattr(self, k): continue
            setattr(self, k, v)
        if "debug" in kwargs: self.configure_logging()

    def get_connector_class(self, connector_class: Optional[Union[str, Type['BaseConnector']]] = None) -> Type['BaseConnector']:
        """
        Returns the connector class
        """
        connector_class = self.connector_class if connector_class is None else connector_class
        if connector_class is None:
            from kvfactory.components.connector import Connector
            return Connector
        if isinstance(connector_class, str): connector_class = _import_string.validate_python(connector_class)
        return connector_class

    def get_client_class(self, client_class: Optional[Union[str, Type['StreamClient']]] = None) -> Type['StreamClient']:
        """
        Returns the client class
        """
        client_class = self.client_class if client_class is None else client_class
        if client_class is None:
            from kvfactory.components.client import StreamClient
            return StreamClient
        if isinstance(client_class, str): client_class = _import_string.validate_python(client_class)
        return client_class

