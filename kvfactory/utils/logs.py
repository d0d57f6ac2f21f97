import os
from loguru import logger as _logger
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from loguru import Logger as _Logger


class Logger:
    """
    A loguru logger bound to `name` that drops records below `level`

    Sinks stay with the application; records carry `extra['name']`
    """

    def __init__(self, name: str, level: str = 'INFO'):
        self.name = name
        self._logger: '_Logger' = _logger.bind(name = name)
        self.set_level(level)

    def set_level(self, level: str):
        self.level = level.upper()
        self._levelno = _logger.level(self.level).no

    def is_enabled_for(self, level: str) -> bool:
        return _logger.level(level.upper()).no >= self._levelno

    def _log(self, level: str, message: str, *args: Any, **kwargs: Any):
        if not self.is_enabled_for(level): return
        # depth 2 reports the caller of debug() / log()
        self._logger.opt(depth = 2).log(level.upper(), message, *args, **kwargs)

    def log(self, level: str, message: str, *args: Any, **kwargs: Any):
        self._log(level, message, *args, **kwargs)

    def debug(self, message: str, *args: Any, **kwargs: Any):
        self._log('DEBUG', message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any):
        self._log('INFO', message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any):
        self._log('WARNING', message, *args, **kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any):
        self._log('ERROR', message, *args, **kwargs)

    def exception(self, message: Any, *args: Any, **kwargs: Any):
        if not self.is_enabled_for('ERROR'): return
        self._logger.opt(depth = 1, exception = True).error(str(message), *args, **kwargs)


logger_level: str = os.getenv('LOGGER_LEVEL', 'INFO').upper()
logger = Logger('kvfactory', logger_level)
