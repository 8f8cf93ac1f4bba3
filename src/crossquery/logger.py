import logging
from typing import Optional

from crossquery.settings import settings as api_settings

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_global_logging(level: str = "INFO") -> None:
    """Configure the root logger once in a standardized format.

    Args:
        level: Log level name (e.g., "DEBUG", "INFO")
    """
    global _configured
    if _configured:
        return
    logging.basicConfig(level=resolve_level(level), format=LOG_FORMAT)
    _configured = True


def resolve_level(level: Optional[str]) -> int:
    """Map a level name to its ``logging`` constant, INFO when unknown or unset."""
    return _LEVELS.get((level or "").upper(), logging.INFO)


def get_logger(name: Optional[str] = None) -> "Logger":
    """Return a module/class logger. Ensures global logging is configured.

    Args:
        name: Logger name, usually __name__ or a class name
    """
    return Logger(name or "crossquery")


class Logger:
    """Thin wrapper over standard logging used by every CrossQuery component.

    - Configures logging from ``settings.LOG_LEVEL`` the first time a logger is built.
    - Names are prefixed with ``crossquery.`` so hosts can tune the whole library at once.
    - ``.message(text)`` logs at the configured level (INFO when unset).
    """

    def __init__(self, name: Optional[str] = None) -> None:
        if not _configured:
            setup_global_logging(api_settings.LOG_LEVEL)
        name = name or "crossquery"
        if not name.startswith("crossquery"):
            name = f"crossquery.{name}"
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        self._logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs) -> None:
        self._logger.exception(msg, *args, **kwargs)

    def message(self, msg: str, *args, **kwargs) -> None:
        self._logger.log(resolve_level(api_settings.LOG_LEVEL), msg, *args, **kwargs)
