import json
import logging
from typing import Any, Dict

from .interfaces import ILogger


class ConsoleLogger(ILogger):
    """Логгер поверх стандартного модуля logging.

    Дополнительный контекст из именованных аргументов выводится
    одной JSON-строкой после сообщения.
    """

    def __init__(self, name: str = "marketplace"):
        self._logger = logging.getLogger(name)

    @staticmethod
    def _render(message: str, context: Dict[str, Any]) -> str:
        if not context:
            return message
        return f"{message} | {json.dumps(context, default=str, ensure_ascii=False, sort_keys=True)}"

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._render(message, kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(self._render(message, kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._render(message, kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._render(message, kwargs))
