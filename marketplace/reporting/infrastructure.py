"""
Инфраструктурный слой контекста отчетности.

Содержит адаптеры порта чтения: прямой вызов площадки в том же
процессе и чтение снимка, выгруженного в JSON-файл.
"""

import json
from pathlib import Path
from typing import TYPE_CHECKING, Union

from . import interfaces as ports
from .domain import MarketplaceSnapshot

if TYPE_CHECKING:
    from ..trading.application import MarketplaceApplicationService


class InProcessMarketplaceReadPort(ports.IMarketplaceReadPort):
    """Порт чтения, обращающийся к сервису площадки напрямую."""

    def __init__(self, marketplace: "MarketplaceApplicationService"):
        self._marketplace = marketplace

    def fetch_snapshot(self) -> MarketplaceSnapshot:
        # Снимок площадки снимается за одно удержание блокировки
        return MarketplaceSnapshot.model_validate(self._marketplace.snapshot().model_dump())


class JsonFileMarketplaceReadPort(ports.IMarketplaceReadPort):
    """Порт чтения снимка из JSON-файла.

    Файл содержит объект с массивами ``users``, ``products`` и ``orders``.
    Отсутствующий файл считается ошибкой, пустой файл дает пустой снимок.
    """

    def __init__(self, file_path: Union[str, Path]):
        self._file_path = Path(file_path)

    def fetch_snapshot(self) -> MarketplaceSnapshot:
        with open(self._file_path, "r", encoding="utf-8") as f:
            raw_data = f.read()

        if not raw_data.strip():
            return MarketplaceSnapshot()

        return MarketplaceSnapshot.model_validate(json.loads(raw_data))

    @staticmethod
    def dump(snapshot: MarketplaceSnapshot, file_path: Union[str, Path]) -> None:
        """Выгружает снимок в JSON-файл в формате, который читает этот порт."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(snapshot.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
