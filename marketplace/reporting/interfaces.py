"""
Интерфейсы (порты) для контекста отчетности.
"""

from typing import Protocol

from .domain import MarketplaceSnapshot


class IMarketplaceReadPort(Protocol):
    """Порт чтения состояния площадки.

    Реализация может обращаться к площадке в том же процессе или через
    сетевую границу. Снимок должен быть согласованным: он отражает
    состояние до или после любой операции, но не промежуточное.
    Ошибка получения снимка пробрасывается исключением.
    """

    def fetch_snapshot(self) -> MarketplaceSnapshot: ...
