"""
Прикладной слой контекста отчетности.

Каждый запрос получает один полный снимок площадки через порт чтения.
Если снимок получить не удалось, запрос целиком завершается ошибкой.
"""

from typing import List, Optional

from ..shared_kernel import ConsoleLogger, Identity, ILogger, SnapshotUnavailableException
from . import interfaces as ports
from .domain import (
    MarketplaceSnapshot,
    ReportCalculator,
    ReportingPolicy,
    SoldProductReport,
    UserSnapshot,
)


class ReportingApplicationService:
    """Сервис приложения для отчетов по площадке."""

    def __init__(
        self,
        read_port: ports.IMarketplaceReadPort,
        logger: Optional[ILogger] = None,
        top_n: int = ReportingPolicy.TOP_N,
    ):
        ReportingPolicy.validate_limit(top_n)
        self._read_port = read_port
        self._logger = logger or ConsoleLogger("marketplace.reporting")
        self._top_n = top_n

    @property
    def read_port(self) -> ports.IMarketplaceReadPort:
        """Порт, через который сервис читает площадку."""
        return self._read_port

    def top_n_sellers(self, n: Optional[int] = None) -> List[UserSnapshot]:
        """Продавцы (и участники с ролью "оба") с наибольшей репутацией."""
        snapshot = self._fetch("top_n_sellers")
        return ReportCalculator.top_sellers(snapshot.users, self._limit(n))

    def top_n_buyers(self, n: Optional[int] = None) -> List[UserSnapshot]:
        """Покупатели (и участники с ролью "оба") с наибольшей репутацией."""
        snapshot = self._fetch("top_n_buyers")
        return ReportCalculator.top_buyers(snapshot.users, self._limit(n))

    def top_products_sold(self, n: Optional[int] = None) -> List[SoldProductReport]:
        snapshot = self._fetch("top_products_sold")
        return ReportCalculator.top_products_sold(
            snapshot.products, snapshot.orders, self._limit(n)
        )

    def total_orders_for(self, identity: Identity) -> int:
        """Количество заказов, где участник покупатель или продавец."""
        snapshot = self._fetch("total_orders_for")
        return ReportCalculator.total_orders_for(snapshot.orders, identity)

    def _limit(self, n: Optional[int]) -> int:
        return self._top_n if n is None else n

    def _fetch(self, query: str) -> MarketplaceSnapshot:
        try:
            return self._read_port.fetch_snapshot()
        except Exception as exc:
            self._logger.error("Snapshot read failed", query=query, error=str(exc))
            raise SnapshotUnavailableException(
                f"Не удалось получить снимок площадки для отчета {query}"
            ) from exc
