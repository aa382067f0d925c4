"""
Доменная модель контекста отчетности.

Контекст не владеет состоянием: он получает полный снимок площадки
через порт чтения и считает по нему рейтинги и агрегаты. Модели
снимка объявлены здесь же, чтобы отчеты не зависели от внутренних
типов контекста торговли.
"""

from typing import Dict, List, Tuple

from pydantic import BaseModel, Field

from ..shared_kernel import (
    BusinessRuleValidationException,
    Identity,
    OrderStatus,
    Role,
    saturating_add,
)


class UserSnapshot(BaseModel):
    """Участник в снимке площадки."""

    identity: Identity
    role: Role
    reputation_as_buyer: int = Field(0, ge=0)
    reputation_as_seller: int = Field(0, ge=0)


class ProductSnapshot(BaseModel):
    """Товар в снимке площадки."""

    id: int
    name: str
    description: str = ""
    price: int = 0
    quantity: int = 0
    category: str = ""
    seller: Identity


class OrderSnapshot(BaseModel):
    """Заказ в снимке площадки."""

    id: int
    buyer: Identity
    seller: Identity
    product_id: int
    quantity: int
    status: OrderStatus
    buyer_rated: bool = False
    seller_rated: bool = False
    buyer_requests_cancel: bool = False
    seller_accepts_cancel: bool = False


class MarketplaceSnapshot(BaseModel):
    """Полный снимок площадки на один момент времени."""

    users: List[UserSnapshot] = Field(default_factory=list)
    products: List[ProductSnapshot] = Field(default_factory=list)
    orders: List[OrderSnapshot] = Field(default_factory=list)


class SoldProductReport(BaseModel):
    """Строка отчета о самых продаваемых товарах."""

    name: str
    total_quantity: int


class ReportingPolicy:
    """Параметры отчетов по умолчанию."""

    TOP_N = 5

    @classmethod
    def validate_limit(cls, n: int) -> None:
        if n < 0:
            raise BusinessRuleValidationException("Размер выборки не может быть отрицательным")


class ReportCalculator:
    """Доменный сервис расчета отчетов по снимку.

    Все сортировки устойчивые: при равных значениях сохраняется
    порядок из снимка.
    """

    @staticmethod
    def top_sellers(users: List[UserSnapshot], n: int) -> List[UserSnapshot]:
        ReportingPolicy.validate_limit(n)
        sellers = [u for u in users if u.role.can_sell()]
        sellers.sort(key=lambda u: u.reputation_as_seller, reverse=True)
        return sellers[:n]

    @staticmethod
    def top_buyers(users: List[UserSnapshot], n: int) -> List[UserSnapshot]:
        ReportingPolicy.validate_limit(n)
        buyers = [u for u in users if u.role.can_buy()]
        buyers.sort(key=lambda u: u.reputation_as_buyer, reverse=True)
        return buyers[:n]

    @staticmethod
    def top_products_sold(
        products: List[ProductSnapshot], orders: List[OrderSnapshot], n: int
    ) -> List[SoldProductReport]:
        """Самые продаваемые товары по полученным заказам.

        Заказы группируются по product_id, название берется из первого
        товара снимка с таким id. Заказы на товары, которых нет в
        снимке, пропускаются. Группы упорядочены по возрастанию id, а
        затем устойчиво сортируются по убыванию суммарного количества.
        """
        ReportingPolicy.validate_limit(n)
        names: Dict[int, str] = {}
        for product in products:
            names.setdefault(product.id, product.name)

        totals: Dict[int, Tuple[str, int]] = {}
        for order in orders:
            if order.status != OrderStatus.RECEIVED or order.product_id not in names:
                continue
            name, total = totals.get(order.product_id, (names[order.product_id], 0))
            totals[order.product_id] = (name, saturating_add(total, order.quantity))

        reports = [
            SoldProductReport(name=name, total_quantity=total)
            for _, (name, total) in sorted(totals.items())
        ]
        reports.sort(key=lambda r: r.total_quantity, reverse=True)
        return reports[:n]

    @staticmethod
    def total_orders_for(orders: List[OrderSnapshot], identity: Identity) -> int:
        # Заказ, где участник и покупатель, и продавец, считается один раз
        return sum(1 for o in orders if o.buyer == identity or o.seller == identity)
