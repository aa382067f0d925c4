"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

# Идентичность участника: непрозрачный уникальный ключ
Identity = str

# Потолок счетчиков (идентификаторы, репутация, остатки)
U32_MAX = 2**32 - 1


def saturating_add(value: int, increment: int, limit: int = U32_MAX) -> int:
    """Складывает с насыщением: результат никогда не превышает limit."""
    return min(value + increment, limit)


class Role(str, Enum):
    """Роли участников торговой площадки."""

    BUYER = "buyer"
    SELLER = "seller"
    BOTH = "both"

    def can_buy(self) -> bool:
        return self in (Role.BUYER, Role.BOTH)

    def can_sell(self) -> bool:
        return self in (Role.SELLER, Role.BOTH)


class OrderStatus(str, Enum):
    """Статусы заказа."""

    PENDING = "pending"
    SHIPPED = "shipped"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class DomainEvent(BaseModel):
    """Базовый класс для всех доменных событий."""

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_on: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: str = "DomainEvent"


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class BusinessRuleValidationException(DomainException):
    """Исключение при нарушении бизнес-правил."""

    pass


class MarketplaceException(BusinessRuleValidationException):
    """Ожидаемый отказ операции торговой площадки.

    Атрибут ``code`` совпадает с именем ошибки в таксономии и остается
    стабильным для внешних клиентов.
    """

    code = "MarketplaceError"


class NotRegisteredException(MarketplaceException):
    code = "NotRegistered"


class AlreadyRegisteredException(MarketplaceException):
    code = "AlreadyRegistered"


class WrongRoleException(MarketplaceException):
    """Роль участника не позволяет операцию, либо он не сторона заказа."""

    code = "WrongRole"


class InvalidRoleTransitionException(MarketplaceException):
    code = "InvalidRoleTransition"


class InvalidQuantityException(MarketplaceException):
    code = "InvalidQuantity"


class ProductNotFoundException(MarketplaceException):
    code = "ProductNotFound"


class EmptyCatalogException(MarketplaceException):
    code = "EmptyCatalog"


class InsufficientStockException(MarketplaceException):
    code = "InsufficientStock"


class OrderNotFoundException(MarketplaceException):
    code = "OrderNotFound"


class InvalidStateException(MarketplaceException):
    code = "InvalidState"


class InvalidRatingException(MarketplaceException):
    code = "InvalidRating"


class AlreadyRatedException(MarketplaceException):
    code = "AlreadyRated"


class InternalMarketplaceException(MarketplaceException):
    """Внутренняя ошибка площадки, не зависящая от действий участника."""

    code = "InternalError"


class IdOverflowException(InternalMarketplaceException):
    code = "IdOverflow"


class SnapshotUnavailableException(DomainException):
    """Не удалось получить снимок состояния площадки для отчета."""

    pass
