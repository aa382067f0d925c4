"""
Общее ядро (Shared Kernel) торговой площадки.

Содержит общие типы данных, исключения и утилиты, используемые
в контекстах торговли и отчетности.
"""

from .domain import (
    U32_MAX,
    AlreadyRatedException,
    AlreadyRegisteredException,
    BusinessRuleValidationException,
    DomainEvent,
    # Исключения
    DomainException,
    EmptyCatalogException,
    IdOverflowException,
    # Базовые типы
    Identity,
    InsufficientStockException,
    InternalMarketplaceException,
    InvalidQuantityException,
    InvalidRatingException,
    InvalidRoleTransitionException,
    InvalidStateException,
    MarketplaceException,
    NotRegisteredException,
    OrderNotFoundException,
    # Перечисления
    OrderStatus,
    ProductNotFoundException,
    Role,
    SnapshotUnavailableException,
    WrongRoleException,
    # Утилиты
    saturating_add,
)
from .infrastructure import ConsoleLogger
from .interfaces import ILogger

__all__ = [
    # Базовые типы
    "Identity",
    "U32_MAX",
    "DomainEvent",
    # Перечисления
    "Role",
    "OrderStatus",
    # Исключения
    "DomainException",
    "BusinessRuleValidationException",
    "MarketplaceException",
    "NotRegisteredException",
    "AlreadyRegisteredException",
    "WrongRoleException",
    "InvalidRoleTransitionException",
    "InvalidQuantityException",
    "ProductNotFoundException",
    "EmptyCatalogException",
    "InsufficientStockException",
    "OrderNotFoundException",
    "InvalidStateException",
    "InvalidRatingException",
    "AlreadyRatedException",
    "InternalMarketplaceException",
    "IdOverflowException",
    "SnapshotUnavailableException",
    # Утилиты
    "saturating_add",
    "ILogger",
    "ConsoleLogger",
]
