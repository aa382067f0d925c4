"""
Общие фикстуры для тестов торговой площадки.
"""

from typing import List

import pytest

from marketplace.shared_kernel import DomainEvent, Role
from marketplace.trading.application import MarketplaceApplicationService
from marketplace.trading.infrastructure import InMemoryEventBus, MarketplaceUnitOfWork

SELLER = "seller-alice"
BUYER = "buyer-bob"
OUTSIDER = "outsider-carol"


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def published_events(event_bus: InMemoryEventBus) -> List[DomainEvent]:
    """Все события, опубликованные шиной, в порядке публикации."""
    events: List[DomainEvent] = []
    event_bus.subscribe(DomainEvent, events.append)
    return events


@pytest.fixture
def uow(event_bus: InMemoryEventBus) -> MarketplaceUnitOfWork:
    return MarketplaceUnitOfWork(event_bus=event_bus)


@pytest.fixture
def service(uow: MarketplaceUnitOfWork) -> MarketplaceApplicationService:
    """Фикстура, предоставляющая сервис приложения с чистыми хранилищами."""
    return MarketplaceApplicationService(uow)


@pytest.fixture
def market(
    service: MarketplaceApplicationService, published_events: List[DomainEvent]
) -> MarketplaceApplicationService:
    """Площадка с продавцом, покупателем и товаром 0 (остаток 5)."""
    service.register(SELLER, Role.SELLER)
    service.register(BUYER, Role.BUYER)
    service.publish(SELLER, "Чайник", "Стальной, 1.7 л", 2500, 5, "Кухня")
    return service
