from functools import partial
from typing import Any, Dict, Optional

from .reporting.application import ReportingApplicationService
from .reporting.domain import ReportingPolicy
from .reporting.infrastructure import InProcessMarketplaceReadPort
from .shared_kernel import ConsoleLogger, DomainEvent, ILogger
from .trading.application import MarketplaceApplicationService
from .trading.event_handlers import audit_domain_event
from .trading.infrastructure import InMemoryEventBus, MarketplaceUnitOfWork


def bootstrap_app(
    logger: Optional[ILogger] = None, top_n: int = ReportingPolicy.TOP_N
) -> Dict[str, Any]:
    """Создает и настраивает все компоненты приложения."""
    logger = logger or ConsoleLogger()

    # 1. Шина событий и Unit of Work контекста торговли
    event_bus = InMemoryEventBus(logger)
    uow = MarketplaceUnitOfWork(event_bus=event_bus, logger=logger)

    # 2. Сервисы, которым передаются зависимости
    marketplace_service = MarketplaceApplicationService(uow, logger)

    # 3. Отчеты читают площадку только через порт
    read_port = InProcessMarketplaceReadPort(marketplace_service)
    reporting_service = ReportingApplicationService(read_port, logger, top_n=top_n)

    # 4. Журнал всех событий площадки
    event_bus.subscribe(DomainEvent, partial(audit_domain_event, logger=logger))

    return {
        "uow": uow,
        "event_bus": event_bus,
        "marketplace_service": marketplace_service,
        "read_port": read_port,
        "reporting_service": reporting_service,
    }
