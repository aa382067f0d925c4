"""
Инфраструктурный слой контекста торговли.

Содержит реализации репозиториев в памяти, шину событий и Unit of Work,
который делает каждую операцию атомарной.
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

from ..shared_kernel import U32_MAX, ConsoleLogger, DomainEvent, IdOverflowException, Identity, ILogger
from . import interfaces as ports
from .domain import AggregateRoot, Order, Product, User

T = TypeVar("T", bound=AggregateRoot)


def _detached(entity: T) -> T:
    """Возвращает независимую копию агрегата без накопленных событий."""
    copy = entity.model_copy(deep=True)
    copy.pull_domain_events()
    return copy


class InMemoryUserRepository(ports.IUserRepository, ports.ICheckpointable):
    """Реализация репозитория участников в памяти.

    Порядок словаря совпадает с порядком регистрации и используется
    для полных выборок.
    """

    def __init__(self) -> None:
        self._users: Dict[Identity, User] = {}

    def add(self, user: User) -> None:
        if user.identity in self._users:
            raise ValueError(f"User {user.identity} already exists")
        self._users[user.identity] = _detached(user)

    def get(self, identity: Identity) -> Optional[User]:
        user = self._users.get(identity)
        return _detached(user) if user is not None else None

    def update(self, user: User) -> None:
        if user.identity not in self._users:
            raise KeyError(f"User {user.identity} not found")
        self._users[user.identity] = _detached(user)

    def contains(self, identity: Identity) -> bool:
        return identity in self._users

    def list_all(self) -> List[User]:
        return [_detached(user) for user in self._users.values()]

    def checkpoint(self) -> Dict[Identity, User]:
        # Хранимые объекты никогда не изменяются на месте, достаточно копии словаря
        return dict(self._users)

    def restore(self, state: Dict[Identity, User]) -> None:
        self._users = dict(state)


class SequentialRepository(ports.ICheckpointable):
    """Хранилище с последовательными идентификаторами, начиная с start_id.

    Идентификаторы не переиспользуются. Если счетчик должен превысить
    max_id, выделение отклоняется с IdOverflowException.
    """

    def __init__(self, start_id: int = 0, max_id: int = U32_MAX):
        self._items: Dict[int, Any] = {}
        self._next_id = start_id
        self._max_id = max_id

    def next_id(self) -> int:
        if self._next_id >= self._max_id:
            raise IdOverflowException(
                f"Счетчик идентификаторов {type(self).__name__} исчерпан"
            )
        allocated = self._next_id
        self._next_id += 1
        return allocated

    def count(self) -> int:
        return self._next_id

    def _add(self, item_id: int, item: AggregateRoot) -> None:
        if item_id in self._items:
            raise ValueError(f"Item with id {item_id} already exists")
        self._items[item_id] = _detached(item)

    def _get(self, item_id: int) -> Optional[Any]:
        item = self._items.get(item_id)
        return _detached(item) if item is not None else None

    def _update(self, item_id: int, item: AggregateRoot) -> None:
        if item_id not in self._items:
            raise KeyError(f"Item with id {item_id} not found")
        self._items[item_id] = _detached(item)

    def _values(self) -> List[Any]:
        return [_detached(item) for _, item in sorted(self._items.items())]

    def checkpoint(self) -> Tuple[Dict[int, Any], int]:
        return dict(self._items), self._next_id

    def restore(self, state: Tuple[Dict[int, Any], int]) -> None:
        items, next_id = state
        self._items = dict(items)
        self._next_id = next_id


class InMemoryProductRepository(SequentialRepository, ports.IProductRepository):
    """Реализация репозитория товаров в памяти."""

    def add(self, product: Product) -> None:
        self._add(product.id, product)

    def get(self, product_id: int) -> Optional[Product]:
        return self._get(product_id)

    def update(self, product: Product) -> None:
        self._update(product.id, product)

    def find_by_seller(self, seller: Identity) -> List[Product]:
        return [product for product in self._values() if product.seller == seller]

    def list_all(self) -> List[Product]:
        return self._values()


class InMemoryOrderRepository(SequentialRepository, ports.IOrderRepository):
    """Реализация репозитория заказов в памяти."""

    def add(self, order: Order) -> None:
        self._add(order.id, order)

    def get(self, order_id: int) -> Optional[Order]:
        return self._get(order_id)

    def update(self, order: Order) -> None:
        self._update(order.id, order)

    def list_all(self) -> List[Order]:
        return self._values()


class InMemoryEventBus(ports.IEventBus):
    """Реализация шины событий в памяти.

    Обработчик, подписанный на базовый класс, получает события всех
    его подклассов. Ошибки обработчиков логируются и не прерывают
    публикацию.
    """

    def __init__(self, logger: Optional[ILogger] = None):
        self._subscribers: Dict[Type[DomainEvent], List[Callable[[Any], None]]] = {}
        self._logger = logger or ConsoleLogger("marketplace.events")

    def publish(self, event: DomainEvent) -> None:
        """Публикует событие."""
        handlers = [
            handler
            for event_type in type(event).__mro__
            for handler in self._subscribers.get(event_type, [])
        ]
        if not handlers:
            self._logger.debug(f"No subscribers for event type {event.event_type}")
            return

        self._logger.debug(f"Publishing event: {event.event_type}", event_id=event.event_id)

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    f"Error in event handler for {event.event_type}",
                    error=str(e),
                    event=event.model_dump(mode="json"),
                )

    def subscribe(self, event_type: Type[DomainEvent], handler: Callable[[Any], None]) -> None:
        """Подписывает обработчик на события указанного типа."""
        self._subscribers.setdefault(event_type, []).append(handler)
        self._logger.debug(f"Subscribed handler to {event_type.__name__} events")


class MarketplaceUnitOfWork(ports.IMarketplaceUnitOfWork):
    """Единица работы для контекста торговли.

    Операции выполняются по одной под реентерабельной блокировкой.
    События публикуются только после фиксации и уже после снятия
    блокировки, поэтому обработчики могут вызывать сервисы площадки.
    """

    def __init__(
        self,
        users_repo: Optional[InMemoryUserRepository] = None,
        products_repo: Optional[InMemoryProductRepository] = None,
        orders_repo: Optional[InMemoryOrderRepository] = None,
        event_bus: Optional[ports.IEventBus] = None,
        logger: Optional[ILogger] = None,
    ):
        self._users = users_repo or InMemoryUserRepository()
        self._products = products_repo or InMemoryProductRepository()
        self._orders = orders_repo or InMemoryOrderRepository()
        self._logger = logger or ConsoleLogger("marketplace.uow")
        self._event_bus = event_bus or InMemoryEventBus(self._logger)
        self._lock = threading.RLock()
        self._stores: Tuple[ports.ICheckpointable, ...] = (
            self._users,
            self._products,
            self._orders,
        )
        self._checkpoint: Optional[List[Any]] = None
        self._pending_events: List[DomainEvent] = []
        self._outbox: List[DomainEvent] = []

    @property
    def users(self) -> ports.IUserRepository:
        return self._users

    @property
    def products(self) -> ports.IProductRepository:
        return self._products

    @property
    def orders(self) -> ports.IOrderRepository:
        return self._orders

    @property
    def event_bus(self) -> ports.IEventBus:
        return self._event_bus

    def __enter__(self) -> "MarketplaceUnitOfWork":
        self._lock.acquire()
        self._checkpoint = [store.checkpoint() for store in self._stores]
        self._pending_events = []
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self._logger.warning(
                    "Operation rejected",
                    error=getattr(exc_val, "code", exc_type.__name__),
                    reason=str(exc_val),
                )
                self.rollback()
            published, self._outbox = self._outbox, []
        finally:
            self._checkpoint = None
            self._lock.release()

        for event in published:
            self._event_bus.publish(event)
        return False  # Пробрасываем исключение дальше, если оно было

    @contextmanager
    def reading(self) -> Iterator["MarketplaceUnitOfWork"]:
        """Чтение под блокировкой: видно только полностью завершенное состояние."""
        with self._lock:
            yield self

    def collect_events(self, events: Iterable[DomainEvent]) -> None:
        self._pending_events.extend(events)

    def commit(self) -> None:
        """Фиксирует все изменения."""
        self._outbox.extend(self._pending_events)
        self._logger.debug(
            "MarketplaceUnitOfWork committed", events=len(self._pending_events)
        )
        self._pending_events = []
        self._checkpoint = [store.checkpoint() for store in self._stores]

    def rollback(self) -> None:
        """Откатывает все изменения с момента входа или последней фиксации."""
        if self._checkpoint is not None:
            for store, state in zip(self._stores, self._checkpoint):
                store.restore(state)
        self._pending_events = []
        self._logger.debug("MarketplaceUnitOfWork rolled back")
