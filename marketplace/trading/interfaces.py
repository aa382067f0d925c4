"""
Интерфейсы (порты) для контекста торговли.
"""

from __future__ import annotations

from typing import (
    Any,
    Callable,
    ContextManager,
    Iterable,
    List,
    Optional,
    Protocol,
    Type,
    TypeVar,
    runtime_checkable,
)

from ..shared_kernel import DomainEvent, Identity
from .domain import Order, Product, User

T_Event = TypeVar("T_Event", bound=DomainEvent)


class IEventBus(Protocol):
    """Интерфейс для шины событий."""

    def publish(self, event: DomainEvent) -> None: ...
    def subscribe(
        self, event_type: Type[T_Event], handler: Callable[[T_Event], None]
    ) -> None: ...


class IUserRepository(Protocol):
    """Интерфейс репозитория участников."""

    def add(self, user: User) -> None: ...
    def get(self, identity: Identity) -> Optional[User]: ...
    def update(self, user: User) -> None: ...
    def contains(self, identity: Identity) -> bool: ...
    def list_all(self) -> List[User]: ...


class IProductRepository(Protocol):
    """Интерфейс репозитория товаров."""

    def next_id(self) -> int: ...
    def add(self, product: Product) -> None: ...
    def get(self, product_id: int) -> Optional[Product]: ...
    def update(self, product: Product) -> None: ...
    def find_by_seller(self, seller: Identity) -> List[Product]: ...
    def list_all(self) -> List[Product]: ...
    def count(self) -> int: ...


class IOrderRepository(Protocol):
    """Интерфейс репозитория заказов."""

    def next_id(self) -> int: ...
    def add(self, order: Order) -> None: ...
    def get(self, order_id: int) -> Optional[Order]: ...
    def update(self, order: Order) -> None: ...
    def list_all(self) -> List[Order]: ...
    def count(self) -> int: ...


@runtime_checkable
class ICheckpointable(Protocol):
    """Хранилище, состояние которого можно запомнить и восстановить.

    Нужен единице работы в памяти для отката операции.
    """

    def checkpoint(self) -> Any: ...
    def restore(self, state: Any) -> None: ...


class IMarketplaceUnitOfWork(Protocol):
    """Интерфейс Unit of Work для контекста торговли.

    Вход в контекст сериализует операции и запоминает состояние
    репозиториев. Выход без исключения фиксирует изменения и публикует
    накопленные события, выход с исключением откатывает все изменения.
    """

    @property
    def users(self) -> IUserRepository: ...
    @property
    def products(self) -> IProductRepository: ...
    @property
    def orders(self) -> IOrderRepository: ...
    @property
    def event_bus(self) -> IEventBus: ...

    def __enter__(self) -> IMarketplaceUnitOfWork: ...
    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...
    def reading(self) -> ContextManager[IMarketplaceUnitOfWork]: ...
    def collect_events(self, events: Iterable[DomainEvent]) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
