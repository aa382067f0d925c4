"""
Доменная модель контекста торговли.

Содержит участников, товары и заказы, а также события,
которые они порождают при изменении состояния.
"""

from typing import List

from pydantic import BaseModel, Field, PrivateAttr

from ..shared_kernel import (
    U32_MAX,
    AlreadyRatedException,
    DomainEvent,
    Identity,
    InsufficientStockException,
    InvalidQuantityException,
    InvalidRatingException,
    InvalidRoleTransitionException,
    InvalidStateException,
    OrderStatus,
    Role,
    WrongRoleException,
    saturating_add,
)

# События


class RoleChanged(DomainEvent):
    """Участник сменил роль."""

    event_type: str = "RoleChanged"
    identity: Identity
    old_role: Role
    new_role: Role


class ProductPublished(DomainEvent):
    """Продавец опубликовал товар."""

    event_type: str = "ProductPublished"
    seller: Identity
    product_id: int


class OrderPlaced(DomainEvent):
    """Покупатель оформил заказ."""

    event_type: str = "OrderPlaced"
    order_id: int
    buyer: Identity
    seller: Identity
    product_id: int
    quantity: int


class OrderShipped(DomainEvent):
    event_type: str = "OrderShipped"
    order_id: int
    seller: Identity


class OrderReceived(DomainEvent):
    event_type: str = "OrderReceived"
    order_id: int
    buyer: Identity


class CancellationRequested(DomainEvent):
    """Одна из сторон дала согласие на отмену заказа."""

    event_type: str = "CancellationRequested"
    order_id: int
    requested_by: Identity
    buyer_requests_cancel: bool
    seller_accepts_cancel: bool


class OrderCancelled(DomainEvent):
    """Обе стороны согласились, заказ отменен и остаток возвращен."""

    event_type: str = "OrderCancelled"
    order_id: int
    product_id: int
    restored_quantity: int


class BuyerRatedSeller(DomainEvent):
    """Покупатель оценил продавца по заказу."""

    event_type: str = "BuyerRatedSeller"
    order_id: int
    buyer: Identity
    seller: Identity
    rating: int


class SellerRatedBuyer(DomainEvent):
    """Продавец оценил покупателя по заказу."""

    event_type: str = "SellerRatedBuyer"
    order_id: int
    seller: Identity
    buyer: Identity
    rating: int


class AggregateRoot(BaseModel):
    """Базовый класс агрегатов, накапливающих доменные события."""

    _domain_events: List[DomainEvent] = PrivateAttr(default_factory=list)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Извлекает события и очищает список."""
        events = list(self._domain_events)
        self._domain_events.clear()
        return events

    def _add_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)


# Политики


class RolePolicy:
    """Допустимые переходы между ролями.

    Покупатель и продавец могут меняться местами, участник с ролью
    "оба" может перейти в любую другую роль, а в роль "оба" перейти
    нельзя.
    """

    ALLOWED_TRANSITIONS = {
        Role.BUYER: {Role.SELLER},
        Role.SELLER: {Role.BUYER},
        Role.BOTH: {Role.BUYER, Role.SELLER},
    }

    @classmethod
    def validate_transition(cls, current: Role, new: Role) -> None:
        if current == new:
            raise InvalidRoleTransitionException(
                f"Участник уже имеет роль {current.value}"
            )
        if new not in cls.ALLOWED_TRANSITIONS[current]:
            raise InvalidRoleTransitionException(
                f"Переход из роли {current.value} в {new.value} запрещен"
            )


class RatingPolicy:
    """Границы допустимой оценки."""

    MIN_RATING = 1
    MAX_RATING = 5

    @classmethod
    def validate_rating(cls, rating: int) -> None:
        if not cls.MIN_RATING <= rating <= cls.MAX_RATING:
            raise InvalidRatingException(
                f"Оценка должна быть от {cls.MIN_RATING} до {cls.MAX_RATING}, "
                f"получено {rating}"
            )


# Агрегаты


class User(AggregateRoot):
    """Участник торговой площадки."""

    identity: Identity
    role: Role
    reputation_as_buyer: int = Field(0, ge=0, le=U32_MAX)
    reputation_as_seller: int = Field(0, ge=0, le=U32_MAX)

    @classmethod
    def register(cls, identity: Identity, role: Role) -> "User":
        return cls(identity=identity, role=role)

    def change_role(self, new_role: Role) -> None:
        """Меняет роль участника по правилам RolePolicy."""
        RolePolicy.validate_transition(self.role, new_role)
        old_role = self.role
        self.role = new_role
        self._add_event(
            RoleChanged(identity=self.identity, old_role=old_role, new_role=new_role)
        )

    def credit_buyer_reputation(self, rating: int) -> None:
        self.reputation_as_buyer = saturating_add(self.reputation_as_buyer, rating)

    def credit_seller_reputation(self, rating: int) -> None:
        self.reputation_as_seller = saturating_add(self.reputation_as_seller, rating)


class Product(AggregateRoot):
    """Товар в каталоге."""

    id: int = Field(..., ge=0)
    name: str
    description: str
    price: int = Field(..., ge=0)  # Цена информационная, расчеты не ведутся
    quantity: int = Field(..., ge=0, le=U32_MAX)
    category: str
    seller: Identity

    @classmethod
    def publish(
        cls,
        product_id: int,
        seller: Identity,
        name: str,
        description: str,
        price: int,
        quantity: int,
        category: str,
    ) -> "Product":
        """Создает товар и фиксирует событие публикации."""
        if quantity <= 0:
            raise InvalidQuantityException("Начальный остаток должен быть больше нуля")

        product = cls(
            id=product_id,
            name=name,
            description=description,
            price=price,
            quantity=quantity,
            category=category,
            seller=seller,
        )
        product._add_event(ProductPublished(seller=seller, product_id=product_id))
        return product

    def reserve(self, quantity: int) -> None:
        """Списывает остаток под заказ. Нехватка не усекается, а отклоняется."""
        if self.quantity < quantity:
            raise InsufficientStockException(
                f"На складе {self.quantity} ед. товара {self.id}, запрошено {quantity}"
            )
        self.quantity -= quantity

    def restock(self, quantity: int) -> None:
        self.quantity = saturating_add(self.quantity, quantity)


class Order(AggregateRoot):
    """Заказ и его жизненный цикл.

    Состояния:
        PENDING → SHIPPED → RECEIVED
        PENDING → CANCELLED  (только по взаимному согласию сторон)
    """

    id: int = Field(..., ge=0)
    buyer: Identity
    seller: Identity
    product_id: int
    quantity: int = Field(..., gt=0)
    status: OrderStatus = OrderStatus.PENDING
    buyer_rated: bool = False
    seller_rated: bool = False
    buyer_requests_cancel: bool = False
    seller_accepts_cancel: bool = False

    @classmethod
    def place(
        cls, order_id: int, buyer: Identity, product: Product, quantity: int
    ) -> "Order":
        """Создает заказ в статусе PENDING. Остаток товара списывается отдельно."""
        order = cls(
            id=order_id,
            buyer=buyer,
            seller=product.seller,
            product_id=product.id,
            quantity=quantity,
        )
        order._add_event(
            OrderPlaced(
                order_id=order_id,
                buyer=buyer,
                seller=product.seller,
                product_id=product.id,
                quantity=quantity,
            )
        )
        return order

    def is_party(self, identity: Identity) -> bool:
        return identity in (self.buyer, self.seller)

    def ship(self, actor: Identity) -> None:
        if actor != self.seller:
            raise WrongRoleException(f"Только продавец может отправить заказ {self.id}")
        self._transition(OrderStatus.PENDING, OrderStatus.SHIPPED)
        self._add_event(OrderShipped(order_id=self.id, seller=actor))

    def receive(self, actor: Identity) -> None:
        if actor != self.buyer:
            raise WrongRoleException(
                f"Только покупатель может подтвердить получение заказа {self.id}"
            )
        self._transition(OrderStatus.SHIPPED, OrderStatus.RECEIVED)
        self._add_event(OrderReceived(order_id=self.id, buyer=actor))

    def _transition(self, expected: OrderStatus, new: OrderStatus) -> None:
        if self.status != expected:
            raise InvalidStateException(
                f"Невозможно перевести заказ {self.id} из {self.status.value} в {new.value}"
            )
        self.status = new

    def request_cancellation(self, actor: Identity) -> bool:
        """Фиксирует согласие стороны на отмену.

        Возвращает True, если после этого согласны обе стороны и заказ
        переведен в CANCELLED. Возврат остатка на склад выполняет
        вызывающий код.
        """
        if self.status != OrderStatus.PENDING:
            raise InvalidStateException(
                f"Отменить можно только заказ в статусе pending, заказ {self.id} "
                f"в статусе {self.status.value}"
            )
        if not self.is_party(actor):
            raise WrongRoleException(f"Участник не является стороной заказа {self.id}")

        if actor == self.buyer:
            self.buyer_requests_cancel = True
        elif actor == self.seller:
            self.seller_accepts_cancel = True

        self._add_event(
            CancellationRequested(
                order_id=self.id,
                requested_by=actor,
                buyer_requests_cancel=self.buyer_requests_cancel,
                seller_accepts_cancel=self.seller_accepts_cancel,
            )
        )

        if not (self.buyer_requests_cancel and self.seller_accepts_cancel):
            return False

        self.status = OrderStatus.CANCELLED
        self._add_event(
            OrderCancelled(
                order_id=self.id,
                product_id=self.product_id,
                restored_quantity=self.quantity,
            )
        )
        return True

    def mark_rated_by_buyer(self, actor: Identity, rating: int) -> None:
        """Отмечает, что покупатель оценил продавца. Оценка ставится один раз."""
        if actor != self.buyer:
            raise WrongRoleException(f"Только покупатель заказа {self.id} может оценить продавца")
        self._ensure_received()
        if self.buyer_rated:
            raise AlreadyRatedException(f"Покупатель уже оценил продавца по заказу {self.id}")
        self.buyer_rated = True
        self._add_event(
            BuyerRatedSeller(
                order_id=self.id, buyer=self.buyer, seller=self.seller, rating=rating
            )
        )

    def mark_rated_by_seller(self, actor: Identity, rating: int) -> None:
        """Отмечает, что продавец оценил покупателя. Оценка ставится один раз."""
        if actor != self.seller:
            raise WrongRoleException(f"Только продавец заказа {self.id} может оценить покупателя")
        self._ensure_received()
        if self.seller_rated:
            raise AlreadyRatedException(f"Продавец уже оценил покупателя по заказу {self.id}")
        self.seller_rated = True
        self._add_event(
            SellerRatedBuyer(
                order_id=self.id, seller=self.seller, buyer=self.buyer, rating=rating
            )
        )

    def _ensure_received(self) -> None:
        if self.status != OrderStatus.RECEIVED:
            raise InvalidStateException(
                f"Оценка доступна только для полученного заказа, заказ {self.id} "
                f"в статусе {self.status.value}"
            )
