"""
Прикладной слой контекста торговли.

Содержит сервис приложения, который координирует участников, каталог
и заказы. Каждая операция получает идентичность вызывающего явным
параметром и выполняется целиком внутри одной единицы работы.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..shared_kernel import (
    U32_MAX,
    AlreadyRegisteredException,
    ConsoleLogger,
    EmptyCatalogException,
    Identity,
    ILogger,
    InvalidQuantityException,
    NotRegisteredException,
    OrderNotFoundException,
    OrderStatus,
    ProductNotFoundException,
    Role,
    WrongRoleException,
)
from . import interfaces as ports
from .domain import Order, Product, RatingPolicy, User

# DTO (Data Transfer Objects) для входящих данных


class PublishProductRequest(BaseModel):
    """Запрос на публикацию товара."""

    name: str
    description: str
    price: int = Field(..., ge=0)
    quantity: int = Field(..., ge=0, le=U32_MAX)
    category: str


# DTO для исходящих данных


class UserDTO(BaseModel):
    """DTO для представления участника."""

    identity: Identity
    role: Role
    reputation_as_buyer: int
    reputation_as_seller: int

    @classmethod
    def from_domain(cls, user: User) -> "UserDTO":
        return cls(
            identity=user.identity,
            role=user.role,
            reputation_as_buyer=user.reputation_as_buyer,
            reputation_as_seller=user.reputation_as_seller,
        )


class ProductDTO(BaseModel):
    """DTO для представления товара."""

    id: int
    name: str
    description: str
    price: int
    quantity: int
    category: str
    seller: Identity

    @classmethod
    def from_domain(cls, product: Product) -> "ProductDTO":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            quantity=product.quantity,
            category=product.category,
            seller=product.seller,
        )


class OrderDTO(BaseModel):
    """DTO для представления заказа."""

    id: int
    buyer: Identity
    seller: Identity
    product_id: int
    quantity: int
    status: OrderStatus
    buyer_rated: bool
    seller_rated: bool
    buyer_requests_cancel: bool
    seller_accepts_cancel: bool

    @classmethod
    def from_domain(cls, order: Order) -> "OrderDTO":
        return cls(
            id=order.id,
            buyer=order.buyer,
            seller=order.seller,
            product_id=order.product_id,
            quantity=order.quantity,
            status=order.status,
            buyer_rated=order.buyer_rated,
            seller_rated=order.seller_rated,
            buyer_requests_cancel=order.buyer_requests_cancel,
            seller_accepts_cancel=order.seller_accepts_cancel,
        )


class MarketplaceSnapshotDTO(BaseModel):
    """Согласованный снимок всех хранилищ площадки."""

    users: List[UserDTO]
    products: List[ProductDTO]
    orders: List[OrderDTO]


# Сервисы приложения


class MarketplaceApplicationService:
    """Сервис приложения торговой площадки."""

    def __init__(self, uow: ports.IMarketplaceUnitOfWork, logger: Optional[ILogger] = None):
        """Инициализирует сервис."""
        self._uow = uow
        self._logger = logger or ConsoleLogger("marketplace.trading")

    # Участники и роли

    def register(self, caller: Identity, role: Role) -> None:
        """Регистрирует вызывающего с указанной ролью."""
        with self._uow:
            if self._uow.users.contains(caller):
                raise AlreadyRegisteredException(f"Участник {caller} уже зарегистрирован")
            self._uow.users.add(User.register(caller, Role(role)))
        self._logger.info("User registered", identity=caller, role=Role(role).value)

    def change_role(self, caller: Identity, new_role: Role) -> None:
        """Меняет роль вызывающего."""
        with self._uow:
            user = self._require_user(caller)
            user.change_role(Role(new_role))
            self._save_user(user)
        self._logger.info("User role changed", identity=caller, role=Role(new_role).value)

    def is_registered(self, identity: Identity) -> bool:
        with self._uow.reading():
            return self._uow.users.contains(identity)

    def get_user(self, identity: Identity) -> Optional[UserDTO]:
        with self._uow.reading():
            user = self._uow.users.get(identity)
        return UserDTO.from_domain(user) if user is not None else None

    # Каталог

    def publish(
        self,
        caller: Identity,
        name: str,
        description: str,
        price: int,
        quantity: int,
        category: str,
    ) -> None:
        """Публикует товар от имени вызывающего продавца."""
        self.publish_product(
            caller,
            PublishProductRequest(
                name=name,
                description=description,
                price=price,
                quantity=quantity,
                category=category,
            ),
        )

    def publish_product(self, caller: Identity, request: PublishProductRequest) -> ProductDTO:
        """Публикует товар по готовому запросу и возвращает его."""
        with self._uow:
            self._require_seller(caller)
            if request.quantity == 0:
                raise InvalidQuantityException("Начальный остаток должен быть больше нуля")
            product = Product.publish(
                product_id=self._uow.products.next_id(),
                seller=caller,
                name=request.name,
                description=request.description,
                price=request.price,
                quantity=request.quantity,
                category=request.category,
            )
            self._uow.collect_events(product.pull_domain_events())
            self._uow.products.add(product)
        self._logger.info("Product published", seller=caller, product_id=product.id)
        return ProductDTO.from_domain(product)

    def list_own_products(self, caller: Identity) -> List[ProductDTO]:
        """Товары вызывающего продавца."""
        with self._uow.reading():
            self._require_seller(caller)
            return self._products_of(caller)

    def list_products_by(self, seller: Identity) -> List[ProductDTO]:
        """Товары любого участника, без проверки его регистрации и роли."""
        with self._uow.reading():
            return self._products_of(seller)

    def get_product(self, product_id: int) -> ProductDTO:
        with self._uow.reading():
            product = self._uow.products.get(product_id)
        if product is None:
            raise ProductNotFoundException(f"Товар {product_id} не найден")
        return ProductDTO.from_domain(product)

    # Заказы

    def create_order(self, caller: Identity, product_id: int, quantity: int) -> int:
        """Оформляет заказ и списывает остаток. Возвращает id заказа."""
        with self._uow:
            buyer = self._require_user(caller)
            if not buyer.role.can_buy():
                raise WrongRoleException(f"Роль {buyer.role.value} не позволяет покупать")
            if quantity <= 0:
                raise InvalidQuantityException("Количество в заказе должно быть больше нуля")
            product = self._uow.products.get(product_id)
            if product is None:
                raise ProductNotFoundException(f"Товар {product_id} не найден")

            product.reserve(quantity)
            order = Order.place(self._uow.orders.next_id(), caller, product, quantity)

            self._uow.products.update(product)
            self._uow.collect_events(order.pull_domain_events())
            self._uow.orders.add(order)
        self._logger.info(
            "Order created",
            order_id=order.id,
            buyer=caller,
            product_id=product_id,
            quantity=quantity,
        )
        return order.id

    def mark_shipped(self, caller: Identity, order_id: int) -> None:
        with self._uow:
            self._require_user(caller)
            order = self._require_order(order_id)
            order.ship(caller)
            self._save_order(order)
        self._logger.info("Order shipped", order_id=order_id)

    def mark_received(self, caller: Identity, order_id: int) -> None:
        with self._uow:
            self._require_user(caller)
            order = self._require_order(order_id)
            order.receive(caller)
            self._save_order(order)
        self._logger.info("Order received", order_id=order_id)

    def request_cancellation(self, caller: Identity, order_id: int) -> None:
        """Фиксирует согласие стороны на отмену.

        Заказ отменяется и остаток возвращается на склад только после
        того, как согласие дали и покупатель, и продавец.
        """
        with self._uow:
            self._require_user(caller)
            order = self._require_order(order_id)
            cancelled = order.request_cancellation(caller)
            if cancelled:
                product = self._uow.products.get(order.product_id)
                if product is not None:
                    product.restock(order.quantity)
                    self._uow.products.update(product)
            self._save_order(order)
        self._logger.info("Cancellation requested", order_id=order_id, cancelled=cancelled)

    def get_order(self, order_id: int) -> OrderDTO:
        with self._uow.reading():
            order = self._require_order(order_id)
        return OrderDTO.from_domain(order)

    # Репутация

    def rate_seller(self, caller: Identity, order_id: int, rating: int) -> None:
        """Покупатель оценивает продавца по полученному заказу."""
        RatingPolicy.validate_rating(rating)
        with self._uow:
            order = self._require_order(order_id)
            order.mark_rated_by_buyer(caller, rating)
            self._save_order(order)
            seller = self._uow.users.get(order.seller)
            # Отсутствующий контрагент не мешает оценке, репутация просто не начисляется
            if seller is not None:
                seller.credit_seller_reputation(rating)
                self._save_user(seller)
        self._logger.info("Seller rated", order_id=order_id, rating=rating)

    def rate_buyer(self, caller: Identity, order_id: int, rating: int) -> None:
        """Продавец оценивает покупателя по полученному заказу."""
        RatingPolicy.validate_rating(rating)
        with self._uow:
            order = self._require_order(order_id)
            order.mark_rated_by_seller(caller, rating)
            self._save_order(order)
            buyer = self._uow.users.get(order.buyer)
            if buyer is not None:
                buyer.credit_buyer_reputation(rating)
                self._save_user(buyer)
        self._logger.info("Buyer rated", order_id=order_id, rating=rating)

    # Полные выборки

    def list_all_products(self) -> List[ProductDTO]:
        with self._uow.reading():
            return [ProductDTO.from_domain(p) for p in self._uow.products.list_all()]

    def list_all_orders(self) -> List[OrderDTO]:
        with self._uow.reading():
            return [OrderDTO.from_domain(o) for o in self._uow.orders.list_all()]

    def list_all_users(self) -> List[UserDTO]:
        """Все участники в порядке регистрации."""
        with self._uow.reading():
            return [UserDTO.from_domain(u) for u in self._uow.users.list_all()]

    def snapshot(self) -> MarketplaceSnapshotDTO:
        """Снимок всех трех хранилищ, снятый за одно удержание блокировки."""
        with self._uow.reading():
            return MarketplaceSnapshotDTO(
                users=[UserDTO.from_domain(u) for u in self._uow.users.list_all()],
                products=[ProductDTO.from_domain(p) for p in self._uow.products.list_all()],
                orders=[OrderDTO.from_domain(o) for o in self._uow.orders.list_all()],
            )

    def product_count(self) -> int:
        with self._uow.reading():
            return self._uow.products.count()

    def order_count(self) -> int:
        with self._uow.reading():
            return self._uow.orders.count()

    # Вспомогательные методы

    def _require_user(self, identity: Identity) -> User:
        user = self._uow.users.get(identity)
        if user is None:
            raise NotRegisteredException(f"Участник {identity} не зарегистрирован")
        return user

    def _require_seller(self, identity: Identity) -> User:
        user = self._require_user(identity)
        if not user.role.can_sell():
            raise WrongRoleException(f"Роль {user.role.value} не позволяет продавать")
        return user

    def _require_order(self, order_id: int) -> Order:
        order = self._uow.orders.get(order_id)
        if order is None:
            raise OrderNotFoundException(f"Заказ {order_id} не найден")
        return order

    def _products_of(self, seller: Identity) -> List[ProductDTO]:
        products = self._uow.products.find_by_seller(seller)
        if not products:
            raise EmptyCatalogException(f"У участника {seller} нет опубликованных товаров")
        return [ProductDTO.from_domain(p) for p in products]

    def _save_user(self, user: User) -> None:
        self._uow.collect_events(user.pull_domain_events())
        self._uow.users.update(user)

    def _save_order(self, order: Order) -> None:
        self._uow.collect_events(order.pull_domain_events())
        self._uow.orders.update(order)
