"""
Тесты расчета отчетов по снимку площадки.
"""

import pytest

from marketplace.reporting.domain import (
    OrderSnapshot,
    ProductSnapshot,
    ReportCalculator,
    ReportingPolicy,
    SoldProductReport,
    UserSnapshot,
)
from marketplace.shared_kernel import (
    U32_MAX,
    BusinessRuleValidationException,
    OrderStatus,
    Role,
)


def user(identity, role, as_buyer=0, as_seller=0) -> UserSnapshot:
    return UserSnapshot(
        identity=identity,
        role=role,
        reputation_as_buyer=as_buyer,
        reputation_as_seller=as_seller,
    )


def order(order_id, product_id, quantity, status=OrderStatus.RECEIVED, buyer="b", seller="s"):
    return OrderSnapshot(
        id=order_id,
        buyer=buyer,
        seller=seller,
        product_id=product_id,
        quantity=quantity,
        status=status,
    )


@pytest.fixture
def users():
    return [
        user("pure-buyer", Role.BUYER, as_buyer=50, as_seller=99),
        user("seller-1", Role.SELLER, as_buyer=99, as_seller=10),
        user("dual", Role.BOTH, as_buyer=20, as_seller=30),
        user("seller-2", Role.SELLER, as_seller=10),
    ]


class TestTopUsers:
    def test_top_sellers_excludes_pure_buyers(self, users):
        result = ReportCalculator.top_sellers(users, 5)

        assert [u.identity for u in result] == ["dual", "seller-1", "seller-2"]

    def test_top_buyers_excludes_pure_sellers(self, users):
        result = ReportCalculator.top_buyers(users, 5)

        assert [u.identity for u in result] == ["pure-buyer", "dual"]

    def test_ties_keep_snapshot_order(self):
        tied = [user(f"s{i}", Role.SELLER, as_seller=7) for i in range(4)]

        result = ReportCalculator.top_sellers(tied, 3)

        assert [u.identity for u in result] == ["s0", "s1", "s2"]

    def test_capped_at_n(self):
        many = [user(f"s{i}", Role.SELLER, as_seller=i) for i in range(8)]

        result = ReportCalculator.top_sellers(many, ReportingPolicy.TOP_N)

        assert [u.reputation_as_seller for u in result] == [7, 6, 5, 4, 3]

    def test_zero_limit_gives_empty_list(self, users):
        assert ReportCalculator.top_buyers(users, 0) == []

    def test_negative_limit_rejected(self, users):
        with pytest.raises(BusinessRuleValidationException):
            ReportCalculator.top_sellers(users, -1)


class TestTopProductsSold:
    """Тесты отчета о самых продаваемых товарах."""

    @pytest.fixture
    def products(self):
        return [
            ProductSnapshot(id=0, name="Чайник", seller="s"),
            ProductSnapshot(id=1, name="Кружка", seller="s"),
            ProductSnapshot(id=2, name="Ложка", seller="s"),
        ]

    def test_counts_only_received_orders(self, products):
        orders = [
            order(0, 0, 3),
            order(1, 0, 2),
            order(2, 1, 9, status=OrderStatus.PENDING),
            order(3, 1, 9, status=OrderStatus.SHIPPED),
            order(4, 1, 9, status=OrderStatus.CANCELLED),
            order(5, 1, 1),
        ]

        result = ReportCalculator.top_products_sold(products, orders, 5)

        assert result == [
            SoldProductReport(name="Чайник", total_quantity=5),
            SoldProductReport(name="Кружка", total_quantity=1),
        ]

    def test_ties_ordered_by_product_id(self, products):
        orders = [order(0, 2, 4), order(1, 1, 4), order(2, 0, 1)]

        result = ReportCalculator.top_products_sold(products, orders, 5)

        assert [r.name for r in result] == ["Кружка", "Ложка", "Чайник"]

    def test_capped_at_n(self):
        products = [ProductSnapshot(id=i, name=f"p{i}", seller="s") for i in range(7)]
        orders = [order(i, i, i + 1) for i in range(7)]

        result = ReportCalculator.top_products_sold(products, orders, 5)

        assert [r.total_quantity for r in result] == [7, 6, 5, 4, 3]

    def test_first_product_name_wins_on_collision(self):
        products = [
            ProductSnapshot(id=0, name="Первый", seller="s"),
            ProductSnapshot(id=0, name="Второй", seller="s"),
        ]

        result = ReportCalculator.top_products_sold(products, [order(0, 0, 1)], 5)

        assert result[0].name == "Первый"

    def test_orders_for_unknown_products_are_skipped(self, products):
        result = ReportCalculator.top_products_sold(products, [order(0, 42, 10)], 5)

        assert result == []

    def test_sum_saturates(self, products):
        orders = [order(0, 0, U32_MAX), order(1, 0, 10)]

        result = ReportCalculator.top_products_sold(products, orders, 5)

        assert result[0].total_quantity == U32_MAX


class TestTotalOrdersFor:
    def test_counts_both_sides(self):
        orders = [
            order(0, 0, 1, buyer="x", seller="s"),
            order(1, 0, 1, buyer="b", seller="x", status=OrderStatus.CANCELLED),
            order(2, 0, 1, buyer="b", seller="s"),
        ]

        assert ReportCalculator.total_orders_for(orders, "x") == 2
        assert ReportCalculator.total_orders_for(orders, "nobody") == 0

    def test_self_trade_counts_once(self):
        orders = [order(0, 0, 1, buyer="dual", seller="dual")]

        assert ReportCalculator.total_orders_for(orders, "dual") == 1
