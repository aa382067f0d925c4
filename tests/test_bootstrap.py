"""
Сквозной тест собранного приложения.
"""

import logging

import pytest

from marketplace import bootstrap_app
from marketplace.reporting.application import ReportingApplicationService
from marketplace.reporting.infrastructure import InProcessMarketplaceReadPort
from marketplace.shared_kernel import (
    AlreadyRegisteredException,
    ConsoleLogger,
    OrderStatus,
    Role,
)
from marketplace.trading.application import MarketplaceApplicationService


@pytest.fixture
def app():
    return bootstrap_app(ConsoleLogger("marketplace.test"), top_n=3)


def test_components_are_wired(app):
    assert isinstance(app["marketplace_service"], MarketplaceApplicationService)
    assert isinstance(app["reporting_service"], ReportingApplicationService)
    assert isinstance(app["read_port"], InProcessMarketplaceReadPort)
    assert app["reporting_service"].read_port is app["read_port"]


def test_end_to_end_flow_is_audited(app, caplog):
    """Тест: полный сценарий площадки и журнал событий."""
    market = app["marketplace_service"]
    reports = app["reporting_service"]

    with caplog.at_level(logging.INFO, logger="marketplace.test"):
        market.register("alice", Role.SELLER)
        market.register("bob", Role.BUYER)
        market.register("carol", Role.BOTH)
        market.publish("alice", "Чайник", "Стальной", 2500, 5, "Кухня")
        market.publish("carol", "Лампа", "Настольная", 900, 2, "Свет")

        first = market.create_order("bob", 0, 3)
        market.mark_shipped("alice", first)
        market.mark_received("bob", first)
        market.rate_seller("bob", first, 5)
        market.rate_buyer("alice", first, 4)

        second = market.create_order("carol", 0, 1)
        market.request_cancellation("carol", second)
        market.request_cancellation("alice", second)

        market.change_role("carol", Role.SELLER)

    assert market.get_order(second).status == OrderStatus.CANCELLED
    assert market.get_product(0).quantity == 2

    assert [u.identity for u in reports.top_n_sellers()] == ["alice", "carol"]
    assert [u.identity for u in reports.top_n_buyers()] == ["bob"]
    assert [(r.name, r.total_quantity) for r in reports.top_products_sold()] == [("Чайник", 3)]
    assert reports.total_orders_for("alice") == 2

    assert "Event ProductPublished" in caplog.text
    assert "Event BuyerRatedSeller" in caplog.text
    assert "Event SellerRatedBuyer" in caplog.text
    assert "Event OrderCancelled" in caplog.text
    assert "Event RoleChanged" in caplog.text
    assert '"new_role": "seller"' in caplog.text


def test_rejected_operation_is_logged(app, caplog):
    market = app["marketplace_service"]
    market.register("bob", Role.BUYER)

    with caplog.at_level(logging.WARNING, logger="marketplace.test"):
        with pytest.raises(AlreadyRegisteredException):
            market.register("bob", Role.BUYER)

    assert "Operation rejected" in caplog.text
    assert "AlreadyRegistered" in caplog.text
