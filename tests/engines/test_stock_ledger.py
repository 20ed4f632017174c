"""
Tests for the stock ledger — paired quantity mutation and log append,
batch atomicity and the negative-stock guard.
"""

import threading

import pytest
from datetime import datetime, timezone

from core.bootstrap import build_shop
from core.config import ShopSettings
from core.errors import InsufficientStock, NotFound, ValidationError
from core.rejection import ReasonCode
from core.time import FixedClock
from engines.catalog import StockBatch, StockReason


NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _shop(**settings):
    return build_shop(settings=ShopSettings(**settings), clock=FixedClock(NOW))


def _mouse(shop, stock=20):
    return shop.catalog.add_product({
        "type": "hardware",
        "name": "Mouse",
        "category": "Mice",
        "cost_price": 5.0,
        "selling_price": 10.0,
        "tax_percent": 10.0,
        "stock_quantity": stock,
    })


def _licence(shop, seats=3):
    return shop.catalog.add_product({
        "type": "software",
        "name": "Office Suite",
        "category": "Office Suite",
        "cost_price": 50.0,
        "selling_price": 90.0,
        "license_quantity": seats,
    })


class TestAdjustStock:
    def test_product_and_log_paired(self):
        shop = _shop()
        mouse = _mouse(shop)

        entry = shop.catalog.adjust_stock(
            mouse.id, -4, "manual", "u-1", "Alice", "Shelf count",
        )

        assert shop.catalog.get_product(mouse.id).stock_quantity == 16
        assert entry.change == -4
        assert entry.reason == StockReason.MANUAL
        assert entry.user_id == "u-1"
        assert entry.user_name == "Alice"
        assert entry.notes == "Shelf count"
        assert entry.quantity_after == 16
        assert entry.product_code == mouse.product_code
        assert entry.timestamp == NOW
        assert shop.catalog.inventory_logs() == [entry]

    def test_software_moves_licence_quantity(self):
        shop = _shop()
        licence = _licence(shop)
        shop.catalog.adjust_stock(licence.id, 7, StockReason.PURCHASE, "u-1", "Alice")
        assert shop.catalog.get_product(licence.id).license_quantity == 10

    def test_logs_newest_first_and_per_product(self):
        clock = FixedClock(NOW)
        shop = build_shop(settings=ShopSettings(), clock=clock)
        mouse = _mouse(shop)
        licence = _licence(shop)

        first = shop.catalog.adjust_stock(mouse.id, 5, "purchase", "u-1", "Alice")
        clock.advance(minutes=1)
        second = shop.catalog.adjust_stock(licence.id, 1, "adjustment", "u-1", "Alice")
        clock.advance(minutes=1)
        third = shop.catalog.adjust_stock(mouse.id, -2, "sale", "u-1", "Alice")

        assert shop.catalog.inventory_logs() == [third, second, first]
        assert shop.catalog.inventory_logs(mouse.id) == [third, first]

    def test_unknown_product(self):
        shop = _shop()
        with pytest.raises(NotFound):
            shop.catalog.adjust_stock("missing", 1, "manual", "u-1", "Alice")
        assert len(shop.ledger.logs) == 0

    def test_zero_change_rejected(self):
        shop = _shop()
        mouse = _mouse(shop)
        with pytest.raises(ValidationError) as exc:
            shop.catalog.adjust_stock(mouse.id, 0, "manual", "u-1", "Alice")
        assert exc.value.code == ReasonCode.ZERO_STOCK_CHANGE

    def test_invalid_reason(self):
        shop = _shop()
        mouse = _mouse(shop)
        with pytest.raises(ValidationError) as exc:
            shop.catalog.adjust_stock(mouse.id, 1, "theft", "u-1", "Alice")
        assert exc.value.code == ReasonCode.INVALID_STOCK_REASON

    def test_actor_required(self):
        shop = _shop()
        mouse = _mouse(shop)
        with pytest.raises(ValidationError) as exc:
            shop.catalog.adjust_stock(mouse.id, 1, "manual", "", "Alice")
        assert exc.value.code == ReasonCode.MISSING_ACTOR


class TestNegativeStockGuard:
    def test_refused_by_default(self):
        shop = _shop()
        mouse = _mouse(shop, stock=2)
        with pytest.raises(InsufficientStock) as exc:
            shop.catalog.adjust_stock(mouse.id, -3, "sale", "u-1", "Alice")
        assert exc.value.available == 2
        assert exc.value.requested == 3
        assert exc.value.code == ReasonCode.INSUFFICIENT_STOCK
        assert shop.catalog.get_product(mouse.id).stock_quantity == 2
        assert shop.catalog.inventory_logs() == []

    def test_down_to_zero_allowed(self):
        shop = _shop()
        mouse = _mouse(shop, stock=2)
        shop.catalog.adjust_stock(mouse.id, -2, "sale", "u-1", "Alice")
        assert shop.catalog.get_product(mouse.id).stock_quantity == 0

    def test_legacy_setting_allows_negative(self):
        shop = _shop(allow_negative_stock=True)
        mouse = _mouse(shop, stock=2)
        entry = shop.catalog.adjust_stock(mouse.id, -5, "sale", "u-1", "Alice")
        assert entry.quantity_after == -3


class TestApplyBatch:
    def _batch(self, shop, *changes):
        return StockBatch(tuple(
            shop.ledger.build_adjustment(product_id, change, "sale", "u-1", "System")
            for product_id, change in changes
        ))

    def test_all_applied(self):
        shop = _shop()
        mouse = _mouse(shop, stock=10)
        licence = _licence(shop, seats=5)

        result = shop.ledger.apply_batch(self._batch(shop, (mouse.id, -3), (licence.id, -2)))

        assert result.applied
        assert len(result.entries) == 2
        assert shop.catalog.get_product(mouse.id).stock_quantity == 7
        assert shop.catalog.get_product(licence.id).license_quantity == 3

    def test_nothing_applied_when_one_line_fails(self):
        shop = _shop()
        mouse = _mouse(shop, stock=10)
        licence = _licence(shop, seats=1)

        result = shop.ledger.apply_batch(self._batch(shop, (mouse.id, -3), (licence.id, -2)))

        assert not result.applied
        assert result.entries == ()
        assert result.rejection.code == ReasonCode.INSUFFICIENT_STOCK
        assert shop.catalog.get_product(mouse.id).stock_quantity == 10
        assert shop.catalog.get_product(licence.id).license_quantity == 1
        assert len(shop.ledger.logs) == 0
        with pytest.raises(InsufficientStock):
            result.raise_if_rejected()

    def test_net_effect_of_repeated_product(self):
        shop = _shop()
        mouse = _mouse(shop, stock=5)
        result = shop.ledger.apply_batch(self._batch(shop, (mouse.id, -3), (mouse.id, -3)))
        assert not result.applied
        assert shop.catalog.get_product(mouse.id).stock_quantity == 5

    def test_unknown_product_rejects_batch(self):
        shop = _shop()
        mouse = _mouse(shop)
        result = shop.ledger.apply_batch(self._batch(shop, (mouse.id, -1), ("ghost", -1)))
        assert not result.applied
        assert isinstance(result.error, NotFound)
        assert shop.catalog.get_product(mouse.id).stock_quantity == 20

    def test_reversed_batch_restores(self):
        shop = _shop()
        mouse = _mouse(shop, stock=10)
        sale = self._batch(shop, (mouse.id, -4))
        shop.ledger.apply_batch(sale)
        shop.ledger.apply_batch(
            sale.reversed_as(StockReason.RETURN, actor_id="u-1", actor_name="System"),
        )
        assert shop.catalog.get_product(mouse.id).stock_quantity == 10
        assert [e.change for e in shop.catalog.inventory_logs()] == [4, -4]

    def test_empty_batch(self):
        assert _shop().ledger.apply_batch(StockBatch()).applied


class TestConcurrentAdjustments:
    def test_no_lost_updates(self):
        shop = _shop()
        mouse = _mouse(shop, stock=0)

        def worker():
            for _ in range(25):
                shop.catalog.adjust_stock(mouse.id, 1, "purchase", "u-1", "Alice")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert shop.catalog.get_product(mouse.id).stock_quantity == 200
        assert len(shop.ledger.logs) == 200
        assert sum(e.change for e in shop.catalog.inventory_logs()) == 200
