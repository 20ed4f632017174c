"""
Tests for the catalog engine — product lifecycle, lookups and stock
status queries.
"""

import pytest
from datetime import date, datetime, timezone

from core.bootstrap import build_shop
from core.config import ShopSettings
from core.errors import NotFound, ValidationError
from core.numbering import is_valid_ean13
from core.rejection import ReasonCode
from core.time import FixedClock
from engines.catalog import (
    HardwareProduct,
    LicenseType,
    ProductStatus,
    SoftwareProduct,
    StockStatus,
    adjust_quantity,
    quantity_of,
)


NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _shop(**settings):
    return build_shop(settings=ShopSettings(**settings), clock=FixedClock(NOW))


def _laptop(**overrides):
    data = {
        "type": "hardware",
        "name": "ThinkPad E14",
        "category": "Laptops",
        "cost_price": 600.0,
        "selling_price": 799.0,
        "tax_percent": 18.0,
        "stock_quantity": 10,
        "supplier": "Lenovo",
        "warranty_months": 12,
    }
    data.update(overrides)
    return data


def _antivirus(**overrides):
    data = {
        "type": "software",
        "name": "ESET NOD32",
        "category": "Antivirus",
        "cost_price": 15.0,
        "selling_price": 30.0,
        "license_type": "multi-user",
        "license_quantity": 50,
        "expiry_date": "2027-06-30",
    }
    data.update(overrides)
    return data


# ══════════════════════════════════════════════════════════════
# ADD
# ══════════════════════════════════════════════════════════════

class TestAddProduct:
    def test_hardware_variant(self):
        shop = _shop()
        product = shop.catalog.add_product(_laptop())
        assert isinstance(product, HardwareProduct)
        assert product.product_code == "HW-LAP-0001"
        assert is_valid_ean13(product.barcode)
        assert product.stock_quantity == 10
        assert product.created_at == NOW
        assert product.updated_at == NOW
        assert product.status == ProductStatus.ACTIVE

    def test_software_variant(self):
        shop = _shop()
        product = shop.catalog.add_product(_antivirus())
        assert isinstance(product, SoftwareProduct)
        assert product.product_code == "SW-ANT-0001"
        assert product.license_type == LicenseType.MULTI_USER
        assert product.license_quantity == 50
        assert product.expiry_date == date(2027, 6, 30)
        assert quantity_of(product) == 50

    def test_codes_and_barcodes_unique(self):
        shop = _shop()
        first = shop.catalog.add_product(_laptop())
        second = shop.catalog.add_product(_laptop(name="ThinkPad E16"))
        assert second.product_code == "HW-LAP-0002"
        assert first.barcode != second.barcode

    def test_missing_tax_uses_shop_default(self):
        shop = _shop(default_tax_percent=16.0)
        data = _laptop()
        del data["tax_percent"]
        assert shop.catalog.add_product(data).tax_percent == 16.0

    @pytest.mark.parametrize("field", ["name", "category", "cost_price", "selling_price"])
    def test_required_fields(self, field):
        shop = _shop()
        data = _laptop()
        del data[field]
        with pytest.raises(ValidationError, match=field) as exc:
            shop.catalog.add_product(data)
        assert exc.value.code == ReasonCode.MISSING_REQUIRED_FIELD
        assert len(shop.catalog.list_products()) == 0

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            _shop().catalog.add_product(_laptop(name="   "))

    def test_invalid_type(self):
        with pytest.raises(ValidationError) as exc:
            _shop().catalog.add_product(_laptop(type="service"))
        assert exc.value.code == ReasonCode.INVALID_PRODUCT_TYPE

    def test_negative_price(self):
        with pytest.raises(ValidationError) as exc:
            _shop().catalog.add_product(_laptop(selling_price=-1))
        assert exc.value.code == ReasonCode.INVALID_PRICE

    def test_tax_out_of_range(self):
        with pytest.raises(ValidationError) as exc:
            _shop().catalog.add_product(_laptop(tax_percent=101))
        assert exc.value.code == ReasonCode.INVALID_PERCENT

    def test_negative_opening_stock(self):
        with pytest.raises(ValidationError) as exc:
            _shop().catalog.add_product(_laptop(stock_quantity=-3))
        assert exc.value.code == ReasonCode.INVALID_QUANTITY

    def test_field_of_other_variant_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _shop().catalog.add_product(_laptop(license_quantity=5))
        assert exc.value.code == ReasonCode.UNKNOWN_FIELD

    def test_caller_cannot_choose_code(self):
        with pytest.raises(ValidationError) as exc:
            _shop().catalog.add_product(_laptop(product_code="MINE-1"))
        assert exc.value.code == ReasonCode.UNKNOWN_FIELD

    @pytest.mark.parametrize("expiry", ["nope", "31/12/2027", 20271231])
    def test_bad_expiry_date(self, expiry):
        shop = _shop()
        with pytest.raises(ValidationError, match="expiry_date") as exc:
            shop.catalog.add_product(_antivirus(expiry_date=expiry))
        assert exc.value.code == ReasonCode.INVALID_DATE
        assert shop.catalog.list_products() == []

    def test_expiry_date_object_accepted(self):
        product = _shop().catalog.add_product(_antivirus(expiry_date=date(2028, 1, 31)))
        assert product.expiry_date == date(2028, 1, 31)

    def test_opening_quantity_writes_no_ledger_entry(self):
        shop = _shop()
        product = shop.catalog.add_product(_laptop(stock_quantity=10))
        assert product.stock_quantity == 10
        assert shop.catalog.inventory_logs(product.id) == []


# ══════════════════════════════════════════════════════════════
# UPDATE / ARCHIVE
# ══════════════════════════════════════════════════════════════

class TestUpdateProduct:
    def test_merges_fields_and_stamps_updated_at(self):
        clock = FixedClock(NOW)
        shop = build_shop(settings=ShopSettings(), clock=clock)
        product = shop.catalog.add_product(_laptop())
        clock.advance(hours=2)

        updated = shop.catalog.update_product(product.id, selling_price=749.0, supplier="Acme")
        assert updated.selling_price == 749.0
        assert updated.supplier == "Acme"
        assert updated.updated_at == clock.now()
        assert updated.created_at == NOW
        assert shop.catalog.get_product(product.id) == updated

    def test_unknown_id(self):
        with pytest.raises(NotFound, match="Product 'nope'"):
            _shop().catalog.update_product("nope", name="x")

    def test_quantity_only_through_ledger(self):
        shop = _shop()
        product = shop.catalog.add_product(_laptop())
        with pytest.raises(ValidationError, match="adjust_stock") as exc:
            shop.catalog.update_product(product.id, stock_quantity=99)
        assert exc.value.code == ReasonCode.IMMUTABLE_FIELD

    def test_identity_fields_immutable(self):
        shop = _shop()
        product = shop.catalog.add_product(_laptop())
        with pytest.raises(ValidationError):
            shop.catalog.update_product(product.id, barcode="0000000000000")

    def test_blank_name_rejected(self):
        shop = _shop()
        product = shop.catalog.add_product(_laptop())
        with pytest.raises(ValidationError):
            shop.catalog.update_product(product.id, name="")
        assert shop.catalog.get_product(product.id).name == "ThinkPad E14"

    def test_invalid_status(self):
        shop = _shop()
        product = shop.catalog.add_product(_laptop())
        with pytest.raises(ValidationError):
            shop.catalog.update_product(product.id, status="deleted")

    def test_bad_expiry_date(self):
        shop = _shop()
        product = shop.catalog.add_product(_antivirus())
        with pytest.raises(ValidationError) as exc:
            shop.catalog.update_product(product.id, expiry_date="2027-13-01")
        assert exc.value.code == ReasonCode.INVALID_DATE
        assert shop.catalog.get_product(product.id).expiry_date == date(2027, 6, 30)


class TestArchiveProduct:
    def test_sets_inactive_keeps_quantity(self):
        shop = _shop()
        product = shop.catalog.add_product(_laptop())
        archived = shop.catalog.archive_product(product.id)
        assert archived.status == ProductStatus.INACTIVE
        assert archived.stock_quantity == 10
        assert shop.catalog.active_products() == []
        assert shop.catalog.list_products() == [archived]

    def test_unknown_id(self):
        with pytest.raises(NotFound):
            _shop().catalog.archive_product("missing")


# ══════════════════════════════════════════════════════════════
# LOOKUPS / QUERIES
# ══════════════════════════════════════════════════════════════

class TestLookups:
    def test_by_id_code_barcode(self):
        shop = _shop()
        product = shop.catalog.add_product(_laptop())
        assert shop.catalog.get_product(product.id) == product
        assert shop.catalog.get_by_code("HW-LAP-0001") == product
        assert shop.catalog.get_by_barcode(product.barcode) == product

    def test_exact_match_only(self):
        shop = _shop()
        shop.catalog.add_product(_laptop())
        assert shop.catalog.get_by_code("hw-lap-0001") is None
        assert shop.catalog.get_by_code("HW-LAP") is None
        assert shop.catalog.get_product("unknown") is None

    def test_require_product(self):
        with pytest.raises(NotFound):
            _shop().catalog.require_product("unknown")


class TestStockStatus:
    def test_classification(self):
        shop = _shop(low_stock_threshold=5)
        plenty = shop.catalog.add_product(_laptop(stock_quantity=6))
        low = shop.catalog.add_product(_laptop(name="Low", stock_quantity=5))
        empty = shop.catalog.add_product(_laptop(name="Empty", stock_quantity=0))

        assert shop.catalog.stock_status(plenty.id) == StockStatus.IN_STOCK
        assert shop.catalog.stock_status(low.id) == StockStatus.LOW_STOCK
        assert shop.catalog.stock_status(empty.id) == StockStatus.OUT_OF_STOCK
        assert shop.catalog.low_stock_products() == [low]
        assert shop.catalog.out_of_stock_products() == [empty]

    def test_archived_products_excluded(self):
        shop = _shop()
        empty = shop.catalog.add_product(_laptop(stock_quantity=0))
        shop.catalog.archive_product(empty.id)
        assert shop.catalog.out_of_stock_products() == []


class TestVariantAccessors:
    def test_adjust_quantity_per_variant(self):
        shop = _shop()
        hardware = shop.catalog.add_product(_laptop())
        software = shop.catalog.add_product(_antivirus())

        moved_hw = adjust_quantity(hardware, -4, NOW)
        moved_sw = adjust_quantity(software, 10, NOW)
        assert moved_hw.stock_quantity == 6
        assert moved_sw.license_quantity == 60
        assert not hasattr(moved_hw, "license_quantity")
        assert not hasattr(moved_sw, "stock_quantity")

    def test_to_dict_carries_type(self):
        shop = _shop()
        data = shop.catalog.add_product(_antivirus()).to_dict()
        assert data["type"] == "software"
        assert data["license_type"] == "multi-user"
        assert data["expiry_date"] == "2027-06-30"
