"""
Tests for the quotation engine — creation, editing with totals
recomputation and the status lifecycle.
"""

import pytest
from datetime import datetime, timedelta, timezone

from core.bootstrap import build_shop
from core.config import ShopSettings
from core.errors import InvalidTransition, NotFound, ValidationError
from core.party import ClientInfo
from core.rejection import ReasonCode
from core.time import FixedClock
from engines.catalog import LineRequest
from engines.quotation import QuotationStatus


NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
CLIENT = ClientInfo(
    name="Acme Ltd", email="buyer@acme.test", phone="+254700000001", address="1 Main St",
)


def _setup(**settings):
    clock = FixedClock(NOW)
    shop = build_shop(settings=ShopSettings(**settings), clock=clock)
    mouse = shop.catalog.add_product({
        "type": "hardware", "name": "Mouse", "category": "Mice",
        "cost_price": 5.0, "selling_price": 10.0, "tax_percent": 10.0,
        "stock_quantity": 20,
    })
    keyboard = shop.catalog.add_product({
        "type": "hardware", "name": "Keyboard", "category": "Keyboards",
        "cost_price": 20.0, "selling_price": 40.0, "tax_percent": 18.0,
        "stock_quantity": 10,
    })
    return shop, clock, mouse, keyboard


def _quote(shop, *lines, **kwargs):
    kwargs.setdefault("creator_id", "u-1")
    return shop.quotations.create_quotation(CLIENT, list(lines), **kwargs)


# ══════════════════════════════════════════════════════════════
# CREATE
# ══════════════════════════════════════════════════════════════

class TestCreateQuotation:
    def test_draft_with_number_and_totals(self):
        shop, _, mouse, keyboard = _setup()
        quotation = _quote(
            shop,
            LineRequest(mouse.id, 2),
            LineRequest(keyboard.id, 1, discount_percent=25.0),
        )
        assert quotation.quotation_number == "QT-0001"
        assert quotation.status == QuotationStatus.DRAFT
        assert quotation.client == CLIENT
        assert quotation.created_by == "u-1"
        assert quotation.created_at == NOW
        assert quotation.subtotal == pytest.approx(60.0)
        assert quotation.total_discount == pytest.approx(10.0)
        assert quotation.total_tax == pytest.approx(2.0 + 5.4)
        assert quotation.grand_total == pytest.approx(57.4)
        assert sum(i.line_total for i in quotation.items) == pytest.approx(57.4)

    def test_items_snapshot_product(self):
        shop, _, mouse, _ = _setup()
        item = _quote(shop, LineRequest(mouse.id, 1)).items[0]
        assert item.product_code == mouse.product_code
        assert item.product_name == "Mouse"
        assert item.unit_price == 10.0
        assert item.tax_percent == 10.0

    def test_unit_price_and_tax_overrides(self):
        shop, _, mouse, _ = _setup()
        item = _quote(shop, LineRequest(mouse.id, 1, unit_price=8.0, tax_percent=0.0)).items[0]
        assert item.unit_price == 8.0
        assert item.line_total == pytest.approx(8.0)

    def test_mapping_inputs(self):
        shop, _, mouse, _ = _setup()
        quotation = shop.quotations.create_quotation(
            {"name": "Walk-in", "email": "w@x.test"},
            [{"product_id": mouse.id, "quantity": 1}],
            creator_id="u-1",
        )
        assert quotation.client.phone == ""
        assert quotation.grand_total == pytest.approx(11.0)

    def test_sequential_numbers(self):
        shop, _, mouse, _ = _setup()
        first = _quote(shop, LineRequest(mouse.id, 1))
        second = _quote(shop, LineRequest(mouse.id, 1))
        assert (first.quotation_number, second.quotation_number) == ("QT-0001", "QT-0002")

    def test_default_validity(self):
        shop, _, mouse, _ = _setup(quotation_validity_days=15)
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        assert quotation.valid_until == NOW + timedelta(days=15)

    def test_explicit_validity(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1), validity_days=30, notes="Rush")
        assert quotation.valid_until == NOW + timedelta(days=30)
        assert quotation.notes == "Rush"

    def test_does_not_touch_stock(self):
        shop, _, mouse, _ = _setup()
        _quote(shop, LineRequest(mouse.id, 5))
        assert shop.catalog.get_product(mouse.id).stock_quantity == 20
        assert shop.catalog.inventory_logs() == []


class TestCreateQuotationValidation:
    def test_client_name_required(self):
        shop, _, mouse, _ = _setup()
        with pytest.raises(ValidationError) as exc:
            shop.quotations.create_quotation(
                ClientInfo(email="a@b.test"), [LineRequest(mouse.id, 1)], creator_id="u-1",
            )
        assert exc.value.code == ReasonCode.MISSING_CLIENT_NAME
        assert shop.quotations.list_quotations() == []

    def test_client_email_required(self):
        shop, _, mouse, _ = _setup()
        with pytest.raises(ValidationError) as exc:
            shop.quotations.create_quotation(
                ClientInfo(name="Acme"), [LineRequest(mouse.id, 1)], creator_id="u-1",
            )
        assert exc.value.code == ReasonCode.MISSING_CLIENT_EMAIL

    def test_at_least_one_item(self):
        shop, _, _, _ = _setup()
        with pytest.raises(ValidationError) as exc:
            _quote(shop)
        assert exc.value.code == ReasonCode.NO_LINE_ITEMS

    def test_quantity_at_least_one(self):
        shop, _, mouse, _ = _setup()
        with pytest.raises(ValidationError) as exc:
            _quote(shop, LineRequest(mouse.id, 0))
        assert exc.value.code == ReasonCode.INVALID_QUANTITY

    def test_discount_range(self):
        shop, _, mouse, _ = _setup()
        with pytest.raises(ValidationError) as exc:
            _quote(shop, LineRequest(mouse.id, 1, discount_percent=120.0))
        assert exc.value.code == ReasonCode.INVALID_PERCENT

    def test_unknown_product(self):
        shop, _, _, _ = _setup()
        with pytest.raises(NotFound):
            _quote(shop, LineRequest("ghost", 1))

    def test_archived_product(self):
        shop, _, mouse, _ = _setup()
        shop.catalog.archive_product(mouse.id)
        with pytest.raises(ValidationError) as exc:
            _quote(shop, LineRequest(mouse.id, 1))
        assert exc.value.code == ReasonCode.PRODUCT_INACTIVE

    def test_creator_required(self):
        shop, _, mouse, _ = _setup()
        with pytest.raises(ValidationError) as exc:
            _quote(shop, LineRequest(mouse.id, 1), creator_id="")
        assert exc.value.code == ReasonCode.MISSING_ACTOR

    def test_validity_must_be_positive(self):
        shop, _, mouse, _ = _setup()
        with pytest.raises(ValidationError) as exc:
            _quote(shop, LineRequest(mouse.id, 1), validity_days=0)
        assert exc.value.code == ReasonCode.INVALID_VALIDITY

    def test_client_fields_must_be_text(self):
        shop, _, mouse, _ = _setup()
        client = {"name": "Acme", "email": "a@b.test", "phone": 700123}
        with pytest.raises(ValidationError, match="phone") as exc:
            shop.quotations.create_quotation(client, [LineRequest(mouse.id, 1)], creator_id="u-1")
        assert exc.value.code == ReasonCode.INVALID_CLIENT_FIELD
        assert shop.quotations.list_quotations() == []

    def test_client_must_be_mapping(self):
        shop, _, mouse, _ = _setup()
        with pytest.raises(ValidationError) as exc:
            shop.quotations.create_quotation("Acme", [LineRequest(mouse.id, 1)], creator_id="u-1")
        assert exc.value.code == ReasonCode.INVALID_CLIENT_FIELD

    def test_line_mapping_with_unknown_key(self):
        shop, _, mouse, _ = _setup()
        with pytest.raises(ValidationError, match="discount") as exc:
            _quote(shop, {"product_id": mouse.id, "quantity": 1, "discount": 5})
        assert exc.value.code == ReasonCode.INVALID_LINE_ITEM

    def test_line_mapping_missing_quantity(self):
        shop, _, mouse, _ = _setup()
        with pytest.raises(ValidationError, match="quantity") as exc:
            _quote(shop, {"product_id": mouse.id})
        assert exc.value.code == ReasonCode.INVALID_LINE_ITEM


# ══════════════════════════════════════════════════════════════
# EDIT
# ══════════════════════════════════════════════════════════════

class TestEditQuotation:
    def test_update_notes_and_client(self):
        shop, clock, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        clock.advance(hours=1)
        new_client = ClientInfo(name="Acme Group", email="ap@acme.test")

        updated = shop.quotations.update_quotation(
            quotation.id, notes="Call first", client=new_client,
        )
        assert updated.notes == "Call first"
        assert updated.client == new_client
        assert updated.updated_at == clock.now()
        assert updated.totals == quotation.totals

    def test_update_items_recomputes(self):
        shop, _, mouse, keyboard = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        updated = shop.quotations.update_quotation(
            quotation.id, items=[LineRequest(keyboard.id, 2)],
        )
        assert [i.product_id for i in updated.items] == [keyboard.id]
        assert updated.grand_total == pytest.approx(2 * 40.0 * 1.18)

    def test_status_not_editable_directly(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        with pytest.raises(ValidationError) as exc:
            shop.quotations.update_quotation(quotation.id, status="accepted")
        assert exc.value.code == ReasonCode.IMMUTABLE_FIELD

    def test_unknown_field(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        with pytest.raises(ValidationError) as exc:
            shop.quotations.update_quotation(quotation.id, grand_total=1.0)
        assert exc.value.code == ReasonCode.UNKNOWN_FIELD

    def test_update_valid_until(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        deadline = NOW + timedelta(days=45)
        updated = shop.quotations.update_quotation(quotation.id, valid_until=deadline)
        assert updated.valid_until == deadline

    @pytest.mark.parametrize("valid_until", ["2026-01-01", datetime(2026, 4, 1), None])
    def test_valid_until_must_be_aware_datetime(self, valid_until):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        with pytest.raises(ValidationError) as exc:
            shop.quotations.update_quotation(quotation.id, valid_until=valid_until)
        assert exc.value.code == ReasonCode.INVALID_DATE
        assert shop.quotations.get_quotation(quotation.id).valid_until == quotation.valid_until

    def test_update_client_fields_must_be_text(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        with pytest.raises(ValidationError) as exc:
            shop.quotations.update_quotation(
                quotation.id, client={"name": "Acme", "email": "a@b.test", "address": ["1", "Main"]},
            )
        assert exc.value.code == ReasonCode.INVALID_CLIENT_FIELD
        assert shop.quotations.get_quotation(quotation.id).client == CLIENT

    def test_unknown_quotation(self):
        shop, _, _, _ = _setup()
        with pytest.raises(NotFound):
            shop.quotations.update_quotation("missing", notes="x")

    def test_update_item_recomputes_line_and_aggregates(self):
        shop, _, mouse, keyboard = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 2), LineRequest(keyboard.id, 1))
        mouse_item = quotation.items[0]

        updated = shop.quotations.update_item(
            quotation.id, mouse_item.id, quantity=4, discount_percent=50.0,
        )
        edited = updated.find_item(mouse_item.id)
        assert edited.quantity == 4
        assert edited.line_total == pytest.approx(4 * 10.0 * 0.5 * 1.10)
        assert updated.subtotal == pytest.approx(80.0)
        assert updated.total_discount == pytest.approx(20.0)
        assert updated.grand_total == pytest.approx(sum(i.line_total for i in updated.items))

    def test_update_item_validates(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 2))
        with pytest.raises(ValidationError):
            shop.quotations.update_item(quotation.id, quotation.items[0].id, quantity=0)

    def test_update_unknown_item(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 2))
        with pytest.raises(NotFound):
            shop.quotations.update_item(quotation.id, "nope", quantity=1)

    def test_remove_item(self):
        shop, _, mouse, keyboard = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 2), LineRequest(keyboard.id, 1))
        updated = shop.quotations.remove_item(quotation.id, quotation.items[1].id)
        assert len(updated.items) == 1
        assert updated.grand_total == pytest.approx(22.0)

    def test_cannot_remove_last_item(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 2))
        with pytest.raises(ValidationError) as exc:
            shop.quotations.remove_item(quotation.id, quotation.items[0].id)
        assert exc.value.code == ReasonCode.NO_LINE_ITEMS

    def test_rejected_quotation_frozen(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 2))
        shop.quotations.send(quotation.id)
        shop.quotations.reject(quotation.id)
        with pytest.raises(InvalidTransition, match="no longer be edited"):
            shop.quotations.update_quotation(quotation.id, notes="late")
        with pytest.raises(InvalidTransition):
            shop.quotations.update_item(quotation.id, quotation.items[0].id, quantity=3)


# ══════════════════════════════════════════════════════════════
# STATUS
# ══════════════════════════════════════════════════════════════

class TestQuotationStatus:
    def test_happy_path(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        assert shop.quotations.send(quotation.id).status == QuotationStatus.SENT
        assert shop.quotations.accept(quotation.id).status == QuotationStatus.ACCEPTED

    def test_transition_by_string(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        assert shop.quotations.transition_status(quotation.id, "sent").status == QuotationStatus.SENT

    def test_draft_cannot_be_accepted(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        with pytest.raises(InvalidTransition, match="draft → accepted"):
            shop.quotations.accept(quotation.id)

    def test_no_way_back_to_draft(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        shop.quotations.send(quotation.id)
        shop.quotations.accept(quotation.id)
        with pytest.raises(InvalidTransition):
            shop.quotations.transition_status(quotation.id, QuotationStatus.DRAFT)
        with pytest.raises(InvalidTransition):
            shop.quotations.transition_status(quotation.id, QuotationStatus.SENT)

    def test_converted_only_through_invoice_engine(self):
        shop, _, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1))
        shop.quotations.send(quotation.id)
        with pytest.raises(InvalidTransition, match="invoice engine"):
            shop.quotations.transition_status(quotation.id, QuotationStatus.CONVERTED)
        assert shop.quotations.get_quotation(quotation.id).status == QuotationStatus.SENT

    def test_unknown_quotation(self):
        shop, _, _, _ = _setup()
        with pytest.raises(NotFound):
            shop.quotations.send("missing")


class TestQuotationQueries:
    def test_lookup_and_status_filter(self):
        shop, _, mouse, _ = _setup()
        draft = _quote(shop, LineRequest(mouse.id, 1))
        sent = _quote(shop, LineRequest(mouse.id, 1))
        sent = shop.quotations.send(sent.id)

        assert shop.quotations.get_by_number("QT-0001") == draft
        assert shop.quotations.get_quotation("missing") is None
        assert shop.quotations.quotations_by_status("sent") == [sent]

    def test_expiry(self):
        shop, clock, mouse, _ = _setup()
        quotation = _quote(shop, LineRequest(mouse.id, 1), validity_days=15)
        assert not quotation.is_expired(NOW + timedelta(days=15))
        assert quotation.is_expired(NOW + timedelta(days=15, seconds=1))

        clock.advance(days=16)
        assert shop.quotations.expired_quotations() == [quotation]

    def test_to_dict(self):
        shop, _, mouse, _ = _setup()
        data = _quote(shop, LineRequest(mouse.id, 2)).to_dict()
        assert data["status"] == "draft"
        assert data["grand_total"] == pytest.approx(22.0)
        assert data["items"][0]["line_total"] == pytest.approx(22.0)
        assert data["client"]["name"] == "Acme Ltd"
