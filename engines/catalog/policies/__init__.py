"""TechShop Catalog Engine - policies."""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping

from core.rejection import ReasonCode, RejectionReason
from engines.catalog.models import LicenseType, ProductStatus, ProductType, StockReason


PRODUCT_REQUIRED_FIELDS = ("name", "category", "cost_price", "selling_price")

_VALID_TYPES = frozenset(t.value for t in ProductType)
_VALID_STATUSES = frozenset(s.value for s in ProductStatus)
_VALID_LICENSE_TYPES = frozenset(t.value for t in LicenseType)
_VALID_REASONS = frozenset(r.value for r in StockReason)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def product_required_fields_policy(data: Mapping[str, Any]) -> RejectionReason | None:
    for field_name in PRODUCT_REQUIRED_FIELDS:
        value = data.get(field_name)
        if value is None or (isinstance(value, str) and not value.strip()):
            return RejectionReason(
                code=ReasonCode.MISSING_REQUIRED_FIELD,
                message=f"Product field '{field_name}' is required.",
                policy_name="product_required_fields_policy",
            )
    return None


def product_type_must_be_valid_policy(data: Mapping[str, Any]) -> RejectionReason | None:
    product_type = _enum_value(data.get("type"))
    if product_type not in _VALID_TYPES:
        return RejectionReason(
            code=ReasonCode.INVALID_PRODUCT_TYPE,
            message=f"type must be one of {sorted(_VALID_TYPES)}, got {product_type!r}.",
            policy_name="product_type_must_be_valid_policy",
        )
    license_type = data.get("license_type")
    if license_type is not None and _enum_value(license_type) not in _VALID_LICENSE_TYPES:
        return RejectionReason(
            code=ReasonCode.INVALID_PRODUCT_TYPE,
            message=f"license_type must be one of {sorted(_VALID_LICENSE_TYPES)}.",
            policy_name="product_type_must_be_valid_policy",
        )
    status = data.get("status")
    if status is not None and _enum_value(status) not in _VALID_STATUSES:
        return RejectionReason(
            code=ReasonCode.INVALID_PRODUCT_TYPE,
            message=f"status must be one of {sorted(_VALID_STATUSES)}.",
            policy_name="product_type_must_be_valid_policy",
        )
    return None


def prices_must_be_non_negative_policy(data: Mapping[str, Any]) -> RejectionReason | None:
    for field_name in ("cost_price", "selling_price"):
        if field_name not in data:
            continue
        value = data[field_name]
        if not _is_number(value) or value < 0:
            return RejectionReason(
                code=ReasonCode.INVALID_PRICE,
                message=f"{field_name} must be a number >= 0.",
                policy_name="prices_must_be_non_negative_policy",
            )
    return None


def tax_percent_must_be_in_range_policy(data: Mapping[str, Any]) -> RejectionReason | None:
    if data.get("tax_percent") is None:
        return None
    tax_percent = data["tax_percent"]
    if not _is_number(tax_percent) or not 0 <= tax_percent <= 100:
        return RejectionReason(
            code=ReasonCode.INVALID_PERCENT,
            message="tax_percent must be between 0 and 100.",
            policy_name="tax_percent_must_be_in_range_policy",
        )
    return None


def opening_quantity_must_be_valid_policy(data: Mapping[str, Any]) -> RejectionReason | None:
    for field_name in ("stock_quantity", "license_quantity", "warranty_months"):
        if field_name not in data:
            continue
        value = data[field_name]
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            return RejectionReason(
                code=ReasonCode.INVALID_QUANTITY,
                message=f"{field_name} must be an integer >= 0.",
                policy_name="opening_quantity_must_be_valid_policy",
            )
    return None


def expiry_date_must_be_iso_policy(data: Mapping[str, Any]) -> RejectionReason | None:
    expiry = data.get("expiry_date")
    if expiry is None or isinstance(expiry, date):
        return None
    parsed = None
    if isinstance(expiry, str):
        try:
            parsed = date.fromisoformat(expiry)
        except ValueError:
            parsed = None
    if parsed is not None:
        return None
    return RejectionReason(
        code=ReasonCode.INVALID_DATE,
        message=f"expiry_date must be a date or an ISO date string (YYYY-MM-DD), got {expiry!r}.",
        policy_name="expiry_date_must_be_iso_policy",
    )


def update_fields_must_be_editable_policy(
    changes: Mapping[str, Any],
    editable_fields: frozenset,
    quantity_field: str,
) -> RejectionReason | None:
    for field_name in changes:
        if field_name in (quantity_field, "stock_quantity", "license_quantity"):
            return RejectionReason(
                code=ReasonCode.IMMUTABLE_FIELD,
                message=(
                    f"'{field_name}' changes only through the stock ledger "
                    f"(adjust_stock)."
                ),
                policy_name="update_fields_must_be_editable_policy",
            )
        if field_name not in editable_fields:
            return RejectionReason(
                code=ReasonCode.UNKNOWN_FIELD,
                message=f"'{field_name}' cannot be updated on this product.",
                policy_name="update_fields_must_be_editable_policy",
            )
    return None


# ══════════════════════════════════════════════════════════════
# STOCK LEDGER POLICIES
# ══════════════════════════════════════════════════════════════

def stock_change_must_be_nonzero_integer_policy(change: Any) -> RejectionReason | None:
    if not isinstance(change, int) or isinstance(change, bool) or change == 0:
        return RejectionReason(
            code=ReasonCode.ZERO_STOCK_CHANGE,
            message="Stock change must be a non-zero integer.",
            policy_name="stock_change_must_be_nonzero_integer_policy",
        )
    return None


def stock_reason_must_be_valid_policy(reason: Any) -> RejectionReason | None:
    if _enum_value(reason) not in _VALID_REASONS:
        return RejectionReason(
            code=ReasonCode.INVALID_STOCK_REASON,
            message=f"reason must be one of {sorted(_VALID_REASONS)}, got {reason!r}.",
            policy_name="stock_reason_must_be_valid_policy",
        )
    return None


def actor_must_be_identified_policy(actor_id: Any, actor_name: Any) -> RejectionReason | None:
    if not actor_id or not actor_name:
        return RejectionReason(
            code=ReasonCode.MISSING_ACTOR,
            message="Stock changes require an actor id and name.",
            policy_name="actor_must_be_identified_policy",
        )
    return None


def product_fields_must_be_known_policy(
    data: Mapping[str, Any],
    allowed_fields: frozenset,
) -> RejectionReason | None:
    unknown = sorted(set(data) - set(allowed_fields))
    if unknown:
        return RejectionReason(
            code=ReasonCode.UNKNOWN_FIELD,
            message=f"Unknown product fields for this type: {unknown}.",
            policy_name="product_fields_must_be_known_policy",
        )
    return None


# ══════════════════════════════════════════════════════════════
# LINE ITEM POLICIES (quotations and invoices)
# ══════════════════════════════════════════════════════════════

def line_items_required_policy(items: Any) -> RejectionReason | None:
    if not items:
        return RejectionReason(
            code=ReasonCode.NO_LINE_ITEMS,
            message="At least one line item is required.",
            policy_name="line_items_required_policy",
        )
    return None


def line_request_fields_policy(
    request: Any,
    allowed_fields: frozenset,
    required_fields: frozenset,
) -> RejectionReason | None:
    """A raw line mapping must name a product and a quantity, and nothing unknown."""
    if not isinstance(request, Mapping):
        return RejectionReason(
            code=ReasonCode.INVALID_LINE_ITEM,
            message=f"A line item must be a LineRequest or a mapping, got {type(request).__name__}.",
            policy_name="line_request_fields_policy",
        )
    missing = sorted(set(required_fields) - set(request))
    if missing:
        return RejectionReason(
            code=ReasonCode.INVALID_LINE_ITEM,
            message=f"Line item is missing fields: {missing}.",
            policy_name="line_request_fields_policy",
        )
    unknown = sorted(set(request) - set(allowed_fields))
    if unknown:
        return RejectionReason(
            code=ReasonCode.INVALID_LINE_ITEM,
            message=f"Unknown line item fields: {unknown}.",
            policy_name="line_request_fields_policy",
        )
    return None


def line_quantity_must_be_positive_policy(quantity: Any) -> RejectionReason | None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        return RejectionReason(
            code=ReasonCode.INVALID_QUANTITY,
            message=f"Line quantity must be an integer >= 1, got {quantity!r}.",
            policy_name="line_quantity_must_be_positive_policy",
        )
    return None


def line_percents_must_be_in_range_policy(
    discount_percent: Any,
    tax_percent: Any = None,
) -> RejectionReason | None:
    for field_name, value in (("discount_percent", discount_percent), ("tax_percent", tax_percent)):
        if value is None and field_name == "tax_percent":
            continue
        if not _is_number(value) or not 0 <= value <= 100:
            return RejectionReason(
                code=ReasonCode.INVALID_PERCENT,
                message=f"Line {field_name} must be between 0 and 100, got {value!r}.",
                policy_name="line_percents_must_be_in_range_policy",
            )
    return None


def line_unit_price_must_be_non_negative_policy(unit_price: Any) -> RejectionReason | None:
    if unit_price is None:
        return None
    if not _is_number(unit_price) or unit_price < 0:
        return RejectionReason(
            code=ReasonCode.INVALID_PRICE,
            message="Line unit_price must be a number >= 0.",
            policy_name="line_unit_price_must_be_non_negative_policy",
        )
    return None


def product_must_be_active_policy(product: Any) -> RejectionReason | None:
    if not product.is_active:
        return RejectionReason(
            code=ReasonCode.PRODUCT_INACTIVE,
            message=f"Product {product.product_code} is archived and cannot be sold.",
            policy_name="product_must_be_active_policy",
        )
    return None
