"""
TechShop Catalog Engine — Line Resolution
===========================================
Turns caller line requests into priced line snapshots for quotations
and invoices.

A LineRequest names a product and a quantity. Unit price and tax
default to the product's current selling price and tax percent; the
product code, name and cost price are copied at resolution time so a
later product edit never changes an issued document.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Union

from core.errors import NotFound, raise_first_rejection
from core.pricing import compute_line_total
from engines.catalog.policies import (
    line_items_required_policy,
    line_percents_must_be_in_range_policy,
    line_quantity_must_be_positive_policy,
    line_request_fields_policy,
    line_unit_price_must_be_non_negative_policy,
    product_must_be_active_policy,
)
from engines.catalog.store import ProductStore


@dataclass(frozen=True)
class LineRequest:
    product_id: str
    quantity: int
    discount_percent: float = 0.0
    unit_price: Optional[float] = None
    tax_percent: Optional[float] = None

    @classmethod
    def coerce(cls, value: Union[LineRequest, Mapping[str, Any]]) -> LineRequest:
        if isinstance(value, LineRequest):
            return value
        raise_first_rejection(line_request_fields_policy(
            value, _LINE_REQUEST_FIELDS, _LINE_REQUIRED_FIELDS,
        ))
        return cls(**dict(value))


_LINE_REQUEST_FIELDS = frozenset(f.name for f in dataclasses.fields(LineRequest))
_LINE_REQUIRED_FIELDS = frozenset({"product_id", "quantity"})


@dataclass(frozen=True)
class ResolvedLine:
    """A validated line with its product snapshot."""
    product_id: str
    product_code: str
    product_name: str
    quantity: int
    unit_price: float
    tax_percent: float
    discount_percent: float
    cost_price: float

    @property
    def line_total(self) -> float:
        return compute_line_total(
            self.quantity, self.unit_price, self.tax_percent, self.discount_percent,
        )


def validate_line_values(
    quantity: Any,
    discount_percent: Any,
    tax_percent: Any = None,
    unit_price: Any = None,
) -> None:
    raise_first_rejection(
        line_quantity_must_be_positive_policy(quantity),
        line_percents_must_be_in_range_policy(discount_percent, tax_percent),
        line_unit_price_must_be_non_negative_policy(unit_price),
    )


def resolve_lines(
    products: ProductStore,
    requests: Sequence[Union[LineRequest, Mapping[str, Any]]],
) -> List[ResolvedLine]:
    """
    Validate every request and snapshot its product.

    Raises ValidationError or NotFound for the first bad line; nothing
    is resolved partially.
    """
    raise_first_rejection(line_items_required_policy(requests))

    resolved: List[ResolvedLine] = []
    for raw in requests:
        request = LineRequest.coerce(raw)
        validate_line_values(
            request.quantity, request.discount_percent,
            request.tax_percent, request.unit_price,
        )
        product = products.get(request.product_id)
        if product is None:
            raise NotFound("Product", request.product_id)
        raise_first_rejection(product_must_be_active_policy(product))

        resolved.append(ResolvedLine(
            product_id=product.id,
            product_code=product.product_code,
            product_name=product.name,
            quantity=request.quantity,
            unit_price=float(
                product.selling_price if request.unit_price is None else request.unit_price
            ),
            tax_percent=float(
                product.tax_percent if request.tax_percent is None else request.tax_percent
            ),
            discount_percent=float(request.discount_percent),
            cost_price=float(product.cost_price),
        ))
    return resolved
