"""
TechShop Core — Error Taxonomy
================================
Every engine raises from this hierarchy.

    ShopError
    ├── NotFound            id absent from its collection
    ├── ValidationError     input refused before any mutation
    │   └── InsufficientStock
    └── InvalidTransition   state machine refused a status/stage change
"""

from __future__ import annotations

from core.rejection import ReasonCode, RejectionReason


class ShopError(Exception):
    """Base error for all engine operations."""
    pass


class NotFound(ShopError):
    """Operation referenced an id that is not in the collection."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found.")


class ValidationError(ShopError):
    """Input refused by a policy. Nothing was mutated."""

    def __init__(self, rejection: RejectionReason):
        self.rejection = rejection
        super().__init__(f"[{rejection.code}] {rejection.message}")

    @property
    def code(self) -> str:
        return self.rejection.code


class InsufficientStock(ValidationError):
    """A decrement would drive a tracked quantity below zero."""

    def __init__(self, product_id: str, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            RejectionReason(
                code=ReasonCode.INSUFFICIENT_STOCK,
                message=(
                    f"Product '{product_id}' has {available} on hand, "
                    f"cannot remove {requested}."
                ),
                policy_name="stock_must_not_go_negative_policy",
            )
        )


class InvalidTransition(ShopError):
    """A status or stage change not permitted by the state machine."""

    def __init__(self, entity: str, from_state: str, to_state: str, detail: str = ""):
        self.entity = entity
        self.from_state = from_state
        self.to_state = to_state
        message = f"Invalid {entity} transition: {from_state} → {to_state}."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


def raise_first_rejection(*rejections: RejectionReason | None) -> None:
    """Raise ValidationError for the first non-None rejection."""
    for rejection in rejections:
        if rejection is not None:
            raise ValidationError(rejection)
