"""
TechShop Core — Rejection Model
=================================
Structured explanation for a refused operation.

Policy functions return a RejectionReason (or None when the input is
acceptable). Services wrap the first rejection in a ValidationError so
callers get both a machine-readable code and a human-readable message.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RejectionReason:
    """
    Fields:
        code:        Machine-readable code (e.g. 'MISSING_CLIENT_NAME').
        message:     Human-readable explanation.
        policy_name: Name of the policy function that refused the input.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")
        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")
        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


class ReasonCode:
    """Known rejection codes. Convention: SCREAMING_SNAKE_CASE."""

    # ── Catalog ───────────────────────────────────────────────
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_PRODUCT_TYPE = "INVALID_PRODUCT_TYPE"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_PERCENT = "INVALID_PERCENT"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    IMMUTABLE_FIELD = "IMMUTABLE_FIELD"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"

    # ── Stock ledger ──────────────────────────────────────────
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INVALID_STOCK_REASON = "INVALID_STOCK_REASON"
    ZERO_STOCK_CHANGE = "ZERO_STOCK_CHANGE"
    MISSING_ACTOR = "MISSING_ACTOR"

    # ── Documents ─────────────────────────────────────────────
    MISSING_CLIENT_NAME = "MISSING_CLIENT_NAME"
    MISSING_CLIENT_EMAIL = "MISSING_CLIENT_EMAIL"
    NO_LINE_ITEMS = "NO_LINE_ITEMS"
    PRODUCT_INACTIVE = "PRODUCT_INACTIVE"
    INVALID_PAYMENT_MODE = "INVALID_PAYMENT_MODE"
    INVALID_INVOICE_STATUS = "INVALID_INVOICE_STATUS"
    INVALID_VALIDITY = "INVALID_VALIDITY"
    INVALID_CLIENT_FIELD = "INVALID_CLIENT_FIELD"
    INVALID_LINE_ITEM = "INVALID_LINE_ITEM"
    PAID_AT_WITHOUT_PAYMENT = "PAID_AT_WITHOUT_PAYMENT"

    # ── Dates (expiry, validity, delivery, payment) ──────────
    INVALID_DATE = "INVALID_DATE"
