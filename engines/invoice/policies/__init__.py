"""TechShop Invoice Engine - policies."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core.rejection import ReasonCode, RejectionReason
from engines.invoice.models import InvoiceStatus, PaymentMode


_VALID_PAYMENT_MODES = frozenset(m.value for m in PaymentMode)

# An invoice is issued either unpaid or already settled at the counter.
_ISSUABLE_STATUSES = frozenset({InvoiceStatus.PENDING.value, InvoiceStatus.PAID.value})


def payment_mode_must_be_valid_policy(payment_mode: Any) -> RejectionReason | None:
    if getattr(payment_mode, "value", payment_mode) not in _VALID_PAYMENT_MODES:
        return RejectionReason(
            code=ReasonCode.INVALID_PAYMENT_MODE,
            message=(
                f"payment_mode must be one of {sorted(_VALID_PAYMENT_MODES)}, "
                f"got {payment_mode!r}."
            ),
            policy_name="payment_mode_must_be_valid_policy",
        )
    return None


def issue_status_must_be_open_policy(status: Any) -> RejectionReason | None:
    if getattr(status, "value", status) not in _ISSUABLE_STATUSES:
        return RejectionReason(
            code=ReasonCode.INVALID_INVOICE_STATUS,
            message=f"A new invoice must be pending or paid, got {status!r}.",
            policy_name="issue_status_must_be_open_policy",
        )
    return None


def invoice_creator_required_policy(creator_id: Any) -> RejectionReason | None:
    if not isinstance(creator_id, str) or not creator_id.strip():
        return RejectionReason(
            code=ReasonCode.MISSING_ACTOR,
            message="An invoice requires the id of the user creating it.",
            policy_name="invoice_creator_required_policy",
        )
    return None


def paid_at_requires_paid_status_policy(status: Any, paid_at: Any) -> RejectionReason | None:
    if paid_at is None:
        return None
    if getattr(status, "value", status) != InvoiceStatus.PAID.value:
        return RejectionReason(
            code=ReasonCode.PAID_AT_WITHOUT_PAYMENT,
            message=f"paid_at is only recorded on a paid invoice, status is {status!r}.",
            policy_name="paid_at_requires_paid_status_policy",
        )
    if not isinstance(paid_at, datetime) or paid_at.tzinfo is None:
        return RejectionReason(
            code=ReasonCode.INVALID_DATE,
            message=f"paid_at must be a timezone-aware datetime, got {paid_at!r}.",
            policy_name="paid_at_requires_paid_status_policy",
        )
    return None
