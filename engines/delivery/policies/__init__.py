"""TechShop Delivery Engine - policies."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core.rejection import ReasonCode, RejectionReason


def tracking_actor_required_policy(actor_name: Any) -> RejectionReason | None:
    if not isinstance(actor_name, str) or not actor_name.strip():
        return RejectionReason(
            code=ReasonCode.MISSING_ACTOR,
            message="Tracking events require the name of the acting user.",
            policy_name="tracking_actor_required_policy",
        )
    return None


def estimated_date_must_be_aware_policy(value: Any) -> RejectionReason | None:
    if value is None:
        return None
    if not isinstance(value, datetime) or value.tzinfo is None:
        return RejectionReason(
            code=ReasonCode.INVALID_DATE,
            message="estimated_delivery_date must be a timezone-aware datetime.",
            policy_name="estimated_date_must_be_aware_policy",
        )
    return None
