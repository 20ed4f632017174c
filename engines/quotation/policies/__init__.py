"""
TechShop Quotation Engine — Policies
======================================
Client fields are checked here; line items are checked by the catalog
line resolver.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from core.party import ClientInfo
from core.rejection import ReasonCode, RejectionReason


QUOTATION_EDITABLE_FIELDS = frozenset({"client", "items", "notes", "valid_until"})
CLIENT_FIELDS = ("name", "email", "phone", "address")


def client_fields_must_be_text_policy(client: Any) -> RejectionReason | None:
    """Runs before ClientInfo.coerce on caller input. Missing or None fields are allowed."""
    if isinstance(client, ClientInfo):
        return None
    if not isinstance(client, Mapping):
        return RejectionReason(
            code=ReasonCode.INVALID_CLIENT_FIELD,
            message=f"Client must be a ClientInfo or a mapping, got {type(client).__name__}.",
            policy_name="client_fields_must_be_text_policy",
        )
    for field_name in CLIENT_FIELDS:
        value = client.get(field_name)
        if value is not None and not isinstance(value, str):
            return RejectionReason(
                code=ReasonCode.INVALID_CLIENT_FIELD,
                message=f"Client {field_name} must be text, got {value!r}.",
                policy_name="client_fields_must_be_text_policy",
            )
    return None


def client_name_required_policy(client: ClientInfo) -> RejectionReason | None:
    if not client.name.strip():
        return RejectionReason(
            code=ReasonCode.MISSING_CLIENT_NAME,
            message="Client name is required.",
            policy_name="client_name_required_policy",
        )
    return None


def client_email_required_policy(client: ClientInfo) -> RejectionReason | None:
    if not client.email.strip():
        return RejectionReason(
            code=ReasonCode.MISSING_CLIENT_EMAIL,
            message="Client email is required for a quotation.",
            policy_name="client_email_required_policy",
        )
    return None


def validity_days_must_be_positive_policy(validity_days: Any) -> RejectionReason | None:
    if (
        not isinstance(validity_days, int)
        or isinstance(validity_days, bool)
        or validity_days < 1
    ):
        return RejectionReason(
            code=ReasonCode.INVALID_VALIDITY,
            message=f"validity_days must be an integer >= 1, got {validity_days!r}.",
            policy_name="validity_days_must_be_positive_policy",
        )
    return None


def valid_until_must_be_aware_policy(valid_until: Any) -> RejectionReason | None:
    if not isinstance(valid_until, datetime) or valid_until.tzinfo is None:
        return RejectionReason(
            code=ReasonCode.INVALID_DATE,
            message=f"valid_until must be a timezone-aware datetime, got {valid_until!r}.",
            policy_name="valid_until_must_be_aware_policy",
        )
    return None


def quotation_fields_must_be_editable_policy(changes: Any) -> RejectionReason | None:
    for field_name in changes:
        if field_name == "status":
            return RejectionReason(
                code=ReasonCode.IMMUTABLE_FIELD,
                message="status changes only through transition_status().",
                policy_name="quotation_fields_must_be_editable_policy",
            )
        if field_name not in QUOTATION_EDITABLE_FIELDS:
            return RejectionReason(
                code=ReasonCode.UNKNOWN_FIELD,
                message=f"'{field_name}' cannot be updated on a quotation.",
                policy_name="quotation_fields_must_be_editable_policy",
            )
    return None


def quotation_creator_required_policy(creator_id: Any) -> RejectionReason | None:
    if not isinstance(creator_id, str) or not creator_id.strip():
        return RejectionReason(
            code=ReasonCode.MISSING_ACTOR,
            message="A quotation requires the id of the user creating it.",
            policy_name="quotation_creator_required_policy",
        )
    return None
