"""
TechShop Delivery Engine — Application Service
================================================
Creates one Delivery per invoice line and moves it through the stage
sequence. Every stage change appends exactly one tracking event.

With strict_stage_order (the default) a delivery only moves forward
through the sequence or to `returned`, and terminal stages accept no
further change. With it off any stage is accepted.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Union

from core.config import ShopSettings
from core.errors import InvalidTransition, NotFound, raise_first_rejection
from core.time import Clock
from engines.delivery.models import (
    DELIVERY_WORKFLOW,
    INITIAL_EVENT_ACTOR,
    INITIAL_EVENT_NOTES,
    RETURNED_DEFAULT_NOTES,
    Delivery,
    DeliveryPerson,
    DeliveryStage,
    DeliveryStatus,
    DeliveryTrackingEvent,
    next_stage_after,
)
from engines.delivery.policies import (
    estimated_date_must_be_aware_policy,
    tracking_actor_required_policy,
)
from engines.delivery.store import DeliveryStore

if TYPE_CHECKING:
    from engines.invoice.models import Invoice

logger = logging.getLogger("techshop.delivery")


class DeliveryTracker:
    """Owns the DeliveryStore."""

    def __init__(
        self,
        *,
        deliveries: DeliveryStore,
        clock: Clock,
        settings: ShopSettings,
    ):
        self._deliveries = deliveries
        self._clock = clock
        self._settings = settings

    @property
    def store(self) -> DeliveryStore:
        return self._deliveries

    # ══════════════════════════════════════════════════════════
    # CREATION
    # ══════════════════════════════════════════════════════════

    def plan_for_invoice(self, invoice: "Invoice") -> List[Delivery]:
        """
        Build one pending Delivery per invoice line without storing it.

        Recipient and address come from the invoice's client snapshot.
        """
        now = self._clock.now()
        return [
            Delivery(
                id=str(uuid.uuid4()),
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                product_code=item.product_code,
                product_name=item.product_name,
                quantity=item.quantity,
                tracking_history=(DeliveryTrackingEvent(
                    id=str(uuid.uuid4()),
                    stage=DeliveryStage.IN_INVENTORY,
                    timestamp=now,
                    updated_by=INITIAL_EVENT_ACTOR,
                    notes=INITIAL_EVENT_NOTES,
                ),),
                delivery_address=invoice.client.address,
                recipient_name=invoice.client.name,
                recipient_phone=invoice.client.phone,
                created_at=now,
            )
            for item in invoice.items
        ]

    def create_for_invoice(self, invoice: "Invoice") -> List[Delivery]:
        deliveries = self.plan_for_invoice(invoice)
        self._deliveries.add_many(deliveries)
        logger.info(
            f"Deliveries created for {invoice.invoice_number}: {len(deliveries)}"
        )
        return deliveries

    # ══════════════════════════════════════════════════════════
    # STAGE CHANGES
    # ══════════════════════════════════════════════════════════

    def advance_stage(
        self,
        delivery_id: str,
        new_stage: Union[DeliveryStage, str],
        actor_name: str,
        notes: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Delivery:
        """
        Append a tracking event for new_stage.

        Reaching collected_by_receiver stamps actual_delivery_date.
        """
        raise_first_rejection(tracking_actor_required_policy(actor_name))
        with self._deliveries.lock:
            delivery = self._require(delivery_id)
            stage = self._coerce_stage(delivery, new_stage)
            if self._settings.strict_stage_order:
                try:
                    DELIVERY_WORKFLOW.require_transition(
                        delivery.current_stage.value, stage.value,
                    )
                except InvalidTransition as exc:
                    logger.warning(f"Delivery {delivery.id} ({delivery.invoice_number}): {exc}")
                    raise

            event = DeliveryTrackingEvent(
                id=str(uuid.uuid4()),
                stage=stage,
                timestamp=self._clock.now(),
                updated_by=actor_name,
                notes=notes,
                location=location,
            )
            updated = delivery.with_event(event)
            self._deliveries.replace(updated)

        logger.info(
            f"Delivery {updated.invoice_number}/{updated.product_code}: "
            f"{delivery.current_stage.value} → {stage.value} by {actor_name}"
        )
        return updated

    def mark_returned(
        self,
        delivery_id: str,
        actor_name: str,
        notes: Optional[str] = None,
    ) -> Delivery:
        # Blank notes fall back to the default text as well as None.
        return self.advance_stage(
            delivery_id, DeliveryStage.RETURNED, actor_name,
            notes or RETURNED_DEFAULT_NOTES,
        )

    def next_stage(self, delivery: Union[Delivery, str]) -> Optional[DeliveryStage]:
        """The stage a dispatcher would move this delivery to next."""
        if isinstance(delivery, str):
            delivery = self._require(delivery)
        return next_stage_after(delivery.current_stage)

    # ══════════════════════════════════════════════════════════
    # ASSIGNMENT / SCHEDULING
    # ══════════════════════════════════════════════════════════

    def assign_delivery_person(self, delivery_id: str, person: DeliveryPerson) -> Delivery:
        """Attach or replace the driver. The stage is not touched."""
        if not isinstance(person, DeliveryPerson):
            raise TypeError("person must be a DeliveryPerson.")
        with self._deliveries.lock:
            updated = dataclasses.replace(self._require(delivery_id), delivery_person=person)
            self._deliveries.replace(updated)
        logger.info(f"Delivery {updated.invoice_number}/{updated.product_code} assigned to {person.name}")
        return updated

    def set_estimated_delivery_date(
        self,
        delivery_id: str,
        estimated: Optional[datetime],
    ) -> Delivery:
        raise_first_rejection(estimated_date_must_be_aware_policy(estimated))
        with self._deliveries.lock:
            updated = dataclasses.replace(
                self._require(delivery_id), estimated_delivery_date=estimated,
            )
            self._deliveries.replace(updated)
        return updated

    # ══════════════════════════════════════════════════════════
    # LOOKUPS
    # ══════════════════════════════════════════════════════════

    def get_delivery(self, delivery_id: str) -> Optional[Delivery]:
        return self._deliveries.get(delivery_id)

    def require_delivery(self, delivery_id: str) -> Delivery:
        return self._require(delivery_id)

    def list_deliveries(self) -> List[Delivery]:
        return self._deliveries.all()

    def deliveries_for_invoice(self, invoice_id: str) -> List[Delivery]:
        return self._deliveries.for_invoice(invoice_id)

    def deliveries_by_status(self, status: Union[DeliveryStatus, str]) -> List[Delivery]:
        return self._deliveries.by_status(DeliveryStatus(getattr(status, "value", status)))

    def _require(self, delivery_id: str) -> Delivery:
        delivery = self._deliveries.get(delivery_id)
        if delivery is None:
            raise NotFound("Delivery", delivery_id)
        return delivery

    @staticmethod
    def _coerce_stage(delivery: Delivery, stage: Union[DeliveryStage, str]) -> DeliveryStage:
        try:
            return DeliveryStage(getattr(stage, "value", stage))
        except ValueError:
            raise InvalidTransition(
                DELIVERY_WORKFLOW.name, delivery.current_stage.value, str(stage),
                f"Unknown stage '{stage}'.",
            ) from None
