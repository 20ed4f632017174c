"""
TechShop Delivery Engine — Models
===================================
One Delivery per invoice line. Each moves through an ordered stage
sequence and keeps an append-only tracking history:

    in_inventory → collected_by_driver → in_transit
        → arrived_at_location → collected_by_receiver

Stages only move forward, possibly skipping ahead (a driver may hand
over without logging arrival). `returned` is a terminal side exit from
any non-terminal stage.

Status is never stored independently: it is derived from the current
stage by status_for_stage().
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from core.workflow import WorkflowDefinition, linear_transitions


class DeliveryStage(Enum):
    IN_INVENTORY = "in_inventory"                      # ready for dispatch
    COLLECTED_BY_DRIVER = "collected_by_driver"
    IN_TRANSIT = "in_transit"
    ARRIVED_AT_LOCATION = "arrived_at_location"
    COLLECTED_BY_RECEIVER = "collected_by_receiver"    # delivered
    RETURNED = "returned"


class DeliveryStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    RETURNED = "returned"


STAGE_SEQUENCE: Tuple[DeliveryStage, ...] = (
    DeliveryStage.IN_INVENTORY,
    DeliveryStage.COLLECTED_BY_DRIVER,
    DeliveryStage.IN_TRANSIT,
    DeliveryStage.ARRIVED_AT_LOCATION,
    DeliveryStage.COLLECTED_BY_RECEIVER,
)

DELIVERY_WORKFLOW = WorkflowDefinition(
    name="Delivery",
    initial_state=DeliveryStage.IN_INVENTORY.value,
    terminal_states=frozenset({
        DeliveryStage.COLLECTED_BY_RECEIVER.value,
        DeliveryStage.RETURNED.value,
    }),
    transitions=linear_transitions(
        tuple(stage.value for stage in STAGE_SEQUENCE),
        side_exit=DeliveryStage.RETURNED.value,
        skip_ahead=True,
    ),
)

INITIAL_EVENT_ACTOR = "System"
INITIAL_EVENT_NOTES = "Order created, ready for dispatch"
RETURNED_DEFAULT_NOTES = "Item returned to inventory"


def status_for_stage(stage: DeliveryStage) -> DeliveryStatus:
    if stage == DeliveryStage.IN_INVENTORY:
        return DeliveryStatus.PENDING
    if stage == DeliveryStage.RETURNED:
        return DeliveryStatus.RETURNED
    if stage == DeliveryStage.COLLECTED_BY_RECEIVER:
        return DeliveryStatus.COMPLETED
    return DeliveryStatus.IN_PROGRESS


def next_stage_after(stage: DeliveryStage) -> Optional[DeliveryStage]:
    """Immediate successor in the forward sequence, None at the end or once returned."""
    if stage not in STAGE_SEQUENCE:
        return None
    index = STAGE_SEQUENCE.index(stage)
    if index + 1 >= len(STAGE_SEQUENCE):
        return None
    return STAGE_SEQUENCE[index + 1]


# ══════════════════════════════════════════════════════════════
# VALUE OBJECTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DeliveryTrackingEvent:
    id: str
    stage: DeliveryStage
    timestamp: datetime
    updated_by: str
    notes: Optional[str] = None
    location: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stage": self.stage.value,
            "timestamp": self.timestamp.isoformat(),
            "updated_by": self.updated_by,
            "notes": self.notes,
            "location": self.location,
        }


@dataclass(frozen=True)
class DeliveryPerson:
    id: str
    name: str
    phone: str
    vehicle_number: Optional[str] = None

    def __post_init__(self):
        if not self.id or not self.name:
            raise ValueError("DeliveryPerson requires id and name.")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "vehicle_number": self.vehicle_number,
        }


# ══════════════════════════════════════════════════════════════
# DELIVERY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Delivery:
    """
    Fields:
        invoice_id / invoice_number: Originating invoice.
        product_code / product_name / quantity: Line snapshot.
        tracking_history: Append-only; the last event's stage is the
            current stage.
    """
    id: str
    invoice_id: str
    invoice_number: str
    product_code: str
    product_name: str
    quantity: int
    tracking_history: Tuple[DeliveryTrackingEvent, ...]
    delivery_address: str
    created_at: datetime
    recipient_name: str = ""
    recipient_phone: str = ""
    delivery_person: Optional[DeliveryPerson] = None
    estimated_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None

    def __post_init__(self):
        if not self.tracking_history:
            raise ValueError("A delivery always has at least one tracking event.")

    @property
    def current_stage(self) -> DeliveryStage:
        return self.tracking_history[-1].stage

    @property
    def status(self) -> DeliveryStatus:
        return status_for_stage(self.current_stage)

    @property
    def is_terminal(self) -> bool:
        return DELIVERY_WORKFLOW.is_terminal(self.current_stage.value)

    def with_event(self, event: DeliveryTrackingEvent) -> Delivery:
        changes = {"tracking_history": self.tracking_history + (event,)}
        if event.stage == DeliveryStage.COLLECTED_BY_RECEIVER:
            changes["actual_delivery_date"] = event.timestamp
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice_number,
            "product_code": self.product_code,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "current_stage": self.current_stage.value,
            "status": self.status.value,
            "tracking_history": [e.to_dict() for e in self.tracking_history],
            "delivery_person": self.delivery_person.to_dict() if self.delivery_person else None,
            "recipient_name": self.recipient_name,
            "recipient_phone": self.recipient_phone,
            "delivery_address": self.delivery_address,
            "estimated_delivery_date": (
                self.estimated_delivery_date.isoformat()
                if self.estimated_delivery_date else None
            ),
            "actual_delivery_date": (
                self.actual_delivery_date.isoformat() if self.actual_delivery_date else None
            ),
            "created_at": self.created_at.isoformat(),
            "notes": self.notes,
        }
