"""
TechShop Delivery Engine
==========================
Per-line delivery tracking with stage history.
"""

from engines.delivery.models import (
    DELIVERY_WORKFLOW,
    STAGE_SEQUENCE,
    Delivery,
    DeliveryPerson,
    DeliveryStage,
    DeliveryStatus,
    DeliveryTrackingEvent,
    next_stage_after,
    status_for_stage,
)
from engines.delivery.services import DeliveryTracker
from engines.delivery.store import DeliveryStore

__all__ = [
    "DELIVERY_WORKFLOW",
    "STAGE_SEQUENCE",
    "Delivery",
    "DeliveryPerson",
    "DeliveryStage",
    "DeliveryStatus",
    "DeliveryStore",
    "DeliveryTracker",
    "DeliveryTrackingEvent",
    "next_stage_after",
    "status_for_stage",
]
