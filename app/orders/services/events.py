"""Helpers for writing order timeline events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from orders.choices import EventVisibility
from orders.models import OrderEvent

if TYPE_CHECKING:
    from orders.models import Order


def record_order_event(
    order: Order,
    event_type: str,
    message: str,
    metadata: dict[str, Any] | None = None,
    created_by=None,
    visibility: str = EventVisibility.INTERNAL,
) -> OrderEvent:
    return OrderEvent.objects.create(
        order=order,
        type=event_type,
        visibility=visibility,
        message=message,
        metadata=metadata or {},
        created_by=created_by,
    )
