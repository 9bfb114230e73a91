"""
Inventory reservation collaborator.

Draft conversion reserves stock for every line item through the object
returned by get_inventory_reserver(). The implementation is chosen by the
ORDERS_INVENTORY_RESERVER setting (a dotted path), which lets a deployment
plug in an external inventory service while tests keep the database one.

Usage:
    from orders.inventory import ReservationItem, get_inventory_reserver

    result = get_inventory_reserver().reserve(
        [ReservationItem(variant_id=v, quantity=2)],
        store_id=store.id,
        reason="order_created",
        order_id=order.id,
    )
    if not result.success:
        raise InventoryReservationError(result.error)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils.module_loading import import_string

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_RESERVER = "orders.inventory.DatabaseInventoryReserver"


@dataclass(frozen=True)
class ReservationItem:
    variant_id: uuid.UUID | None
    quantity: int


@dataclass(frozen=True)
class ReservationResult:
    success: bool
    error: str | None = None


@runtime_checkable
class InventoryReserver(Protocol):
    """Reserves stock for the items of a newly created order."""

    def reserve(
        self,
        items: Sequence[ReservationItem],
        store_id: uuid.UUID,
        reason: str,
        order_id: uuid.UUID,
    ) -> ReservationResult: ...


class DatabaseInventoryReserver:
    """
    Reserve stock against InventoryLevel rows.

    Moves quantity from available to committed for each tracked variant.
    Items without a variant, or variants with no inventory row, are not
    tracked and are skipped. Rows are locked in variant order so concurrent
    reservations for overlapping variants cannot deadlock.
    """

    def reserve(self, items, store_id, reason, order_id) -> ReservationResult:
        from orders.models import InventoryLevel

        quantities: dict[uuid.UUID, int] = {}
        for item in items:
            if item.variant_id is None:
                continue
            quantities[item.variant_id] = quantities.get(item.variant_id, 0) + item.quantity

        if not quantities:
            return ReservationResult(success=True)

        with transaction.atomic():
            levels = {
                level.variant_id: level
                for level in InventoryLevel.objects.select_for_update()
                .filter(store_id=store_id, variant_id__in=quantities.keys())
                .order_by("variant_id")
            }

            for variant_id, quantity in quantities.items():
                level = levels.get(variant_id)
                if level is None:
                    continue
                if level.available < quantity:
                    logger.warning(
                        "Insufficient inventory for reservation",
                        extra={
                            "store_id": str(store_id),
                            "order_id": str(order_id),
                            "variant_id": str(variant_id),
                            "requested": quantity,
                            "available": level.available,
                        },
                    )
                    return ReservationResult(
                        success=False,
                        error=(
                            f"Insufficient inventory for variant {variant_id}: "
                            f"requested {quantity}, available {level.available}"
                        ),
                    )

            for variant_id, quantity in quantities.items():
                if variant_id in levels:
                    InventoryLevel.objects.filter(pk=levels[variant_id].pk).update(
                        available=F("available") - quantity,
                        committed=F("committed") + quantity,
                    )

        logger.info(
            "Inventory reserved",
            extra={
                "store_id": str(store_id),
                "order_id": str(order_id),
                "reason": reason,
                "variants": len(quantities),
            },
        )
        return ReservationResult(success=True)


def get_inventory_reserver() -> InventoryReserver:
    """Instantiate the configured inventory reserver."""
    path = getattr(settings, "ORDERS_INVENTORY_RESERVER", DEFAULT_RESERVER)
    return import_string(path)()
