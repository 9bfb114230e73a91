"""
Resolve checkout metadata into a settlement target.

A checkout pays either one store (a draft being converted, or an existing
order) or several stores at once. The multi-store breakdown is JSON in the
metadata:

    {
        "multiStore": "true",
        "storeBreakdown": "{\"<store_id>\": {\"stripeAccountId\": \"acct_1\",
                                            \"amount\": 4200,
                                            \"orderIds\": [\"<order_id>\"]}}",
        "orderIds": "[\"<order_id>\", ...]"
    }

Amounts in the breakdown are in minor units. Session metadata is checked
before payment-intent metadata, key by key.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field

from settlement.exceptions import InvalidPaymentMetadataError


@dataclass(frozen=True)
class StoreShare:
    store_id: str
    stripe_account_id: str | None
    amount_minor: int
    order_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class SingleStorePayment:
    """Exactly one of draft_id / order_id is used; a draft wins if both are set."""

    draft_id: str | None = None
    order_id: str | None = None


@dataclass(frozen=True)
class MultiStorePayment:
    breakdown: dict[str, StoreShare] = field(default_factory=dict)
    order_ids: tuple[str, ...] = ()


PaymentTarget = SingleStorePayment | MultiStorePayment


def _lookup(key: str, *sources: Mapping | None) -> str | None:
    for source in sources:
        value = (source or {}).get(key)
        if value:
            return value
    return None


def _parse_json(raw: str, key: str):
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise InvalidPaymentMetadataError(
            f"Malformed {key} in checkout metadata",
            details={"key": key, "error": str(e)},
        )


def _parse_breakdown(raw: str) -> dict[str, StoreShare]:
    data = _parse_json(raw, "storeBreakdown")
    if not isinstance(data, dict) or not data:
        raise InvalidPaymentMetadataError(
            "storeBreakdown must be a non-empty object",
            details={"key": "storeBreakdown"},
        )

    breakdown = {}
    for store_id, entry in data.items():
        if not isinstance(entry, dict):
            raise InvalidPaymentMetadataError(
                f"storeBreakdown entry for store {store_id} is not an object",
                details={"store_id": store_id},
            )
        try:
            amount_minor = int(entry.get("amount", 0))
        except (TypeError, ValueError):
            raise InvalidPaymentMetadataError(
                f"Invalid amount for store {store_id} in storeBreakdown",
                details={"store_id": store_id},
            )
        order_ids = entry.get("orderIds") or []
        if not isinstance(order_ids, list):
            raise InvalidPaymentMetadataError(
                f"orderIds for store {store_id} must be a list",
                details={"store_id": store_id},
            )
        breakdown[store_id] = StoreShare(
            store_id=store_id,
            stripe_account_id=entry.get("stripeAccountId"),
            amount_minor=amount_minor,
            order_ids=tuple(str(order_id) for order_id in order_ids),
        )
    return breakdown


def resolve_payment_target(
    session_metadata: Mapping | None,
    intent_metadata: Mapping | None = None,
) -> PaymentTarget:
    """
    Work out what a checkout paid for.

    Raises:
        InvalidPaymentMetadataError: Neither a breakdown, a draft nor an
            order is named, or the breakdown cannot be parsed.
    """
    for source in (session_metadata, intent_metadata):
        source = source or {}
        if source.get("multiStore") == "true" and source.get("storeBreakdown"):
            breakdown = _parse_breakdown(source["storeBreakdown"])
            order_ids: tuple[str, ...] = ()
            if source.get("orderIds"):
                parsed = _parse_json(source["orderIds"], "orderIds")
                if isinstance(parsed, list):
                    order_ids = tuple(str(order_id) for order_id in parsed)
            if not order_ids:
                order_ids = tuple(
                    order_id for share in breakdown.values() for order_id in share.order_ids
                )
            return MultiStorePayment(breakdown=breakdown, order_ids=order_ids)

    draft_id = _lookup("draftId", session_metadata, intent_metadata)
    order_id = _lookup("orderId", session_metadata, intent_metadata)
    if draft_id or order_id:
        return SingleStorePayment(draft_id=draft_id, order_id=order_id)

    raise InvalidPaymentMetadataError(
        "Checkout metadata names no draft, order or store breakdown",
        details={
            "session_metadata_keys": sorted((session_metadata or {}).keys()),
            "intent_metadata_keys": sorted((intent_metadata or {}).keys()),
        },
    )
