"""
Helper functions for common infrastructure operations.

Usage:
    from core.helpers import parse_uuid, get_client_ip

    order_id = parse_uuid(metadata.get("orderId"))  # None if missing or malformed
    ip = get_client_ip(request)
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django.http import HttpRequest


def parse_uuid(value) -> uuid.UUID | None:
    """
    Parse a UUID from untrusted input.

    Returns None instead of raising for missing or malformed values, so
    ids taken from webhook metadata can go straight into a lookup.

    Example:
        parse_uuid("550e8400-e29b-41d4-a716-446655440000")  # UUID(...)
        parse_uuid("not-a-uuid")  # None
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def get_client_ip(request: HttpRequest) -> str:
    """
    Extract the client IP address from a request.

    Honours X-Forwarded-For (first address) when running behind a proxy.
    """
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")
