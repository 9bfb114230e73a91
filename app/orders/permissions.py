"""
Permission classes for store-scoped endpoints.

- IsStoreOwner: the request user owns the store named by the
  ``store_id`` URL kwarg (or the object's store), or is staff
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from core.helpers import parse_uuid
from orders.models import Store

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsStoreOwner(permissions.BasePermission):
    """
    Allows access only to the owner of the store, or to staff.

    Views with a ``store_id`` URL kwarg are checked in has_permission;
    views that load an order or draft are checked per object.
    """

    message = "You do not have access to this store."

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not request.user.is_authenticated:
            return False
        if request.user.is_staff:
            return True

        store_id = view.kwargs.get("store_id")
        if store_id is None:
            return True

        return Store.objects.filter(
            id=parse_uuid(store_id), owner=request.user
        ).exists()

    def has_object_permission(self, request: Request, view: APIView, obj) -> bool:
        if request.user.is_staff:
            return True

        store = obj if isinstance(obj, Store) else getattr(obj, "store", None)
        return store is not None and store.owner_id == request.user.id
