# inventory/api/store_scope.py

"""
Tenant selection for API requests.

The store is supplied explicitly as `store_id` (body or query string).
Inactive and unknown stores are both reported as NOT_FOUND.
"""

import uuid

from inventory.services.exceptions import InvalidInputError, StoreNotFoundError
from store.models import Store


def get_active_store(store_id) -> Store:
    if store_id in (None, ""):
        raise InvalidInputError("store_id is required")

    try:
        sid = uuid.UUID(str(store_id))
    except (TypeError, ValueError):
        raise StoreNotFoundError("Store not found")

    try:
        return Store.objects.get(id=sid, is_active=True)
    except Store.DoesNotExist:
        raise StoreNotFoundError("Store not found")


def store_from_request(request) -> Store:
    store_id = request.query_params.get("store_id")
    if not store_id and hasattr(request.data, "get"):
        store_id = request.data.get("store_id")
    return get_active_store(store_id)
