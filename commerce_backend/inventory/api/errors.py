# inventory/api/errors.py

from rest_framework import status
from rest_framework.response import Response

from inventory.services.exceptions import (
    InsufficientStockError,
    InvalidInputError,
    InventoryServiceError,
    StockUnitNotFoundError,
    StoreNotFoundError,
    TransactionConflictError,
)


# ======================================================
# API ERROR NORMALIZATION
# ======================================================

INVENTORY_ERROR_STATUS = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    StockUnitNotFoundError: status.HTTP_404_NOT_FOUND,
    StoreNotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    TransactionConflictError: status.HTTP_409_CONFLICT,
}


def error_response(*, code: str, message: str, http_status: int, details: dict | None = None):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return Response({"error": body}, status=http_status)


def inventory_error_response(exc: InventoryServiceError):
    http_status = status.HTTP_400_BAD_REQUEST
    for exc_class, mapped in INVENTORY_ERROR_STATUS.items():
        if isinstance(exc, exc_class):
            http_status = mapped
            break

    return error_response(
        code=exc.code,
        message=str(exc),
        http_status=http_status,
        details=_jsonable(exc.details),
    )


def _jsonable(details: dict) -> dict:
    out = {}
    for key, value in (details or {}).items():
        if value is None or isinstance(value, (bool, int, float, str, list, dict)):
            out[key] = value
        else:
            out[key] = str(value)
    return out
