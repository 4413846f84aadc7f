"""API error rendering.

Every error body has the shape ``{"code": ..., "detail": ...}``. Domain
errors from the stock services map onto HTTP statuses here so views can let
them propagate.
"""

import logging

from inventory.exceptions import (
    InsufficientStockError,
    InvalidInputError,
    InvalidOperationError,
    InventoryError,
    NotFoundError,
)
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger("estoque.api")

DOMAIN_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    InvalidOperationError: status.HTTP_409_CONFLICT,
}


def _domain_response(exc: InventoryError) -> Response:
    status_code = next(
        (code for cls, code in DOMAIN_STATUS.items() if isinstance(exc, cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    logger.info(
        "api.domain_error",
        extra={"event": "api.domain_error", "code": exc.code, "status": status_code},
    )
    return Response({"code": exc.code, "detail": exc.message}, status=status_code)


def api_exception_handler(exc, context):
    if isinstance(exc, InventoryError):
        return _domain_response(exc)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            "code": InvalidInputError.code,
            "detail": "Request validation failed.",
            "field_errors": response.data,
        }
        return response

    detail = response.data.get("detail") if isinstance(response.data, dict) else response.data
    code = getattr(exc, "default_code", "api_error")
    if response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        code = "internal_error"
    elif response.status_code == status.HTTP_404_NOT_FOUND:
        code = NotFoundError.code

    response.data = {"code": code, "detail": str(detail)}
    return response


# EOF
