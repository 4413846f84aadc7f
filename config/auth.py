"""Shared-secret check for the operator-only endpoints.

There are no user accounts: a single ``ADMIN_PASSWORD`` gates the password
verification endpoint and the stock valuation report. An unset password
rejects everything.
"""

import logging

from django.conf import settings
from django.utils.crypto import constant_time_compare
from drf_spectacular.utils import OpenApiExample, extend_schema, inline_serializer
from inventory.serializers import PasswordSerializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import APIView

logger = logging.getLogger("auth")


class PasswordRejected(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Senha incorreta."
    default_code = "not_authorized"


def check_admin_password(password) -> bool:
    expected = getattr(settings, "ADMIN_PASSWORD", "") or ""
    if not expected or not password:
        return False
    return constant_time_compare(str(password), expected)


def require_admin_password(request) -> None:
    """Raise 401 unless the request body carries the admin password."""
    if not check_admin_password(request.data.get("password")):
        logger.warning("auth.password_rejected", extra={"event": "auth.password_rejected", "path": request.path})
        raise PasswordRejected()


class VerifyPasswordView(APIView):
    throttle_scope = "password_verify"

    @extend_schema(
        tags=["Auth Endpoints"],
        summary="Verify admin password",
        description="Checks the shared operator password. Returns 401 when it does not match.",
        request=PasswordSerializer,
        responses={
            200: inline_serializer(name="PasswordVerified", fields={"success": rf_serializers.BooleanField()}),
            401: inline_serializer(
                name="PasswordRejected",
                fields={"code": rf_serializers.CharField(), "detail": rf_serializers.CharField()},
            ),
        },
        examples=[OpenApiExample("Verified", value={"success": True}, response_only=True)],
    )
    def post(self, request):
        require_admin_password(request)
        return Response({"success": True}, status=status.HTTP_200_OK)


# EOF
