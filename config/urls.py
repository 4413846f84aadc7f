"""
URL configuration for the estoque project.

API routes are versioned under ``/api/v1/``; the schema and Swagger UI are
served by drf-spectacular.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from .auth import VerifyPasswordView
from .health import health

admin.site.site_header = "Estoque Admin"
admin.site.index_title = "Admin"

urlpatterns = [
    path("admin/", admin.site.urls),
    # API schema and Swagger UI
    path("api/schema/", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="api-schema"), name="api-docs"),
    # Healthcheck
    path("health/", health, name="health"),
    # Versioned v1 routes only
    path("api/v1/auth/verify-password/", VerifyPasswordView.as_view(), name="verify-password"),
    path("api/v1/inventory/", include("inventory.urls")),
    path("api/v1/logistics/", include("logistics.urls")),
]
