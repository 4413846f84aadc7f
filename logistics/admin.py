"""Admin registration for deliveries; only the status label is editable."""

from django.contrib import admin

from .models import Delivery
from .services import update_delivery_status


@admin.register(Delivery)
class DeliveryAdmin(admin.ModelAdmin):
    list_display = ("requested_at", "product", "quantity", "unit", "destination_site", "status")
    list_filter = ("status",)
    search_fields = ("destination_site", "source_location", "product__name", "product__sku", "contact_name")
    list_select_related = ("product",)
    readonly_fields = (
        "id",
        "requested_at",
        "source_location",
        "destination_site",
        "product",
        "quantity",
        "unit",
        "contact_name",
        "contact_phone",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def save_model(self, request, obj, form, change):
        if "status" in form.changed_data:
            update_delivery_status(delivery_id=obj.pk, status=obj.status)


# EOF
