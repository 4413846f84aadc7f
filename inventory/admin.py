"""Admin registrations for inventory app.

Balances only move through the stock services, so quantities are read-only
here and movements cannot be added, edited or deleted.
"""

from django.contrib import admin

from .models import Movement, Product


class MovementInline(admin.TabularInline):
    model = Movement
    fk_name = "product"
    extra = 0
    fields = ("created_at", "type", "quantity", "reason", "delivery")
    readonly_fields = fields
    ordering = ("-created_at",)
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "category", "quantity", "min_quantity", "unit", "priority", "updated_at")
    search_fields = ("name", "sku", "category")
    list_filter = ("priority", "category")
    readonly_fields = ("id", "sku", "quantity", "unit_cost", "created_at", "updated_at")
    inlines = [MovementInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Movement)
class MovementAdmin(admin.ModelAdmin):
    list_display = ("created_at", "product", "type", "quantity", "reason", "delivery")
    list_filter = ("type",)
    search_fields = ("product__name", "product__sku", "reason")
    list_select_related = ("product",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# EOF
