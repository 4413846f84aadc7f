"""Inventory models (single-location).

Products carry their own running balance; every change to it is mirrored by a
``Movement`` row so the balance can be audited.
"""

import uuid
from decimal import Decimal

from common.choices import MovementType
from django.db import models


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sku = models.CharField(max_length=32, unique=True, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=120, blank=True, null=True)
    unit = models.CharField(max_length=32)
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    min_quantity = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    location = models.CharField(max_length=200, blank=True, null=True)
    supplier = models.CharField(max_length=200, blank=True, null=True)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    priority = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    # Stamped by the ledger and by descriptive edits, never automatically
    updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "products"
        ordering = ["name", "id"]
        constraints = [
            models.CheckConstraint(name="product_quantity_non_negative", condition=models.Q(quantity__gte=0)),
            models.CheckConstraint(
                name="product_unit_cost_non_negative",
                condition=models.Q(unit_cost__gte=0) | models.Q(unit_cost__isnull=True),
            ),
        ]
        indexes = [
            models.Index(fields=["name"], name="products_name_idx"),
            models.Index(fields=["category"], name="products_category_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.sku} {self.name} q={self.quantity}"

    @property
    def is_low_stock(self) -> bool:
        return self.min_quantity is not None and self.quantity <= self.min_quantity


class Movement(models.Model):
    TYPE_ENTRADA = MovementType.ENTRADA
    TYPE_SAIDA = MovementType.SAIDA
    TYPE_AJUSTE = MovementType.AJUSTE
    TYPE_CHOICES = MovementType.choices

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="movements")
    type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    # Magnitude only; the sign comes from ``type``. For ajuste it is the target balance.
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    delivery = models.ForeignKey(
        "logistics.Delivery",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="movements",
    )

    class Meta:
        db_table = "movements"
        ordering = ["-created_at", "id"]
        constraints = [
            models.CheckConstraint(name="movement_quantity_non_negative", condition=models.Q(quantity__gte=0)),
        ]
        indexes = [
            models.Index(fields=["product", "created_at"], name="movements_product_created_idx"),
            models.Index(fields=["type"], name="movements_type_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.type} {self.quantity} for {self.product_id}"


# EOF
