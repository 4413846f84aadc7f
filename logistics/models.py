"""Logistics models: delivery requests that withdraw stock to a work site."""

import uuid

from common.choices import DeliveryStatus
from django.db import models
from django.utils import timezone


class Delivery(models.Model):
    """A scheduled withdrawal of a product to a destination site.

    ``unit`` is a snapshot of the product's unit at creation time. ``status``
    is free text; ``DeliveryStatus`` only lists the usual labels.
    """

    STATUS_PENDING = DeliveryStatus.PENDENTE

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    requested_at = models.DateTimeField(default=timezone.now)
    source_location = models.CharField(max_length=200)
    destination_site = models.CharField(max_length=200)
    product = models.ForeignKey("inventory.Product", on_delete=models.CASCADE, related_name="deliveries")
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    unit = models.CharField(max_length=32, blank=True, null=True)
    contact_name = models.CharField(max_length=200, blank=True, null=True)
    contact_phone = models.CharField(max_length=32, blank=True, null=True)
    status = models.CharField(max_length=64, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "deliveries"
        ordering = ["-requested_at", "id"]
        verbose_name_plural = "deliveries"
        constraints = [
            models.CheckConstraint(name="delivery_quantity_positive", condition=models.Q(quantity__gt=0)),
        ]
        indexes = [
            models.Index(fields=["product", "requested_at"], name="deliveries_product_req_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Delivery<{self.product_id}> {self.quantity} -> {self.destination_site} [{self.status}]"


# EOF
