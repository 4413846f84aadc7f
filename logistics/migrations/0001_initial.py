import uuid

import django.utils.timezone
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Delivery",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("requested_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("source_location", models.CharField(max_length=200)),
                ("destination_site", models.CharField(max_length=200)),
                ("quantity", models.DecimalField(decimal_places=2, max_digits=12)),
                ("unit", models.CharField(blank=True, max_length=32, null=True)),
                ("contact_name", models.CharField(blank=True, max_length=200, null=True)),
                ("contact_phone", models.CharField(blank=True, max_length=32, null=True)),
                ("status", models.CharField(db_index=True, default="Pendente", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="deliveries", to="inventory.product"
                    ),
                ),
            ],
            options={
                "db_table": "deliveries",
                "ordering": ["-requested_at", "id"],
                "verbose_name_plural": "deliveries",
                "indexes": [
                    models.Index(fields=["product", "requested_at"], name="deliveries_product_req_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="delivery_quantity_positive"),
                ],
            },
        ),
    ]
