import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(editable=False, max_length=32, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, null=True)),
                ("category", models.CharField(blank=True, max_length=120, null=True)),
                ("unit", models.CharField(max_length=32)),
                ("quantity", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("min_quantity", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("location", models.CharField(blank=True, max_length=200, null=True)),
                ("supplier", models.CharField(blank=True, max_length=200, null=True)),
                ("unit_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("priority", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "products",
                "ordering": ["name", "id"],
                "indexes": [
                    models.Index(fields=["name"], name="products_name_idx"),
                    models.Index(fields=["category"], name="products_category_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 0)), name="product_quantity_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_cost__gte", 0), ("unit_cost__isnull", True), _connector="OR"),
                        name="product_unit_cost_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Movement",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "type",
                    models.CharField(
                        choices=[("entrada", "Entrada"), ("saida", "Saída"), ("ajuste", "Ajuste")],
                        max_length=16,
                    ),
                ),
                ("quantity", models.DecimalField(decimal_places=2, max_digits=12)),
                ("reason", models.CharField(blank=True, max_length=255, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="movements", to="inventory.product"
                    ),
                ),
            ],
            options={
                "db_table": "movements",
                "ordering": ["-created_at", "id"],
                "indexes": [
                    models.Index(fields=["product", "created_at"], name="movements_product_created_idx"),
                    models.Index(fields=["type"], name="movements_type_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 0)), name="movement_quantity_non_negative"
                    ),
                ],
            },
        ),
    ]
