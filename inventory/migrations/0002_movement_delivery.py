import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("inventory", "0001_initial"),
        ("logistics", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="movement",
            name="delivery",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.CASCADE,
                related_name="movements",
                to="logistics.delivery",
            ),
        ),
    ]
