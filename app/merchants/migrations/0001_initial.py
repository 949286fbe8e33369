import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Merchant",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("status", models.CharField(choices=[("active", "Active"), ("suspended", "Suspended")], db_index=True, default="active", max_length=20)),
                ("webhook_url", models.URLField(blank=True, help_text="Payment events are POSTed here when set", max_length=500, null=True)),
                ("webhook_secret", models.CharField(blank=True, help_text="HMAC-SHA256 key for webhook signatures", max_length=255, null=True)),
                ("custom_fee_pct", models.DecimalField(blank=True, decimal_places=2, help_text="Overrides the platform fee percentage when set", max_digits=5, null=True)),
                ("owner", models.ForeignKey(blank=True, help_text="User allowed to act for this merchant", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="merchants", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="PlatformSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("key", models.CharField(default="global", max_length=50, unique=True)),
                ("fee_pct", models.DecimalField(decimal_places=2, help_text="Platform fee in percent of each payment", max_digits=5)),
            ],
            options={
                "verbose_name": "platform settings",
                "verbose_name_plural": "platform settings",
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Store",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("confirm_policy", models.JSONField(blank=True, default=dict, help_text='Per-asset overrides, e.g. {"btc": {"paidAt": 1, "confirmedAt": 6}}')),
                ("deposit_addresses", models.JSONField(blank=True, default=dict, help_text="Per-asset deposit addresses")),
                ("merchant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="stores", to="merchants.merchant")),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
    ]
