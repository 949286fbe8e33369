import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models

ASSET_CHOICES = [
    ("btc", "Bitcoin"),
    ("eth", "Ether"),
    ("bnb", "BNB"),
    ("usdt_erc20", "USDT (ERC-20)"),
    ("usdt_bep20", "USDT (BEP-20)"),
    ("usdt_trc20", "USDT (TRC-20)"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("merchants", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Balance",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("owner", models.CharField(db_index=True, max_length=64)),
                ("asset", models.CharField(choices=ASSET_CHOICES, max_length=20)),
                ("available", models.DecimalField(decimal_places=18, default=Decimal("0"), max_digits=36)),
                ("pending", models.DecimalField(decimal_places=18, default=Decimal("0"), max_digits=36)),
            ],
            options={
                "ordering": ["owner", "asset"],
                "constraints": [
                    models.UniqueConstraint(fields=("owner", "asset"), name="ledger_unique_balance_per_owner_asset"),
                    models.CheckConstraint(condition=models.Q(("available__gte", 0)), name="ledger_balance_available_non_negative"),
                    models.CheckConstraint(condition=models.Q(("pending__gte", 0)), name="ledger_balance_pending_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FeeSplit",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("merchant_id", models.CharField(db_index=True, max_length=64)),
                ("asset", models.CharField(choices=ASSET_CHOICES, max_length=20)),
                ("gross", models.DecimalField(decimal_places=18, max_digits=36)),
                ("fee_pct", models.DecimalField(decimal_places=2, max_digits=5)),
                ("fee_amount", models.DecimalField(decimal_places=18, max_digits=36)),
                ("merchant_amount", models.DecimalField(decimal_places=18, max_digits=36)),
                ("idempotency_key", models.CharField(max_length=255, unique=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Withdrawal",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("asset", models.CharField(choices=ASSET_CHOICES, max_length=20)),
                ("amount", models.DecimalField(decimal_places=18, max_digits=36)),
                ("to_address", models.CharField(max_length=128)),
                ("status", models.CharField(choices=[("pending", "Pending")], db_index=True, default="pending", max_length=20)),
                ("txid", models.CharField(blank=True, max_length=128, null=True)),
                ("merchant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="withdrawals", to="merchants.merchant")),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="SweepIntent",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("asset", models.CharField(choices=ASSET_CHOICES, max_length=20)),
                ("from_address", models.CharField(max_length=128)),
                ("to_address", models.CharField(max_length=128)),
                ("amount", models.DecimalField(decimal_places=18, max_digits=36)),
                ("status", models.CharField(choices=[("pending", "Pending")], db_index=True, default="pending", max_length=20)),
                ("store", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="sweep_intents", to="merchants.store")),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
    ]
