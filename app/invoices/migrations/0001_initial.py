import uuid
from decimal import Decimal

import django.db.models.deletion
import django_fsm
from django.db import migrations, models

ASSET_CHOICES = [
    ("btc", "Bitcoin"),
    ("eth", "Ether"),
    ("bnb", "BNB"),
    ("usdt_erc20", "USDT (ERC-20)"),
    ("usdt_bep20", "USDT (BEP-20)"),
    ("usdt_trc20", "USDT (TRC-20)"),
]

STATUS_CHOICES = [
    ("PENDING", "Pending"),
    ("PAID", "Paid"),
    ("CONFIRMED", "Confirmed"),
    ("UNDERPAID", "Underpaid"),
    ("EXPIRED", "Expired"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("merchants", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("external_id", models.CharField(blank=True, help_text="Merchant-side order reference", max_length=255, null=True)),
                ("fiat_currency", models.CharField(default="USD", max_length=3)),
                ("fiat_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("asset", models.CharField(choices=ASSET_CHOICES, max_length=20)),
                ("amount_crypto", models.DecimalField(decimal_places=18, max_digits=36)),
                ("rate", models.DecimalField(decimal_places=18, help_text="USD per unit of asset at creation", max_digits=36)),
                ("address", models.CharField(db_index=True, max_length=128)),
                ("status", django_fsm.FSMField(choices=STATUS_CHOICES, db_index=True, default="PENDING", help_text="Current state of the invoice (managed by FSM)", max_length=50, protected=True)),
                ("expires_at", models.DateTimeField(db_index=True)),
                ("status_token", models.CharField(max_length=64)),
                ("confirmations_required", models.PositiveIntegerField()),
                ("confirmations_seen", models.PositiveIntegerField(default=0)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("expired_at", models.DateTimeField(blank=True, null=True)),
                ("merchant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="merchants.merchant")),
                ("store", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="merchants.store")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "expires_at"], name="invoice_status_expiry_idx"),
                    models.Index(fields=["store", "status"], name="invoice_store_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("asset", models.CharField(choices=ASSET_CHOICES, max_length=20)),
                ("txid", models.CharField(max_length=128)),
                ("block_height", models.PositiveBigIntegerField(blank=True, null=True)),
                ("amount", models.DecimalField(decimal_places=18, default=Decimal("0"), max_digits=36)),
                ("confirmations", models.PositiveIntegerField(db_index=True, default=0)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="invoices.invoice")),
                ("merchant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="merchants.merchant")),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("txid", "invoice"), name="invoices_unique_payment_per_tx"),
                ],
            },
        ),
    ]
