"""
Record the credited deposit address on each payment.

Invoices of one store share a deposit address per asset, so a transfer
is unique per (asset, address, txid) rather than per invoice.
"""

from django.db import migrations, models

CASE_INSENSITIVE_ASSETS = ("eth", "usdt_erc20", "bnb", "usdt_bep20")


def copy_invoice_addresses(apps, schema_editor):
    Payment = apps.get_model("invoices", "Payment")

    for payment in Payment.objects.select_related("invoice").iterator():
        address = payment.invoice.address
        if payment.asset in CASE_INSENSITIVE_ASSETS:
            address = address.lower()
        payment.address = address
        payment.save(update_fields=["address"])


class Migration(migrations.Migration):
    dependencies = [
        ("invoices", "0002_add_tracker_schedules"),
    ]

    operations = [
        migrations.AddField(
            model_name="payment",
            name="address",
            field=models.CharField(default="", max_length=128),
        ),
        migrations.RunPython(copy_invoice_addresses, migrations.RunPython.noop),
        migrations.AddConstraint(
            model_name="payment",
            constraint=models.UniqueConstraint(
                fields=("asset", "address", "txid"),
                name="invoices_unique_payment_per_address_tx",
            ),
        ),
    ]
