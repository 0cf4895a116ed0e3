from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("Accounts", "0001_initial"),
        ("Assessments", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CreditLedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("kind", models.CharField(choices=[("ASSESSMENT_INVITE", "Assessment invite")], default="ASSESSMENT_INVITE", max_length=32)),
                ("cycle", models.PositiveIntegerField()),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("status", models.CharField(choices=[("RESERVED", "Reserved"), ("CHARGED", "Charged"), ("REFUNDED", "Refunded")], default="RESERVED", max_length=16)),
                ("reserved_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("charged_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("refunded_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("assessment_type", models.CharField(blank=True, default="", max_length=16)),
                ("difficulty", models.CharField(blank=True, default="", max_length=16)),
                ("meta", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="credit_ledger", to="Accounts.company")),
                ("invite", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="ledger_entries", to="Assessments.assessmentinvite")),
            ],
            options={
                "ordering": ("-created_at", "-id"),
                "indexes": [models.Index(fields=["status", "created_at"], name="ledger_status_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("plan_id", models.CharField(blank=True, default="", max_length=16)),
                ("customer_name", models.CharField(max_length=200)),
                ("customer_rfc", models.CharField(default="XAXX010101000", max_length=13)),
                ("customer_email", models.EmailField(blank=True, default="", max_length=254)),
                ("cfdi_use", models.CharField(default="G03", max_length=8)),
                ("payment_method", models.CharField(default="PUE", max_length=8)),
                ("payment_form", models.CharField(default="03", max_length=4)),
                ("currency", models.CharField(default="MXN", max_length=3)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                ("tax", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("ISSUED", "Issued"), ("CANCELLED", "Cancelled")], default="PENDING", max_length=16)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="invoices", to="Accounts.company")),
            ],
            options={
                "ordering": ("-created_at", "-id"),
            },
        ),
    ]
