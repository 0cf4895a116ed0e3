from decimal import Decimal

from django.db import models

from Accounts.models import Company


class CreditLedgerEntry(models.Model):
    STATUS = [
        ("RESERVED", "Reserved"),
        ("CHARGED", "Charged"),
        ("REFUNDED", "Refunded"),
    ]
    KINDS = [("ASSESSMENT_INVITE", "Assessment invite")]

    invite = models.ForeignKey("Assessments.AssessmentInvite", related_name="ledger_entries", on_delete=models.CASCADE)
    company = models.ForeignKey(Company, related_name="credit_ledger", on_delete=models.CASCADE)
    kind = models.CharField(max_length=32, choices=KINDS, default="ASSESSMENT_INVITE")
    cycle = models.PositiveIntegerField()  # YYYYMM
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    status = models.CharField(max_length=16, choices=STATUS, default="RESERVED")
    reserved_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    charged_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    refunded_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    assessment_type = models.CharField(max_length=16, blank=True, default="")
    difficulty = models.CharField(max_length=16, blank=True, default="")
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [models.Index(fields=["status", "created_at"], name="ledger_status_created_idx")]

    def __str__(self):
        return f"{self.kind} {self.status} {self.amount} (company {self.company_id})"


class Invoice(models.Model):
    STATUS = [
        ("PENDING", "Pending"),
        ("ISSUED", "Issued"),
        ("CANCELLED", "Cancelled"),
    ]

    company = models.ForeignKey(Company, related_name="invoices", on_delete=models.CASCADE)
    plan_id = models.CharField(max_length=16, blank=True, default="")
    customer_name = models.CharField(max_length=200)
    customer_rfc = models.CharField(max_length=13, default="XAXX010101000")
    customer_email = models.EmailField(blank=True, default="")
    cfdi_use = models.CharField(max_length=8, default="G03")
    payment_method = models.CharField(max_length=8, default="PUE")
    payment_form = models.CharField(max_length=4, default="03")
    currency = models.CharField(max_length=3, default="MXN")
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    tax = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=16, choices=STATUS, default="PENDING")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self):
        return f"Invoice {self.id} {self.total} {self.currency} ({self.status})"
