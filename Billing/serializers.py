from decimal import Decimal

from rest_framework import serializers

from Accounts.models import Company
from Billing.models import CreditLedgerEntry, Invoice


class TaxDataSerializer(serializers.ModelSerializer):
    tax_rfc = serializers.RegexField(r"(?i)^[A-ZÑ&]{3,4}\d{6}[A-Z0-9]{3}$", max_length=13, required=False, allow_blank=True)
    tax_zip = serializers.RegexField(r"^\d{5}$", required=False, allow_blank=True)

    class Meta:
        model = Company
        fields = (
            "tax_legal_name", "tax_rfc", "tax_regime", "tax_zip",
            "tax_address_line1", "tax_address_line2", "tax_email", "cfdi_use_default",
        )

    def validate_tax_rfc(self, value):
        return value.strip().upper()


class InvoiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = "__all__"


class CreditLedgerEntrySerializer(serializers.ModelSerializer):
    candidate_email = serializers.CharField(source="invite.candidate.email", read_only=True)
    job_title = serializers.CharField(source="invite.job.title", read_only=True)
    template_title = serializers.CharField(source="invite.template.title", read_only=True)

    class Meta:
        model = CreditLedgerEntry
        fields = (
            "id", "invite", "kind", "cycle", "amount", "status", "reserved_amount", "charged_amount",
            "refunded_amount", "assessment_type", "difficulty", "candidate_email", "job_title",
            "template_title", "created_at",
        )


class AddCreditsSerializer(serializers.Serializer):
    company = serializers.PrimaryKeyRelatedField(queryset=Company.objects.all())
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.5"))
    reason = serializers.CharField(required=False, default="Credit purchase")
