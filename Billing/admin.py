from django.contrib import admin

from .models import CreditLedgerEntry, Invoice


@admin.register(CreditLedgerEntry)
class CreditLedgerEntryAdmin(admin.ModelAdmin):
    list_display = ("id", "company", "invite", "status", "amount", "cycle", "created_at")
    list_filter = ("status", "kind")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("id", "company", "plan_id", "total", "status", "created_at")
    list_filter = ("status", "plan_id")
