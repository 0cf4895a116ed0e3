from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Company, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("email", "first_name", "last_name", "role", "company", "is_active")
    list_filter = ("role", "is_active")
    ordering = ("email",)
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Taskio", {"fields": ("role", "company", "email_verified_at", "headline", "location", "skills")}),
    )


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("name", "billing_plan", "assessment_credits", "assessment_credits_reserved")
    search_fields = ("name",)
