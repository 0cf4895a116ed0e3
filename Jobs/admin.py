from django.contrib import admin

from .models import Application, Job


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ("title", "company", "status", "seniority", "remote", "created_at")
    list_filter = ("status", "seniority", "employment_type", "remote")
    search_fields = ("title", "company__name")


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ("job", "candidate", "status", "recruiter_interest", "created_at")
    list_filter = ("status", "recruiter_interest")
