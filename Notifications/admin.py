from django.contrib import admin

from .models import Notification, NotificationPreference


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("user", "type", "title", "priority", "emailed", "read_at", "created_at")
    list_filter = ("type", "priority")


admin.site.register(NotificationPreference)
