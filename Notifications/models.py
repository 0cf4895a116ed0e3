from django.conf import settings
from django.db import models


class Notification(models.Model):
    TYPES = [
        ("NEW_APPLICATION", "New application"),
        ("APPLICATION_STATUS_CHANGE", "Application status change"),
        ("ASSESSMENT_INVITATION", "Assessment invitation"),
        ("ASSESSMENT_COMPLETED", "Assessment completed"),
        ("ASSESSMENT_RESULTS", "Assessment results"),
        ("ACCOUNT_VERIFIED", "Account verified"),
        ("SUBSCRIPTION_CHANGED", "Subscription changed"),
    ]
    PRIORITIES = [
        ("LOW", "Low"),
        ("MEDIUM", "Medium"),
        ("HIGH", "High"),
        ("URGENT", "Urgent"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="notifications", on_delete=models.CASCADE)
    type = models.CharField(max_length=40, choices=TYPES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    action_url = models.CharField(max_length=300, blank=True, default="")
    priority = models.CharField(max_length=8, choices=PRIORITIES, default="MEDIUM")
    metadata = models.JSONField(default=dict, blank=True)
    emailed = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [models.Index(fields=["user", "read_at"], name="notification_user_read_idx")]

    def __str__(self):
        return f"{self.type} -> {self.user_id}"


class NotificationPreference(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, related_name="notification_preference", on_delete=models.CASCADE)
    email_enabled = models.BooleanField(default=True)
    in_app_enabled = models.BooleanField(default=True)
    disabled_types = models.JSONField(default=list, blank=True)
    updated_at = models.DateTimeField(auto_now=True)
