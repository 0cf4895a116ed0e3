from rest_framework import serializers

from .models import Notification, NotificationPreference


class NotificationSerializer(serializers.ModelSerializer):
    is_read = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = ("id", "type", "title", "message", "action_url", "priority", "metadata", "is_read", "read_at", "created_at")

    def get_is_read(self, obj):
        return obj.read_at is not None


class NotificationPreferenceSerializer(serializers.ModelSerializer):
    disabled_types = serializers.ListField(
        child=serializers.ChoiceField(choices=[t for t, _ in Notification.TYPES]),
        required=False,
    )

    class Meta:
        model = NotificationPreference
        fields = ("email_enabled", "in_app_enabled", "disabled_types", "updated_at")
        read_only_fields = ("updated_at",)
