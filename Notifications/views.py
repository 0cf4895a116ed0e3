from django.utils.timezone import now
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from Notifications.models import Notification
from Notifications.serializers import NotificationPreferenceSerializer, NotificationSerializer
from Notifications.service import get_preferences
from Taskio.utils import create_response


class NotificationViewSet(mixins.ListModelMixin, mixins.DestroyModelMixin, viewsets.GenericViewSet):
    serializer_class = NotificationSerializer

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Notification.objects.none()
        qs = Notification.objects.filter(user=self.request.user)
        if self.action == "list" and self.request.query_params.get("unread") == "true":
            qs = qs.filter(read_at__isnull=True)
        return qs

    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        count = Notification.objects.filter(user=request.user, read_at__isnull=True).count()
        return Response({"count": count})

    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        notification = self.get_object()
        if notification.read_at is None:
            notification.read_at = now()
            notification.save(update_fields=["read_at"])
        return Response(NotificationSerializer(notification).data)

    @action(detail=False, methods=["post"], url_path="mark-all-read")
    def mark_all_read(self, request):
        updated = Notification.objects.filter(user=request.user, read_at__isnull=True).update(read_at=now())
        return create_response(True, "Notifications marked as read", {"updated": updated})

    @action(detail=False, methods=["get", "patch"])
    def preferences(self, request):
        pref = get_preferences(request.user)
        if request.method == "GET":
            return Response(NotificationPreferenceSerializer(pref).data)
        serializer = NotificationPreferenceSerializer(pref, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return create_response(True, "Preferences updated", serializer.data, status_code=status.HTTP_200_OK)
