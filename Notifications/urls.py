from django.urls import include, path
from rest_framework import routers

from .views import NotificationViewSet

router = routers.SimpleRouter()
router.register(r'', NotificationViewSet, basename='notifications')

urlpatterns = [
    path('', include(router.urls)),
]
