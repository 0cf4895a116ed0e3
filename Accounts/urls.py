from django.urls import include, path
from rest_framework import routers

from .views import AuthViewSet, ProfileViewSet

router = routers.DefaultRouter()
router.register(r'auth', AuthViewSet, basename='auth')
router.register(r'me', ProfileViewSet, basename='me')

urlpatterns = [
    path('', include(router.urls)),
]
