from django.urls import include, path
from rest_framework import routers

from .views import ApplicationViewSet, JobViewSet

router = routers.DefaultRouter()
router.register(r'jobs', JobViewSet, basename='jobs')
router.register(r'applications', ApplicationViewSet, basename='applications')

urlpatterns = [
    path('', include(router.urls)),
]
