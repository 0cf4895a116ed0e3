from django.urls import include, path
from rest_framework import routers

from .views import AssessmentTemplateViewSet, AttemptViewSet

router = routers.SimpleRouter()
router.register(r'attempts', AttemptViewSet, basename='attempts')
router.register(r'', AssessmentTemplateViewSet, basename='assessments')

urlpatterns = [
    path('', include(router.urls)),
]
