from django.urls import include, path
from rest_framework import routers

from .views import BillingViewSet

router = routers.SimpleRouter()
router.register(r'', BillingViewSet, basename='billing')

urlpatterns = [
    path('', include(router.urls)),
]
