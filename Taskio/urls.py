from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

api_urlpatterns = [
    path('accounts/', include('Accounts.urls')),
    path('assessments/', include('Assessments.urls')),
    path('billing/', include('Billing.urls')),
    path('notifications/', include('Notifications.urls')),
    path('', include('Jobs.urls')),
]

schema_view = get_schema_view(
    openapi.Info(
        title="Taskio API",
        default_version="v1",
        description="Job board, candidate assessments and recruiter billing.",
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include(api_urlpatterns)),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
