"""
URL configuration for sopnosetu_backend project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.conf import settings
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path, re_path
from django.views.static import serve
from rest_framework_simplejwt.views import TokenRefreshView

from core.auth import SopnoSetuTokenObtainPairView
from core.schema import SopnoSetuSchemaView


def api_root(_request):
    return JsonResponse({
        'status': 'ok',
        'message': 'SopnoSetu backend is running',
        'schema': '/api/schema/',
    })


urlpatterns = [
    path('', api_root, name='api_root'),
    path('admin/', admin.site.urls),
    path('api/login/', SopnoSetuTokenObtainPairView.as_view(), name='api_login'),
    path('api/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/schema/', SopnoSetuSchemaView.as_view(), name='api-schema'),
    path('api/', include('core.urls')),
]

urlpatterns.append(
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}, name='media')
)
