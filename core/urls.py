"""
URL configuration for the repair desk API.

Routed viewsets live on the shared router; function views and app url
modules are mounted under ``api/``.
"""
from django.contrib import admin
from django.urls import path, include
from django.views.generic import RedirectView
from rest_framework.routers import DefaultRouter
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView

from core.views import health, version
from invoices.views import InvoiceViewSet
from messaging.views import MessageTemplateViewSet


router = DefaultRouter()
router.register(r'invoices', InvoiceViewSet, basename='invoice')
router.register(r'templates', MessageTemplateViewSet, basename='template')


urlpatterns = [
    # Default route: go to the API docs
    path('', RedirectView.as_view(url='/api/docs/', permanent=False), name='go-to-docs'),
    path('admin/', admin.site.urls),
    path('api/', include(router.urls)),
    path('api/accounts/', include('accounts.urls')),
    path('api/messages/', include('messaging.urls')),
    path('api/settings/', include('shop.urls')),
    path('api/health/', health, name='health'),
    path('api/version/', version, name='version'),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    # ده الرابط اللي هتفتحه في المتصفح
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
