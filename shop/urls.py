from django.urls import path

from .views import shop_settings

urlpatterns = [
    path('', shop_settings, name='shop_settings'),
]
