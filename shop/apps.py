"""Shop app configuration."""

from django.apps import AppConfig


class ShopConfig(AppConfig):
    """Django app config for shop-wide settings."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'shop'
