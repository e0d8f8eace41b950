"""Messaging app configuration."""

from django.apps import AppConfig


class MessagingConfig(AppConfig):
    """Django app config for message templates and the message log."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'messaging'
