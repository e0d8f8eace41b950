from django.urls import path

from .views import preview_message, send_message

urlpatterns = [
    path('send/', send_message, name='message-send'),
    path('preview/', preview_message, name='message-preview'),
]
