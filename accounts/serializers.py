"""Serializers for the accounts app."""

from django.contrib.auth import get_user_model
from rest_framework import serializers


User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Identity of the signed-in user as used for audit attribution."""

    role_display = serializers.ReadOnlyField(source='get_role_display')

    class Meta:
        model = User
        fields = ('id', 'username', 'email', 'first_name', 'last_name', 'role', 'role_display')
        read_only_fields = ('username', 'role')
