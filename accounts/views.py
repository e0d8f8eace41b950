"""Accounts app views.

Authentication itself is SimpleJWT's; this module only exposes the
signed-in user's identity.
"""

from rest_framework import generics
from rest_framework.permissions import IsAuthenticated

from .serializers import UserSerializer


class MeView(generics.RetrieveUpdateAPIView):
    """Get or update the authenticated user's profile (role is read-only)."""

    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer
    http_method_names = ['get', 'patch', 'head', 'options']

    def get_object(self):
        return self.request.user
