"""Operational endpoints (health and version)."""

from django.conf import settings
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    """Report database reachability and whether the caller has a session."""
    from shop.models import ShopSettings

    return Response({
        'ok': True,
        'db': 'ok' if ShopSettings.objects.exists() else 'empty',
        'session': 'ok' if request.user.is_authenticated else 'none',
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def version(request):
    return Response({
        'version': settings.APP_VERSION,
        'build_id': settings.BUILD_ID,
        'served_at': timezone.now().isoformat(),
    })
