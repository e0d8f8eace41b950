"""Shop settings API.

``GET`` is open to any signed-in user; ``PUT`` creates or replaces the row and
is reserved for shop admins.
"""

import structlog
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from accounts.permissions import IsShopAdminOrReadOnly
from .models import ShopSettings
from .serializers import ShopSettingsSerializer

logger = structlog.get_logger(__name__)


@api_view(['GET', 'PUT'])
@permission_classes([IsShopAdminOrReadOnly])
def shop_settings(request):
    current = ShopSettings.load()

    if request.method == 'GET':
        data = ShopSettingsSerializer(current).data if current else None
        return Response({'settings': data})

    serializer = ShopSettingsSerializer(current, data=request.data)
    serializer.is_valid(raise_exception=True)
    saved = serializer.save()
    logger.info('shop_settings_saved', user_id=request.user.pk, created=current is None)
    return Response({'settings': ShopSettingsSerializer(saved).data})
