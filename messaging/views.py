"""Messaging API views: compose/preview notifications and manage templates."""

from rest_framework import mixins, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import CanEditTicketsOrReadOnly, IsShopAdminOrReadOnly
from . import services
from .models import MessageTemplate
from .serializers import (
    MessageLogSerializer,
    MessagePreviewSerializer,
    MessageTemplateSerializer,
    SendMessageSerializer,
)
from .templating import PLACEHOLDERS


@api_view(['POST'])
@permission_classes([CanEditTicketsOrReadOnly])
def send_message(request):
    """
    تجهيز رابط واتساب/SMS للعميل وتسجيل الرسالة.

    The response carries the deep link to open on the staff device and the
    log row that was written.
    """
    payload = SendMessageSerializer(data=request.data)
    payload.is_valid(raise_exception=True)
    data = payload.validated_data
    composed = services.compose_message(
        data['invoice_id'],
        data['channel'],
        template_id=data.get('template_id'),
        custom_body=data.get('custom_body', ''),
        user=request.user,
    )
    return Response({
        'url': composed.url,
        'log': MessageLogSerializer(composed.log).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def preview_message(request):
    payload = MessagePreviewSerializer(data=request.data)
    payload.is_valid(raise_exception=True)
    data = payload.validated_data
    body = services.preview_message(
        data['invoice_id'],
        template_id=data.get('template_id'),
        custom_body=data.get('custom_body', ''),
    )
    return Response({'body': body})


class MessageTemplateViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Templates are readable by any signed-in user; only admins edit them."""

    queryset = MessageTemplate.objects.all()
    serializer_class = MessageTemplateSerializer
    permission_classes = [IsShopAdminOrReadOnly]
    pagination_class = None
    filterset_fields = ['channel', 'enabled']
    search_fields = ['code', 'title_ar']

    @action(detail=False, methods=['get'])
    def placeholders(self, request):
        return Response(list(PLACEHOLDERS))
