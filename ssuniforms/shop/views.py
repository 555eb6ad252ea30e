import logging
from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from ssuniforms.core.notifications import Notifier
from ssuniforms.core.permissions import IsAdminRoleOrReadOnly
from .models import ShopInfo
from .serializers import ShopInfoSerializer

logger = logging.getLogger('ssuniforms.shop')


def shop_payload(shop):
    """Stored shop row (or the built-in defaults) plus hours, socials and map location"""
    if shop is None:
        data = {'id': 'default', **settings.SHOP_DEFAULTS, 'created_at': None}
    else:
        data = dict(ShopInfoSerializer(shop).data)
    return {**data, **settings.SHOP_EXTRAS}


@api_view(['GET', 'PATCH'])
@permission_classes([IsAdminRoleOrReadOnly])
def shop_info(request):
    """Public shop information; admins may edit it"""
    shop = ShopInfo.objects.order_by('created_at').first()

    if request.method == 'GET':
        return Response(shop_payload(shop))

    notifier = Notifier()
    if shop is None:
        # First edit creates the row from the defaults
        defaults = settings.SHOP_DEFAULTS
        shop = ShopInfo(**{**defaults, 'images': list(defaults['images'])})
    serializer = ShopInfoSerializer(shop, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        shop = serializer.save()
    except Exception as e:
        logger.error(f"Error updating shop info: {str(e)}", exc_info=True)
        notifier.error('Error', 'Failed to update shop information')
        return Response({
            'error': 'Failed to update shop information',
            'notifications': notifier.drain(),
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    notifier.success('Success', 'Shop information updated successfully')
    logger.info(f"User {request.user.pk} updated shop information")
    return Response({
        'shop': shop_payload(shop),
        'notifications': notifier.drain(),
    })
