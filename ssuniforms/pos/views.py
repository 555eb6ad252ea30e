import logging
from decimal import Decimal
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db.models import Sum
from django.shortcuts import get_object_or_404

from ssuniforms.catalog.models import Item, ItemSize
from ssuniforms.catalog.serializers import ItemSerializer
from ssuniforms.catalog.store import InventoryStore
from ssuniforms.core.notifications import Notifier
from ssuniforms.core.permissions import IsAdminRole, IsStaffRole
from ssuniforms.core.utils import store_failure_response
from .cart import CartStore
from .filters import SaleFilter
from .models import Sale
from .serializers import (
    SaleSerializer, CartLineInputSerializer, CartQuantitySerializer,
    CartRemoveSerializer, CheckoutSerializer,
)

logger = logging.getLogger('ssuniforms.pos')


def cart_response(cart, status_code=status.HTTP_200_OK):
    return Response({
        **cart.as_dict(),
        'notifications': cart.notifier.drain(),
    }, status=status_code)


def unit_price_for(item, size):
    """Size-variant price when the item has that size, else the item's base price"""
    size_row = ItemSize.objects.filter(item=item, size=size).first()
    return size_row.price if size_row else item.price


# Cart views
@api_view(['GET', 'POST', 'PATCH', 'DELETE'])
@permission_classes([AllowAny])
def cart(request):
    """
    Session cart.
    GET: lines and totals. POST: add {item_id, size, quantity}.
    PATCH: set quantity (<= 0 removes). DELETE: remove {item_id, size}.
    """
    cart_store = CartStore(request.session)

    if request.method == 'GET':
        return cart_response(cart_store)

    if request.method == 'POST':
        serializer = CartLineInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        item = get_object_or_404(Item.objects.prefetch_related('sizes'), pk=data['item_id'])
        cart_store.add_item(ItemSerializer(item).data, data['size'], unit_price_for(item, data['size']), data['quantity'])
        return cart_response(cart_store)

    if request.method == 'PATCH':
        serializer = CartQuantitySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        cart_store.update_quantity(data['item_id'], data['size'], data['quantity'])
        return cart_response(cart_store)

    serializer = CartRemoveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    cart_store.remove_item(data['item_id'], data['size'])
    return cart_response(cart_store)


@api_view(['POST'])
@permission_classes([AllowAny])
def cart_clear(request):
    cart_store = CartStore(request.session)
    cart_store.clear_cart()
    return cart_response(cart_store)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def cart_checkout(request):
    """Record the session cart as a sale, decrement stock, then empty the cart"""
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    notifier = Notifier()
    cart_store = CartStore(request.session, notifier=notifier)
    if not cart_store.items:
        return Response({'error': 'Cart is empty'}, status=status.HTTP_400_BAD_REQUEST)

    store = InventoryStore(actor=request.user, notifier=notifier)
    sale_id = store.add_sale({
        'customer_name': serializer.validated_data['customer_name'],
        'customer_phone': serializer.validated_data.get('customer_phone'),
        'items': cart_store.items,
    })
    if sale_id is None:
        return store_failure_response(store, 'Failed to record sale')

    cart_store.clear_cart()
    sale = Sale.objects.select_related('employee__profile').get(pk=sale_id)
    return Response({
        'sale': SaleSerializer(sale).data,
        'notifications': notifier.drain(),
    }, status=status.HTTP_201_CREATED)


# Sale views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def sale_list(request):
    """Sales newest first, filterable by search, period and employee"""
    queryset = Sale.objects.select_related('employee__profile').order_by('-created_at')
    filterset = SaleFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    queryset = filterset.qs

    count = queryset.count()
    total_revenue = queryset.aggregate(total=Sum('total_amount'))['total'] or Decimal('0')
    average_order_value = (total_revenue / count).quantize(Decimal('0.01')) if count else Decimal('0')
    employees = sorted({employee_id for employee_id in queryset.values_list('employee_id', flat=True)
                        if employee_id is not None})

    return Response({
        'sales': SaleSerializer(queryset, many=True).data,
        'count': count,
        'total_revenue': total_revenue,
        'average_order_value': average_order_value,
        'employees': employees,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def sale_detail(request, pk):
    sale = get_object_or_404(Sale.objects.select_related('employee__profile'), pk=pk)
    return Response(SaleSerializer(sale).data)
