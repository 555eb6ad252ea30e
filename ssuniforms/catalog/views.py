import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from ssuniforms.core.cache_utils import get_catalogue_tree, set_catalogue_tree
from ssuniforms.core.permissions import IsAdminRole, IsAdminRoleOrReadOnly
from ssuniforms.core.utils import store_failure_response, store_success_response
from .filters import ItemFilter
from .models import Catalogue, Item
from .serializers import CatalogueSerializer, ItemSerializer
from .store import InventoryStore

logger = logging.getLogger('ssuniforms.catalog')


def load_catalogue_tree(store):
    """Cached catalogue tree, rebuilt through the store on a miss"""
    tree = get_catalogue_tree()
    if tree is not None:
        return tree
    if not store.fetch_catalogues():
        return None
    set_catalogue_tree(store.catalogues)
    return store.catalogues


# Catalogue views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminRoleOrReadOnly])
def catalogue_list_create(request):
    """Catalogue tree (catalogue -> sections -> items -> sizes) or create a catalogue"""
    store = InventoryStore(actor=request.user)

    if request.method == 'GET':
        tree = load_catalogue_tree(store)
        if tree is None:
            return store_failure_response(store, 'Failed to fetch catalogues')
        return Response(tree)

    serializer = CatalogueSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    catalogue_id = store.add_catalogue(serializer.validated_data)
    if catalogue_id is None:
        return store_failure_response(store, 'Failed to add catalogue')

    catalogue = Catalogue.objects.get(pk=catalogue_id)
    return store_success_response(store, 'catalogue', CatalogueSerializer(catalogue).data, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminRoleOrReadOnly])
def catalogue_detail(request, pk):
    """Retrieve, update or delete a catalogue"""
    catalogue = get_object_or_404(Catalogue, pk=pk)
    store = InventoryStore(actor=request.user)

    if request.method == 'GET':
        tree = load_catalogue_tree(store)
        if tree is None:
            return store_failure_response(store, 'Failed to fetch catalogues')
        node = next((c for c in tree if str(c['id']) == str(catalogue.pk)), None)
        if node is None:
            # Created after the cached tree was built
            return Response(CatalogueSerializer(catalogue).data)
        return Response(node)

    if request.method == 'DELETE':
        if not store.delete_catalogue(catalogue.pk):
            return store_failure_response(store, 'Failed to delete catalogue')
        return store_success_response(store, 'deleted', True)

    serializer = CatalogueSerializer(catalogue, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not store.update_catalogue(catalogue.pk, serializer.validated_data):
        return store_failure_response(store, 'Failed to update catalogue')

    catalogue.refresh_from_db()
    return store_success_response(store, 'catalogue', CatalogueSerializer(catalogue).data)


# Item views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminRoleOrReadOnly])
def item_list_create(request):
    """List items (filterable) or create an item with its sizes"""
    if request.method == 'GET':
        queryset = Item.objects.select_related('catalogue').prefetch_related('sizes').all()
        filterset = ItemFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(ItemSerializer(filterset.qs, many=True).data)

    serializer = ItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    store = InventoryStore(actor=request.user)
    item_id = store.add_item(serializer.to_store_input())
    if item_id is None:
        return store_failure_response(store, 'Failed to add item')

    item = Item.objects.prefetch_related('sizes').get(pk=item_id)
    return store_success_response(store, 'item', ItemSerializer(item).data, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminRoleOrReadOnly])
def item_detail(request, pk):
    """Retrieve, update or delete an item; supplied sizes replace the existing ones"""
    item = get_object_or_404(Item.objects.prefetch_related('sizes'), pk=pk)

    if request.method == 'GET':
        return Response(ItemSerializer(item).data)

    store = InventoryStore(actor=request.user)

    if request.method == 'DELETE':
        if not store.delete_item(item.pk):
            return store_failure_response(store, 'Failed to delete item')
        return store_success_response(store, 'deleted', True)

    serializer = ItemSerializer(item, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not store.update_item(item.pk, serializer.to_store_input()):
        return store_failure_response(store, 'Failed to update item')

    item = Item.objects.prefetch_related('sizes').get(pk=item.pk)
    return store_success_response(store, 'item', ItemSerializer(item).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def item_stock_decrement(request, pk):
    """Decrement an item's stock (never below zero)"""
    item = get_object_or_404(Item, pk=pk)
    try:
        decrement_by = int(request.data.get('decrement_by', 0))
    except (TypeError, ValueError):
        return Response({'decrement_by': ['A whole number is required.']}, status=status.HTTP_400_BAD_REQUEST)
    if decrement_by < 0:
        return Response({'decrement_by': ['Must be zero or more.']}, status=status.HTTP_400_BAD_REQUEST)

    store = InventoryStore(actor=request.user)
    if not store.update_stock(item.pk, decrement_by, size=request.data.get('size')):
        return store_failure_response(store, 'Failed to update stock')

    item.refresh_from_db()
    logger.info(f"User {request.user.pk} decremented stock of item {item.pk} by {decrement_by}")
    return store_success_response(store, 'stock', item.stock)
