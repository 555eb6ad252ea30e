import logging
from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from ssuniforms.catalog.store import InventoryStore
from ssuniforms.core.permissions import IsAdminRole
from ssuniforms.core.utils import store_failure_response
from .analytics import BEST_SELLER_METRICS
from .low_stock import build_low_stock_report

logger = logging.getLogger('ssuniforms.reports')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def dashboard(request):
    """Dashboard stats, sales analytics, best sellers and low-stock items"""
    metric = request.query_params.get('metric') or settings.BEST_SELLER_METRIC
    if metric not in BEST_SELLER_METRICS:
        return Response({'metric': [f"Must be one of: {', '.join(BEST_SELLER_METRICS)}"]},
                        status=status.HTTP_400_BAD_REQUEST)

    store = InventoryStore(actor=request.user, best_seller_metric=metric)
    if not store.fetch_all():
        return store_failure_response(store, 'Failed to load dashboard data')

    return Response({
        'dashboard_stats': store.dashboard_stats,
        'sales_analytics': store.sales_analytics,
        'best_sellers': store.best_sellers,
        'low_stock_items': store.low_stock_items,
        'best_seller_metric': metric,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def low_stock(request):
    """Low-stock rows at or below ?threshold= (default from settings)"""
    threshold = request.query_params.get('threshold', settings.LOW_STOCK_DEFAULT_THRESHOLD)
    try:
        threshold = int(threshold)
    except (TypeError, ValueError):
        return Response({'threshold': ['A whole number is required.']}, status=status.HTTP_400_BAD_REQUEST)
    if threshold < 0:
        return Response({'threshold': ['Must be zero or more.']}, status=status.HTTP_400_BAD_REQUEST)

    store = InventoryStore(actor=request.user)
    if not store.fetch_catalogues():
        return store_failure_response(store, 'Failed to fetch catalogues')

    report = build_low_stock_report(
        store.catalogues,
        threshold=threshold,
        catalogue_id=request.query_params.get('catalogue'),
        size=request.query_params.get('size'),
        search=request.query_params.get('search', ''),
    )
    logger.debug(f"Low stock report: {report['count']} rows at threshold {threshold}")
    return Response(report)
