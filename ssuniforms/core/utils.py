"""Helpers shared by the API views that drive the stores"""
from rest_framework import status
from rest_framework.response import Response


def store_failure_response(store, error):
    """500 response carrying the store's notifications"""
    return Response({
        'error': error,
        'notifications': store.notifier.drain(),
    }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def store_success_response(store, key, data, status_code=status.HTTP_200_OK):
    return Response({
        key: data,
        'notifications': store.notifier.drain(),
    }, status=status_code)
