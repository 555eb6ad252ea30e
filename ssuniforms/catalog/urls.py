from django.urls import path
from .views import (
    catalogue_list_create, catalogue_detail,
    item_list_create, item_detail, item_stock_decrement,
)

urlpatterns = [
    # Catalogue endpoints
    path('catalogues/', catalogue_list_create, name='catalogue-list-create'),
    path('catalogues/<uuid:pk>/', catalogue_detail, name='catalogue-detail'),

    # Item endpoints
    path('items/', item_list_create, name='item-list-create'),
    path('items/<uuid:pk>/', item_detail, name='item-detail'),
    path('items/<uuid:pk>/stock/', item_stock_decrement, name='item-stock-decrement'),
]
