from django.urls import path
from .views import cart, cart_clear, cart_checkout, sale_list, sale_detail

urlpatterns = [
    # Cart endpoints
    path('cart/', cart, name='cart'),
    path('cart/clear/', cart_clear, name='cart-clear'),
    path('cart/checkout/', cart_checkout, name='cart-checkout'),

    # Sale endpoints
    path('sales/', sale_list, name='sale-list'),
    path('sales/<uuid:pk>/', sale_detail, name='sale-detail'),
]
