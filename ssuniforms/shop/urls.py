from django.urls import path
from .views import shop_info

urlpatterns = [
    path('shop/', shop_info, name='shop-info'),
]
