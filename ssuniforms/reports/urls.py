from django.urls import path
from .views import dashboard, low_stock

urlpatterns = [
    path('reports/dashboard/', dashboard, name='report-dashboard'),
    path('reports/low-stock/', low_stock, name='report-low-stock'),
]
