from django.contrib import admin
from .models import Sale


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ['id', 'employee', 'customer_name', 'customer_phone', 'total_amount', 'created_at']
    list_filter = ['created_at']
    search_fields = ['customer_name', 'customer_phone', 'employee__email']
    ordering = ['-created_at']
    readonly_fields = ['id', 'employee', 'customer_name', 'customer_phone', 'total_amount', 'items', 'created_at']

    def has_change_permission(self, request, obj=None):
        return False
