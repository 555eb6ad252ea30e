import django_filters
from django.db.models import Q, Exists, OuterRef
from .models import Item, ItemSize


class ItemFilter(django_filters.FilterSet):
    """Filter for Item model using django-filter"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    catalogue = django_filters.UUIDFilter(field_name='catalogue_id', lookup_expr='exact')
    section = django_filters.ChoiceFilter(field_name='section_type', choices=Item.SECTION_CHOICES)
    max_stock = django_filters.NumberFilter(field_name='stock', lookup_expr='lte', label='Stock at most')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = Item
        fields = ['search', 'catalogue', 'section', 'max_stock', 'low_stock']

    def filter_search(self, queryset, name, value):
        """Search item name, material, location and catalogue name"""
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(material__icontains=value) |
            Q(location__icontains=value) |
            Q(catalogue__name__icontains=value)
        )

    def filter_low_stock(self, queryset, name, value):
        """Items below the dashboard low-stock level, or a tracked size below it"""
        from ssuniforms.reports.analytics import LOW_STOCK_THRESHOLD

        low_size = ItemSize.objects.filter(
            item_id=OuterRef('pk'), stock__isnull=False, stock__lt=LOW_STOCK_THRESHOLD
        )
        condition = Q(stock__lt=LOW_STOCK_THRESHOLD) | Q(Exists(low_size))
        if value:
            return queryset.filter(condition)
        if value is False:
            return queryset.exclude(condition)
        return queryset
