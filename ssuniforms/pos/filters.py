import calendar
import uuid
from datetime import timedelta

import django_filters
from django.db.models import Q
from django.utils import timezone
from .models import Sale


def months_ago(value, months):
    """Same wall-clock time `months` calendar months earlier (day clamped)"""
    month_index = value.month - 1 - months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def period_start(period, now=None):
    """Start of a sales reporting period, or None for 'all'"""
    now = timezone.localtime(now)
    if period == 'today':
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == 'week':
        return now - timedelta(days=7)
    if period == 'month':
        return months_ago(now, 1)
    if period == 'year':
        return months_ago(now, 12)
    return None


class SaleFilter(django_filters.FilterSet):
    """Filter for Sale model using django-filter"""

    PERIOD_CHOICES = [
        ('all', 'All time'),
        ('today', 'Today'),
        ('week', 'Last 7 days'),
        ('month', 'Last month'),
        ('year', 'Last year'),
    ]

    search = django_filters.CharFilter(method='filter_search', label='Search')
    period = django_filters.ChoiceFilter(choices=PERIOD_CHOICES, method='filter_period', label='Period')
    employee = django_filters.NumberFilter(field_name='employee_id', lookup_expr='exact')

    class Meta:
        model = Sale
        fields = ['search', 'period', 'employee']

    def filter_search(self, queryset, name, value):
        """Customer name (case-insensitive), phone, or sale id"""
        value = value.strip()
        if not value:
            return queryset
        condition = Q(customer_name__icontains=value) | Q(customer_phone__icontains=value)
        try:
            condition |= Q(id=uuid.UUID(value))
        except ValueError:
            pass
        return queryset.filter(condition)

    def filter_period(self, queryset, name, value):
        start = period_start(value)
        if start is None:
            return queryset
        return queryset.filter(created_at__gte=start)
