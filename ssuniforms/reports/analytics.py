"""
Dashboard statistics and sales analytics.

Pure functions over the assembled catalogue tree and the sales list as held
by the inventory store. Sale `created_at` values may be datetimes or ISO
strings.
"""
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from django.utils.dateparse import parse_datetime

# Dashboard low-stock signal; independent of the low-stock report threshold
LOW_STOCK_THRESHOLD = 6
BEST_SELLER_LIMIT = 5
RECENT_SALES_LIMIT = 10

METRIC_STOCK = 'stock'
METRIC_UNITS_SOLD = 'units_sold'
BEST_SELLER_METRICS = (METRIC_STOCK, METRIC_UNITS_SOLD)


def flatten_items(catalogues):
    """Every item across every catalogue and section, in tree order"""
    return [
        item
        for catalogue in catalogues
        for section in catalogue['sections']
        for item in section['items']
    ]


def _as_decimal(value):
    if value is None:
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _sale_time(sale):
    created_at = sale['created_at']
    if isinstance(created_at, str):
        created_at = parse_datetime(created_at)
    if created_at is None:
        return None
    if timezone.is_naive(created_at):
        created_at = timezone.make_aware(created_at)
    return timezone.localtime(created_at)


def _revenue(sales):
    return sum((_as_decimal(sale['total_amount']) for sale in sales), Decimal('0'))


def units_sold_by_item(sales, items):
    """
    Units sold per item id, from sale snapshots.

    Older snapshots without `item_id` are matched on the "<item_id>-<size>"
    line id.
    """
    known_ids = [str(item['id']) for item in items]
    units = {}
    for sale in sales:
        for line in sale.get('items') or []:
            item_id = line.get('item_id')
            if not item_id:
                line_id = str(line.get('id', ''))
                item_id = next((i for i in known_ids if line_id.startswith(f"{i}-")), None)
            if not item_id:
                continue
            units[str(item_id)] = units.get(str(item_id), 0) + int(line.get('quantity', 0))
    return units


def best_sellers(items, sales, metric=METRIC_STOCK, limit=BEST_SELLER_LIMIT):
    """
    Top items by the configured metric.

    'stock' ranks by current stock, highest first. That is a stand-in rather
    than sales velocity and is kept as the default for compatibility.
    'units_sold' ranks by units in sale snapshots; unsold items are left out.
    """
    if metric == METRIC_UNITS_SOLD:
        units = units_sold_by_item(sales, items)
        ranked = [
            {**item, 'units_sold': units[str(item['id'])]}
            for item in items
            if units.get(str(item['id']), 0) > 0
        ]
        ranked.sort(key=lambda item: item['units_sold'], reverse=True)
        return ranked[:limit]

    if metric != METRIC_STOCK:
        raise ValueError(f"Unknown best seller metric: {metric}")
    return sorted(items, key=lambda item: item['stock'], reverse=True)[:limit]


def calculate_dashboard_stats(catalogues, sales, now=None, best_seller_metric=METRIC_STOCK):
    """
    Recompute every dashboard figure.

    Returns a dict with `dashboard_stats`, `sales_analytics`,
    `best_sellers` and `low_stock_items`.
    """
    now = timezone.localtime(now)
    items = flatten_items(catalogues)

    low_stock_items = [item for item in items if item['stock'] < LOW_STOCK_THRESHOLD]

    today = now.date()
    week_start = now - timedelta(days=7)
    daily, weekly, monthly, yearly = [], [], [], []
    for sale in sales:
        created_at = _sale_time(sale)
        if created_at is None:
            continue
        if created_at.date() == today:
            daily.append(sale)
        if week_start <= created_at <= now:
            weekly.append(sale)
        if created_at.year == now.year:
            yearly.append(sale)
            if created_at.month == now.month:
                monthly.append(sale)

    yearly_revenue = _revenue(yearly)
    top_items = best_sellers(items, sales, metric=best_seller_metric)

    dashboard_stats = {
        'total_items': len(items),
        'total_stock': sum(item['stock'] for item in items),
        'total_stock_value': sum(
            (item['stock'] * _as_decimal(item['price']) for item in items), Decimal('0')
        ),
        'low_stock_count': len(low_stock_items),
        'sales_count': len(sales),
        'revenue': yearly_revenue,
    }

    sales_analytics = {
        'daily_sales': _revenue(daily),
        'weekly_sales': _revenue(weekly),
        'monthly_sales': _revenue(monthly),
        'yearly_sales': yearly_revenue,
        'top_selling_items': top_items,
        'recent_sales': list(sales[:RECENT_SALES_LIMIT]),
    }

    return {
        'dashboard_stats': dashboard_stats,
        'sales_analytics': sales_analytics,
        'best_sellers': top_items,
        'low_stock_items': low_stock_items,
    }
