"""
Test suite for the reports module
Tests: dashboard statistics, best sellers, low-stock report and endpoints
"""
from datetime import datetime, timedelta
from decimal import Decimal

from django.test import TestCase, SimpleTestCase, override_settings
from django.utils import timezone
from rest_framework import status

from ssuniforms.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from ssuniforms.reports.analytics import calculate_dashboard_stats, best_sellers, units_sold_by_item
from ssuniforms.reports.low_stock import build_low_stock_report, stock_severity, progress_value


def make_tree(items, catalogue_id='c1', catalogue_name='DPS'):
    """One catalogue with every item in the summer section"""
    return [{
        'id': catalogue_id,
        'name': catalogue_name,
        'sections': [
            {'id': f'{catalogue_id}-summer', 'name': 'summer', 'items': items},
            {'id': f'{catalogue_id}-winter', 'name': 'winter', 'items': []},
            {'id': f'{catalogue_id}-house', 'name': 'house', 'items': []},
            {'id': f'{catalogue_id}-other', 'name': 'other', 'items': []},
        ],
    }]


def make_item(item_id, stock, price=100, name=None, location='Rack A', sizes=None):
    return {
        'id': item_id,
        'name': name or f'Item {item_id}',
        'location': location,
        'stock': stock,
        'price': Decimal(str(price)),
        'sizes': sizes or [],
    }


class DashboardStatsTests(SimpleTestCase):
    """Test dashboard aggregation"""

    def setUp(self):
        self.now = timezone.make_aware(datetime(2025, 6, 15, 12, 0))

    def test_stock_figures(self):
        tree = make_tree([make_item(str(i), stock) for i, stock in enumerate([2, 10, 0, 5])])
        stats = calculate_dashboard_stats(tree, [], now=self.now)['dashboard_stats']
        self.assertEqual(stats['total_items'], 4)
        self.assertEqual(stats['total_stock'], 17)
        self.assertEqual(stats['low_stock_count'], 3)
        self.assertEqual(stats['total_stock_value'], Decimal('1700'))

    def test_low_stock_items_keep_natural_order(self):
        tree = make_tree([make_item('a', 5), make_item('b', 9), make_item('c', 0)])
        result = calculate_dashboard_stats(tree, [], now=self.now)
        self.assertEqual([i['id'] for i in result['low_stock_items']], ['a', 'c'])

    def test_revenue_windows(self):
        sales = [
            {'total_amount': Decimal('100'), 'created_at': self.now - timedelta(hours=1), 'items': []},
            {'total_amount': Decimal('200'), 'created_at': self.now - timedelta(days=3), 'items': []},
            {'total_amount': Decimal('400'), 'created_at': self.now - timedelta(days=20), 'items': []},
            {'total_amount': Decimal('800'), 'created_at': (self.now - timedelta(days=100)).isoformat(), 'items': []},
            {'total_amount': Decimal('1600'), 'created_at': self.now - timedelta(days=400), 'items': []},
        ]
        result = calculate_dashboard_stats([], sales, now=self.now)
        analytics = result['sales_analytics']
        self.assertEqual(analytics['daily_sales'], Decimal('100'))
        self.assertEqual(analytics['weekly_sales'], Decimal('300'))
        self.assertEqual(analytics['monthly_sales'], Decimal('300'))
        self.assertEqual(analytics['yearly_sales'], Decimal('1500'))
        self.assertEqual(result['dashboard_stats']['revenue'], Decimal('1500'))
        self.assertEqual(result['dashboard_stats']['sales_count'], 5)

    def test_recent_sales_capped_at_ten(self):
        sales = [{'total_amount': 1, 'created_at': self.now, 'items': []} for _ in range(12)]
        result = calculate_dashboard_stats([], sales, now=self.now)
        self.assertEqual(len(result['sales_analytics']['recent_sales']), 10)


class BestSellerTests(SimpleTestCase):
    """Test both best-seller metrics"""

    def setUp(self):
        self.items = [make_item(str(i), stock) for i, stock in enumerate([3, 50, 7, 50, 1, 20])]

    def test_stock_metric_ranks_by_current_stock(self):
        top = best_sellers(self.items, [], metric='stock')
        self.assertEqual([i['id'] for i in top], ['1', '3', '5', '2', '0'])

    def test_units_sold_metric(self):
        sales = [
            {'items': [{'id': '4-M', 'item_id': '4', 'quantity': 5}, {'id': '2-S', 'item_id': '2', 'quantity': 1}]},
            {'items': [{'id': '2-L', 'quantity': 2}]},
        ]
        self.assertEqual(units_sold_by_item(sales, self.items), {'4': 5, '2': 3})
        top = best_sellers(self.items, sales, metric='units_sold')
        self.assertEqual([(i['id'], i['units_sold']) for i in top], [('4', 5), ('2', 3)])

    def test_unknown_metric(self):
        with self.assertRaises(ValueError):
            best_sellers(self.items, [], metric='velocity')


class LowStockReportTests(SimpleTestCase):
    """Test low-stock rows, filters and severity bands"""

    def test_severity_bands(self):
        self.assertEqual(stock_severity(0), 'out')
        self.assertEqual(stock_severity(1), 'critical')
        self.assertEqual(stock_severity(3), 'critical')
        self.assertEqual(stock_severity(4), 'very_low')
        self.assertEqual(stock_severity(5), 'very_low')
        self.assertEqual(stock_severity(6), 'low')
        self.assertEqual(stock_severity(10), 'low')
        self.assertEqual(stock_severity(11), 'normal')
        self.assertEqual(stock_severity(25), 'normal')

    def test_progress_value(self):
        self.assertEqual(progress_value(5), 25)
        self.assertEqual(progress_value(40), 100)

    def test_rows_for_items_and_tracked_sizes(self):
        sizes = [
            {'size': 'M', 'price': Decimal('120'), 'stock': 2},
            {'size': 'L', 'price': Decimal('130'), 'stock': 30},
            {'size': 'XL', 'price': Decimal('140'), 'stock': None},
        ]
        tree = make_tree([make_item('a', 8, sizes=sizes), make_item('b', 50)])
        report = build_low_stock_report(tree, threshold=10)

        self.assertEqual([(r['item_id'], r['size']) for r in report['items']], [('a', 'Standard'), ('a', 'M')])
        self.assertEqual(report['items'][1]['price'], Decimal('120'))
        self.assertEqual(report['items'][1]['item_type'], 'size_variant')
        self.assertEqual(report['sizes'], ['M', 'Standard'])
        self.assertEqual(report['summary']['total_units'], 10)
        self.assertEqual(report['summary']['critical'], 1)

    def test_threshold_is_inclusive(self):
        tree = make_tree([make_item('a', 10), make_item('b', 11)])
        self.assertEqual(build_low_stock_report(tree, threshold=10)['count'], 1)

    def test_filters(self):
        tree = (
            make_tree([make_item('a', 1, name='Shirt', location='Rack A')], 'c1', 'DPS')
            + make_tree([make_item('b', 2, name='Tie', location='Godown')], 'c2', 'KV')
        )
        self.assertEqual(build_low_stock_report(tree, catalogue_id='c2')['count'], 1)
        self.assertEqual(build_low_stock_report(tree, search='shirt')['count'], 1)
        self.assertEqual(build_low_stock_report(tree, search='kv')['count'], 1)
        self.assertEqual(build_low_stock_report(tree, search='godown')['count'], 1)
        self.assertEqual(build_low_stock_report(tree, size='Standard')['count'], 2)
        self.assertEqual(build_low_stock_report(tree, size='M')['count'], 0)
        self.assertEqual(build_low_stock_report(tree, catalogue_id='all')['count'], 2)


class ReportsAPITests(TestCase):
    """Test report endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        catalogue = TestDataFactory.create_catalogue(name='DPS')
        for stock in [2, 10, 0, 5]:
            TestDataFactory.create_item(catalogue=catalogue, stock=stock, price=Decimal('100'))

    def test_dashboard(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['dashboard_stats']['low_stock_count'], 3)
        self.assertEqual(response.data['dashboard_stats']['total_stock_value'], Decimal('1700'))
        self.assertEqual(len(response.data['best_sellers']), 4)
        self.assertEqual(response.data['best_seller_metric'], 'stock')

    @override_settings(BEST_SELLER_METRIC='units_sold')
    def test_dashboard_units_sold_metric(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['best_seller_metric'], 'units_sold')
        self.assertEqual(response.data['best_sellers'], [])

    def test_dashboard_rejects_unknown_metric(self):
        response = self.client.get('/api/v1/reports/dashboard/', {'metric': 'velocity'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_low_stock(self):
        response = self.client.get('/api/v1/reports/low-stock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['threshold'], 10)
        self.assertEqual(response.data['count'], 4)

        response = self.client.get('/api/v1/reports/low-stock/', {'threshold': 3})
        self.assertEqual(response.data['count'], 2)

    def test_low_stock_invalid_threshold(self):
        response = self.client.get('/api/v1/reports/low-stock/', {'threshold': 'many'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reports_require_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        self.assertEqual(self.client.get('/api/v1/reports/dashboard/').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get('/api/v1/reports/low-stock/').status_code, status.HTTP_403_FORBIDDEN)
