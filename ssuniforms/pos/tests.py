"""
Test suite for the POS module
Tests: cart store, cart API, checkout / sale recording, sales listing
"""
import json
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase, SimpleTestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from ssuniforms.catalog.models import Item
from ssuniforms.catalog.store import InventoryStore
from ssuniforms.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from ssuniforms.pos.cart import CartStore, CART_STORAGE_KEY
from ssuniforms.pos.filters import months_ago
from ssuniforms.pos.models import Sale


SHIRT = {'id': 'shirt-1', 'name': 'School Shirt', 'price': '100.00'}
TROUSERS = {'id': 'trousers-1', 'name': 'Trousers', 'price': '50.00'}


class CartStoreTests(SimpleTestCase):
    """Test cart line merging, quantities, totals and persistence"""

    def setUp(self):
        self.storage = {}
        self.cart = CartStore(self.storage)

    def test_repeat_add_merges_into_one_line(self):
        self.cart.add_item(SHIRT, 'M', 100, 2)
        self.cart.add_item(SHIRT, 'M', 100, 3)
        self.assertEqual(len(self.cart.items), 1)
        self.assertEqual(self.cart.get_item_quantity('shirt-1', 'M'), 5)
        self.assertEqual(self.cart.items[0]['id'], 'shirt-1-M')
        titles = [n['title'] for n in self.cart.notifier.notifications]
        self.assertEqual(titles, ['Added to Cart', 'Cart Updated'])

    def test_different_sizes_are_separate_lines(self):
        self.cart.add_item(SHIRT, 'M', 100)
        self.cart.add_item(SHIRT, 'L', 110)
        self.assertEqual(len(self.cart.items), 2)

    def test_update_quantity_zero_removes_line(self):
        self.cart.add_item(SHIRT, 'M', 100, 2)
        self.cart.update_quantity('shirt-1', 'M', 0)
        self.assertFalse(self.cart.is_in_cart('shirt-1', 'M'))

    def test_update_quantity_negative_removes_line(self):
        self.cart.add_item(SHIRT, 'M', 100, 2)
        self.cart.update_quantity('shirt-1', 'M', -3)
        self.assertEqual(self.cart.items, [])

    def test_update_quantity_overwrites(self):
        self.cart.add_item(SHIRT, 'M', 100, 2)
        self.cart.update_quantity('shirt-1', 'M', 7)
        self.assertEqual(self.cart.get_item_quantity('shirt-1', 'M'), 7)

    def test_remove_absent_line_still_notifies(self):
        self.cart.remove_item('missing', 'M')
        self.assertEqual(self.cart.notifier.notifications[-1]['title'], 'Removed from Cart')

    def test_totals(self):
        self.cart.add_item(SHIRT, 'M', 100, 2)
        self.cart.add_item(TROUSERS, '32', 50, 1)
        self.assertEqual(self.cart.total_items, 3)
        self.assertEqual(self.cart.total_price, Decimal('250'))

    def test_quantity_lookup_for_absent_line(self):
        self.assertEqual(self.cart.get_item_quantity('shirt-1', 'M'), 0)
        self.assertFalse(self.cart.is_in_cart('shirt-1', 'M'))

    def test_clear_cart(self):
        self.cart.add_item(SHIRT, 'M', 100, 2)
        self.cart.clear_cart()
        self.assertEqual(self.cart.items, [])
        self.assertEqual(json.loads(self.storage[CART_STORAGE_KEY]), [])

    def test_reload_reproduces_lines(self):
        self.cart.add_item(SHIRT, 'M', Decimal('100.50'), 2)
        self.cart.add_item(TROUSERS, '32', 50, 1)

        reloaded = CartStore(self.storage)
        original = {(l['item']['id'], l['size'], l['quantity'], l['price']) for l in self.cart.items}
        restored = {(l['item']['id'], l['size'], l['quantity'], l['price']) for l in reloaded.items}
        self.assertEqual(original, restored)

    def test_corrupt_storage_degrades_to_empty(self):
        cart = CartStore({CART_STORAGE_KEY: '{not json'})
        self.assertEqual(cart.items, [])

    def test_failed_write_is_swallowed(self):
        class ReadOnlyStorage(dict):
            def __setitem__(self, key, value):
                raise IOError('storage full')

        cart = CartStore(ReadOnlyStorage())
        cart.add_item(SHIRT, 'M', 100)
        self.assertEqual(cart.total_items, 1)


class CartAPITests(TestCase):
    """Test the session cart endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.item = TestDataFactory.create_item(stock=10, price=Decimal('300.00'))
        TestDataFactory.create_item_size(self.item, size='L', price=Decimal('350.00'))

    def test_add_uses_size_price_when_size_exists(self):
        response = self.client.post('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'L', 'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'][0]['price'], Decimal('350.00'))
        self.assertEqual(response.data['total_price'], Decimal('700.00'))
        self.assertEqual(response.data['notifications'][0]['title'], 'Added to Cart')

    def test_add_uses_base_price_for_unknown_size(self):
        response = self.client.post('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'S'}, format='json')
        self.assertEqual(response.data['items'][0]['price'], Decimal('300.00'))

    def test_cart_persists_across_requests(self):
        self.client.post('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'L', 'quantity': 2}, format='json')
        self.client.post('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'L', 'quantity': 3}, format='json')
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['total_items'], 5)

    def test_patch_and_delete(self):
        self.client.post('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'L'}, format='json')
        response = self.client.patch('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'L', 'quantity': 4}, format='json')
        self.assertEqual(response.data['total_items'], 4)
        response = self.client.delete('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'L'}, format='json')
        self.assertEqual(response.data['items'], [])

    def test_add_rejects_zero_quantity(self):
        response = self.client.post('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'L', 'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_add_unknown_item(self):
        response = self.client.post('/api/v1/cart/', {'item_id': '00000000-0000-0000-0000-000000000000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_clear(self):
        self.client.post('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'L'}, format='json')
        response = self.client.post('/api/v1/cart/clear/')
        self.assertEqual(response.data['items'], [])
        self.assertEqual(response.data['notifications'][0]['title'], 'Cart Cleared')


class SaleRecordingTests(TestCase):
    """Test sale creation through the inventory store"""

    def setUp(self):
        self.staff = TestDataFactory.create_user()
        self.shirt = TestDataFactory.create_item(name='Shirt', stock=10, price=Decimal('200'))
        self.tie = TestDataFactory.create_item(name='Tie', stock=2, price=Decimal('50'))

    def cart_lines(self):
        return [
            {'id': f'{self.shirt.pk}-M', 'item': {'id': str(self.shirt.pk), 'name': 'Shirt'},
             'size': 'M', 'price': Decimal('200'), 'quantity': 2},
            {'id': f'{self.tie.pk}-Standard', 'item': {'id': str(self.tie.pk), 'name': 'Tie'},
             'size': 'Standard', 'price': Decimal('50'), 'quantity': 3},
        ]

    def test_sale_total_and_snapshot(self):
        store = InventoryStore(actor=self.staff)
        sale_id = store.add_sale({'customer_name': 'Asha', 'items': self.cart_lines()})
        self.assertIsNotNone(sale_id)

        sale = Sale.objects.get(pk=sale_id)
        self.assertEqual(sale.total_amount, Decimal('550'))
        self.assertEqual(sale.employee, self.staff)
        self.assertEqual(sale.items[0]['name'], 'Shirt')
        self.assertEqual(sale.items[0]['item_id'], str(self.shirt.pk))
        self.assertTrue(store.notifications[-1]['description'].startswith('Sale recorded successfully. Total: ₹550'))

        # Later price changes do not touch the recorded sale
        Item.objects.filter(pk=self.shirt.pk).update(price=Decimal('999'))
        sale.refresh_from_db()
        self.assertEqual(sale.total_amount, Decimal('550'))
        self.assertEqual(Decimal(str(sale.items[0]['price'])), Decimal('200'))

    def test_sale_decrements_stock_clamped(self):
        store = InventoryStore(actor=self.staff)
        store.add_sale({'customer_name': 'Asha', 'items': self.cart_lines()})
        self.shirt.refresh_from_db()
        self.tie.refresh_from_db()
        self.assertEqual(self.shirt.stock, 8)
        self.assertEqual(self.tie.stock, 0)
        self.assertEqual(len(store.sales), 1)

    def test_sale_requires_authenticated_actor(self):
        store = InventoryStore(actor=None)
        self.assertIsNone(store.add_sale({'items': self.cart_lines()}))
        self.assertEqual(store.notifications[-1]['description'], 'User not authenticated')
        self.assertFalse(Sale.objects.exists())

    def test_failed_decrement_rolls_back_sale(self):
        real_decrement = InventoryStore._decrement_stock
        calls = []

        def fail_second_line(store, item_id, decrement_by, size=None):
            calls.append(item_id)
            if len(calls) == 2:
                raise RuntimeError('stock update failed')
            return real_decrement(store, item_id, decrement_by, size=size)

        store = InventoryStore(actor=self.staff)
        with mock.patch.object(InventoryStore, '_decrement_stock', autospec=True, side_effect=fail_second_line):
            self.assertIsNone(store.add_sale({'customer_name': 'Asha', 'items': self.cart_lines()}))

        self.assertEqual(len(calls), 2)
        self.assertFalse(Sale.objects.exists())
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.stock, 10)
        self.assertEqual(store.notifications[-1]['description'], 'Failed to record sale')


class CheckoutAPITests(TestCase):
    """Test checkout of the session cart"""

    def setUp(self):
        self.staff = TestDataFactory.create_user()
        self.item = TestDataFactory.create_item(stock=5, price=Decimal('250'))
        self.client = AuthenticatedAPIClient()

    def test_checkout_records_sale_and_clears_cart(self):
        self.client.authenticate_user(self.staff)
        self.client.post('/api/v1/cart/', {'item_id': str(self.item.pk), 'size': 'M', 'quantity': 2}, format='json')
        response = self.client.post('/api/v1/cart/checkout/', {'customer_name': 'Ravi', 'customer_phone': '9876543210'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(str(response.data['sale']['total_amount'])), Decimal('500'))
        titles = [n['title'] for n in response.data['notifications']]
        self.assertIn('Sale Complete', titles)

        self.item.refresh_from_db()
        self.assertEqual(self.item.stock, 3)
        self.assertEqual(self.client.get('/api/v1/cart/').data['items'], [])

    def test_checkout_requires_customer_name(self):
        self.client.authenticate_user(self.staff)
        self.client.post('/api/v1/cart/', {'item_id': str(self.item.pk)}, format='json')
        response = self.client.post('/api/v1/cart/checkout/', {'customer_name': '  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Sale.objects.exists())

    def test_checkout_empty_cart(self):
        self.client.authenticate_user(self.staff)
        response = self.client.post('/api/v1/cart/checkout/', {'customer_name': 'Ravi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_checkout_requires_sign_in(self):
        response = self.client.post('/api/v1/cart/checkout/', {'customer_name': 'Ravi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class SaleListTests(TestCase):
    """Test the admin sales listing"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.staff = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

        line = {'id': 'x-M', 'item_id': 'x', 'name': 'Shirt', 'size': 'M', 'price': '100', 'quantity': 1}
        self.recent = TestDataFactory.create_sale(self.staff, [line], customer_name='Asha Verma', customer_phone='9811111111')
        self.old = TestDataFactory.create_sale(self.admin, [{**line, 'quantity': 3}], customer_name='Ravi')
        Sale.objects.filter(pk=self.old.pk).update(created_at=timezone.now() - timedelta(days=40))

    def test_list_newest_first_with_totals(self):
        response = self.client.get('/api/v1/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(str(response.data['sales'][0]['id']), str(self.recent.pk))
        self.assertEqual(response.data['total_revenue'], Decimal('400'))
        self.assertEqual(response.data['average_order_value'], Decimal('200.00'))
        self.assertEqual(response.data['employees'], sorted([self.admin.pk, self.staff.pk]))

    def test_search(self):
        self.assertEqual(self.client.get('/api/v1/sales/', {'search': 'asha'}).data['count'], 1)
        self.assertEqual(self.client.get('/api/v1/sales/', {'search': '98111'}).data['count'], 1)
        self.assertEqual(self.client.get('/api/v1/sales/', {'search': str(self.old.pk)}).data['count'], 1)

    def test_period_and_employee(self):
        self.assertEqual(self.client.get('/api/v1/sales/', {'period': 'week'}).data['count'], 1)
        self.assertEqual(self.client.get('/api/v1/sales/', {'period': 'year'}).data['count'], 2)
        self.assertEqual(self.client.get('/api/v1/sales/', {'employee': self.staff.pk}).data['count'], 1)

    def test_invalid_period(self):
        response = self.client.get('/api/v1/sales/', {'period': 'decade'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_staff_cannot_list_sales(self):
        self.client.authenticate_user(self.staff)
        self.assertEqual(self.client.get('/api/v1/sales/').status_code, status.HTTP_403_FORBIDDEN)

    def test_sale_detail(self):
        response = self.client.get(f'/api/v1/sales/{self.recent.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['customer_name'], 'Asha Verma')

    def test_months_ago_clamps_day(self):
        value = timezone.now().replace(year=2025, month=3, day=31)
        self.assertEqual(months_ago(value, 1).day, 28)
        self.assertEqual(months_ago(value, 12).year, 2024)
