"""
Test suite for the catalog module
Tests: tree assembly, inventory store writes, stock decrement, catalogue and item API
"""
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from ssuniforms.catalog.models import Catalogue, Item, ItemSize
from ssuniforms.catalog.store import InventoryStore, assemble_catalogues
from ssuniforms.core.notifications import DESTRUCTIVE
from ssuniforms.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class AssembleCataloguesTests(TestCase):
    """Test nesting flat rows into the catalogue tree"""

    def test_items_grouped_by_catalogue_and_section(self):
        catalogues = [{'id': 'c1', 'name': 'DPS'}, {'id': 'c2', 'name': 'KV'}]
        items = [
            {'id': 'i1', 'catalogue_id': 'c1', 'section_type': 'summer', 'stock': 1},
            {'id': 'i2', 'catalogue_id': 'c1', 'section_type': 'winter', 'stock': 1},
            {'id': 'i3', 'catalogue_id': 'c2', 'section_type': 'house', 'stock': 1},
        ]
        sizes = [{'id': 's1', 'item_id': 'i1', 'size': 'M'}]

        tree = assemble_catalogues(catalogues, items, sizes)

        self.assertEqual([s['id'] for s in tree[0]['sections']], ['c1-summer', 'c1-winter', 'c1-house', 'c1-other'])
        summer = tree[0]['sections'][0]
        self.assertEqual([i['id'] for i in summer['items']], ['i1'])
        self.assertEqual(summer['items'][0]['sizes'][0]['size'], 'M')
        self.assertEqual(tree[0]['sections'][1]['items'][0]['sizes'], [])
        self.assertEqual(tree[1]['sections'][2]['items'][0]['id'], 'i3')

    def test_section_holds_only_matching_items(self):
        tree = assemble_catalogues(
            [{'id': 'c1'}],
            [{'id': 'i1', 'catalogue_id': 'c1', 'section_type': 'summer'},
             {'id': 'i2', 'catalogue_id': 'c1', 'section_type': 'spring'}],
            [],
        )
        for section in tree[0]['sections']:
            for item in section['items']:
                self.assertEqual(item['section_type'], section['name'])
        self.assertEqual(sum(len(s['items']) for s in tree[0]['sections']), 1)


class InventoryStoreTests(TestCase):
    """Test inventory store reads and writes"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.store = InventoryStore(actor=self.admin)
        self.catalogue = TestDataFactory.create_catalogue(name='DPS')

    def test_fetch_catalogues(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue, stock=4)
        TestDataFactory.create_item_size(item, size='L', stock=2)
        self.assertTrue(self.store.fetch_catalogues())
        self.assertFalse(self.store.loading)
        found = self.store.find_item(item.pk)
        self.assertEqual(found['stock'], 4)
        self.assertEqual(found['sizes'][0]['stock'], 2)
        self.assertEqual(self.store.dashboard_stats['low_stock_count'], 1)

    def test_fetch_failure_keeps_prior_state(self):
        self.store.fetch_catalogues()
        before = self.store.catalogues
        with mock.patch.object(Item.objects, 'order_by', side_effect=RuntimeError('db down')):
            self.assertFalse(self.store.fetch_catalogues())
        self.assertIs(self.store.catalogues, before)
        self.assertFalse(self.store.loading)
        self.assertEqual(self.store.notifications[-1]['description'], 'Failed to fetch catalogues')

    def test_add_update_delete_catalogue(self):
        catalogue_id = self.store.add_catalogue({'name': 'KV', 'description': '', 'image': '', 'order': 2})
        self.assertIsNotNone(catalogue_id)
        self.assertEqual(self.store.notifications[-1]['description'], 'Catalogue added successfully')
        self.assertIn('KV', [c['name'] for c in self.store.catalogues])

        self.assertTrue(self.store.update_catalogue(catalogue_id, {'name': 'KV 2'}))
        self.assertEqual(Catalogue.objects.get(pk=catalogue_id).name, 'KV 2')

        self.assertTrue(self.store.delete_catalogue(catalogue_id))
        self.assertFalse(Catalogue.objects.filter(pk=catalogue_id).exists())

    def test_update_missing_catalogue_fails(self):
        self.assertFalse(self.store.update_catalogue('00000000-0000-0000-0000-000000000000', {'name': 'X'}))
        self.assertEqual(self.store.notifications[-1]['variant'], DESTRUCTIVE)
        self.assertEqual(self.store.notifications[-1]['description'], 'Failed to update catalogue')

    def test_add_item_with_sizes(self):
        item_id = self.store.add_item({
            'catalogue_id': self.catalogue.pk, 'name': 'Shirt', 'material': 'Cotton',
            'location': 'Rack A', 'stock': 10, 'price': Decimal('300'), 'image': '',
            'section_type': 'summer',
            'sizes': [{'size': 'S', 'price': Decimal('280')}, {'size': 'M', 'price': Decimal('300'), 'stock': 4}],
        })
        self.assertIsNotNone(item_id)
        self.assertEqual(ItemSize.objects.filter(item_id=item_id).count(), 2)
        self.assertEqual(ItemSize.objects.get(item_id=item_id, size='M').stock, 4)

    def test_add_item_rolls_back_when_sizes_fail(self):
        with mock.patch.object(ItemSize.objects, 'bulk_create', side_effect=RuntimeError('insert failed')):
            item_id = self.store.add_item({
                'catalogue_id': self.catalogue.pk, 'name': 'Shirt', 'stock': 10,
                'price': Decimal('300'), 'section_type': 'summer',
                'sizes': [{'size': 'S', 'price': Decimal('280')}],
            })
        self.assertIsNone(item_id)
        self.assertFalse(Item.objects.filter(name='Shirt').exists())
        self.assertEqual(self.store.notifications[-1]['description'], 'Failed to add item')

    def test_update_item_replaces_sizes(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue)
        TestDataFactory.create_item_size(item, size='S')
        TestDataFactory.create_item_size(item, size='M')

        self.assertTrue(self.store.update_item(item.pk, {
            'name': 'Renamed', 'sizes': [{'size': 'XL', 'price': Decimal('150')}],
        }))
        item.refresh_from_db()
        self.assertEqual(item.name, 'Renamed')
        self.assertEqual(list(item.sizes.values_list('size', flat=True)), ['XL'])

    def test_update_item_without_sizes_keeps_them(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue)
        TestDataFactory.create_item_size(item, size='S')
        self.assertTrue(self.store.update_item(item.pk, {'stock': 3}))
        self.assertEqual(item.sizes.count(), 1)

    def test_delete_item(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue)
        self.assertTrue(self.store.delete_item(item.pk))
        self.assertFalse(Item.objects.filter(pk=item.pk).exists())

    def test_update_stock_clamps_at_zero(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue, stock=3)
        self.assertTrue(self.store.update_stock(item.pk, 5))
        item.refresh_from_db()
        self.assertEqual(item.stock, 0)

    def test_update_stock_rejects_negative_decrement(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue, stock=5)
        self.assertFalse(self.store.update_stock(item.pk, -10))
        item.refresh_from_db()
        self.assertEqual(item.stock, 5)

    def test_update_stock_decrements_tracked_size(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue, stock=10)
        size = TestDataFactory.create_item_size(item, size='M', stock=4)
        untracked = TestDataFactory.create_item_size(item, size='L', stock=None)
        self.store.update_stock(item.pk, 2, size='M')
        item.refresh_from_db()
        size.refresh_from_db()
        untracked.refresh_from_db()
        self.assertEqual(item.stock, 8)
        self.assertEqual(size.stock, 2)
        self.assertIsNone(untracked.stock)

    def test_dashboard_stats_recomputed_after_fetch(self):
        for stock in [2, 10, 0, 5]:
            TestDataFactory.create_item(catalogue=self.catalogue, stock=stock, price=Decimal('100'))
        self.store.fetch_catalogues()
        self.assertEqual(self.store.dashboard_stats['low_stock_count'], 3)
        self.assertEqual(self.store.dashboard_stats['total_stock_value'], Decimal('1700'))
        self.assertEqual(len(self.store.low_stock_items), 3)


class CatalogueAPITests(TestCase):
    """Test catalogue endpoints"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.staff = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()

    def test_public_tree(self):
        catalogue = TestDataFactory.create_catalogue(name='DPS')
        TestDataFactory.create_item(catalogue=catalogue, section_type='winter')
        response = APIClient().get('/api/v1/catalogues/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['name'], 'DPS')
        self.assertEqual(len(response.data[0]['sections']), 4)
        self.assertEqual(len(response.data[0]['sections'][1]['items']), 1)

    def test_tree_cache_invalidated_on_write(self):
        TestDataFactory.create_catalogue(name='First')
        self.assertEqual(len(APIClient().get('/api/v1/catalogues/').data), 1)
        TestDataFactory.create_catalogue(name='Second')
        self.assertEqual(len(APIClient().get('/api/v1/catalogues/').data), 2)

    def test_create_catalogue_as_admin(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/catalogues/', {'name': 'KV', 'order': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['catalogue']['name'], 'KV')
        self.assertEqual(response.data['notifications'][0]['description'], 'Catalogue added successfully')

    def test_create_catalogue_as_staff_is_forbidden(self):
        self.client.authenticate_user(self.staff)
        response = self.client.post('/api/v1/catalogues/', {'name': 'KV'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_catalogue_anonymous_is_rejected(self):
        response = APIClient().post('/api/v1/catalogues/', {'name': 'KV'}, format='json')
        self.assertIn(response.status_code, [status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN])

    def test_update_and_delete_catalogue(self):
        catalogue = TestDataFactory.create_catalogue(name='Old')
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/catalogues/{catalogue.pk}/', {'name': 'New'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['catalogue']['name'], 'New')

        response = self.client.delete(f'/api/v1/catalogues/{catalogue.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Catalogue.objects.filter(pk=catalogue.pk).exists())

    def test_catalogue_detail_returns_tree_node(self):
        catalogue = TestDataFactory.create_catalogue(name='DPS')
        response = APIClient().get(f'/api/v1/catalogues/{catalogue.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'DPS')
        self.assertIn('sections', response.data)


class ItemAPITests(TestCase):
    """Test item endpoints"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.catalogue = TestDataFactory.create_catalogue(name='DPS')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def item_payload(self, **overrides):
        payload = {
            'catalogue_id': str(self.catalogue.pk),
            'name': 'Shirt',
            'material': 'Cotton',
            'location': 'Rack A',
            'stock': 12,
            'price': '350.00',
            'image': '',
            'section_type': 'summer',
            'sizes': [{'size': '32', 'price': '340.00', 'stock': 3}],
        }
        payload.update(overrides)
        return payload

    def test_create_item(self):
        response = self.client.post('/api/v1/items/', self.item_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['item']['name'], 'Shirt')
        self.assertEqual(len(response.data['item']['sizes']), 1)
        self.assertEqual(response.data['item']['sizes'][0]['stock'], 3)

    def test_invalid_item_is_rejected_before_write(self):
        for overrides in [{'section_type': 'spring'}, {'stock': -1}, {'price': '-5'}]:
            response = self.client.post('/api/v1/items/', self.item_payload(**overrides), format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Item.objects.exists())

    def test_duplicate_size_labels_rejected(self):
        sizes = [{'size': 'M', 'price': '100'}, {'size': 'M', 'price': '110'}]
        response = self.client.post('/api/v1/items/', self.item_payload(sizes=sizes), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_item_replaces_sizes(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue)
        TestDataFactory.create_item_size(item, size='S')
        response = self.client.patch(f'/api/v1/items/{item.pk}/', {
            'sizes': [{'size': 'L', 'price': '200'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['size'] for s in response.data['item']['sizes']], ['L'])

    def test_filter_items(self):
        TestDataFactory.create_item(catalogue=self.catalogue, name='Blazer', stock=2, section_type='winter')
        TestDataFactory.create_item(catalogue=self.catalogue, name='Shirt', stock=20, section_type='summer')
        other = TestDataFactory.create_catalogue(name='KV')
        TestDataFactory.create_item(catalogue=other, name='Tie', stock=8)

        client = APIClient()
        self.assertEqual(len(client.get('/api/v1/items/', {'catalogue': str(self.catalogue.pk)}).data), 2)
        self.assertEqual(len(client.get('/api/v1/items/', {'section': 'winter'}).data), 1)
        self.assertEqual(len(client.get('/api/v1/items/', {'search': 'blaz'}).data), 1)
        self.assertEqual(len(client.get('/api/v1/items/', {'search': 'KV'}).data), 1)
        self.assertEqual(len(client.get('/api/v1/items/', {'max_stock': 8}).data), 2)
        self.assertEqual(len(client.get('/api/v1/items/', {'low_stock': 'true'}).data), 1)

    def test_low_stock_filter_includes_tracked_size(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue, stock=50)
        TestDataFactory.create_item_size(item, size='M', stock=1)
        response = APIClient().get('/api/v1/items/', {'low_stock': 'true'})
        self.assertEqual(len(response.data), 1)

    def test_stock_decrement_endpoint(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue, stock=2)
        response = self.client.post(f'/api/v1/items/{item.pk}/stock/', {'decrement_by': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 0)

    def test_delete_item(self):
        item = TestDataFactory.create_item(catalogue=self.catalogue)
        response = self.client.delete(f'/api/v1/items/{item.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Item.objects.filter(pk=item.pk).exists())
