"""
Catalogue / inventory store.

Holds an in-memory view of catalogues -> sections -> items -> sizes, writes
through to the database and refetches after every change, and keeps the
derived dashboard figures current.

Every database operation is wrapped: failures are logged, reported as an
error notification, and answered with a falsy value (None / False). Callers
never see the exception.
"""
import json
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.db.models.functions import Greatest

from ssuniforms.core.cache_utils import invalidate_catalogue_tree
from ssuniforms.core.formatters import format_price
from ssuniforms.core.notifications import Notifier
from .models import Catalogue, Item, ItemSize

logger = logging.getLogger('ssuniforms.catalog')

CATALOGUE_FIELDS = ['id', 'name', 'description', 'image', 'order', 'created_at']
ITEM_FIELDS = ['id', 'catalogue_id', 'name', 'material', 'location', 'stock', 'price',
               'image', 'section_type', 'created_at']
SIZE_FIELDS = ['id', 'item_id', 'size', 'price', 'stock', 'created_at']
SALE_FIELDS = ['id', 'employee_id', 'customer_name', 'customer_phone', 'total_amount', 'items', 'created_at']

CATALOGUE_INPUT_FIELDS = ['name', 'description', 'image', 'order']
ITEM_INPUT_FIELDS = ['catalogue_id', 'name', 'material', 'location', 'stock', 'price', 'image', 'section_type']


def assemble_catalogues(catalogue_rows, item_rows, size_rows):
    """
    Nest flat rows into catalogue -> four fixed sections -> items -> sizes.

    Items whose section tag is not one of the fixed sections are dropped.
    """
    sizes_by_item = {}
    for size in size_rows:
        sizes_by_item.setdefault(size['item_id'], []).append(dict(size))

    items_by_catalogue = {}
    for item in item_rows:
        items_by_catalogue.setdefault(item['catalogue_id'], []).append(item)

    catalogues = []
    for cat in catalogue_rows:
        sections = [
            {'id': f"{cat['id']}-{section}", 'name': section, 'items': []}
            for section in Item.SECTION_TYPES
        ]
        by_name = {section['name']: section for section in sections}

        for item in items_by_catalogue.get(cat['id'], []):
            section = by_name.get(item['section_type'])
            if section is None:
                continue
            section['items'].append({**item, 'sizes': sizes_by_item.get(item['id'], [])})

        catalogues.append({**cat, 'sections': sections})
    return catalogues


def decode_sale(row):
    """Sale row with its snapshot items decoded when stored as JSON text"""
    sale = dict(row)
    if isinstance(sale.get('items'), str):
        sale['items'] = json.loads(sale['items'])
    return sale


class InventoryStore:
    """Per-request catalogue/inventory store acting on behalf of `actor`"""

    def __init__(self, actor=None, notifier=None, best_seller_metric=None):
        self.actor = actor
        self.notifier = notifier or Notifier()
        self.best_seller_metric = best_seller_metric or getattr(settings, 'BEST_SELLER_METRIC', 'stock')
        self.catalogues = []
        self.sales = []
        self.dashboard_stats = {}
        self.sales_analytics = {}
        self.best_sellers = []
        self.low_stock_items = []
        self.loading = False
        self.calculate_dashboard_stats()

    @property
    def notifications(self):
        return self.notifier.notifications

    # Reads

    def fetch_catalogues(self):
        """Rebuild the catalogue tree; prior state is kept when a read fails"""
        self.loading = True
        try:
            catalogue_rows = list(Catalogue.objects.order_by('order', 'created_at').values(*CATALOGUE_FIELDS))
            item_rows = list(Item.objects.order_by('created_at').values(*ITEM_FIELDS))
            size_rows = list(ItemSize.objects.order_by('created_at').values(*SIZE_FIELDS))
        except Exception as e:
            logger.error(f"Error fetching catalogues: {str(e)}", exc_info=True)
            self.notifier.error('Error', 'Failed to fetch catalogues')
            return False
        finally:
            self.loading = False

        self.catalogues = assemble_catalogues(catalogue_rows, item_rows, size_rows)
        self.calculate_dashboard_stats()
        return True

    def fetch_sales(self):
        from ssuniforms.pos.models import Sale

        try:
            rows = Sale.objects.order_by('-created_at').values(*SALE_FIELDS)
            self.sales = [decode_sale(row) for row in rows]
        except Exception as e:
            logger.error(f"Error fetching sales: {str(e)}", exc_info=True)
            return False

        self.calculate_dashboard_stats()
        return True

    def refresh_after_write(self):
        """Refetch the tree and drop the cached public copy"""
        invalidate_catalogue_tree()
        return self.fetch_catalogues()

    def fetch_all(self):
        catalogues_ok = self.fetch_catalogues()
        sales_ok = self.fetch_sales()
        return catalogues_ok and sales_ok

    def find_item(self, item_id):
        item_id = str(item_id)
        for catalogue in self.catalogues:
            for section in catalogue['sections']:
                for item in section['items']:
                    if str(item['id']) == item_id:
                        return item
        return None

    # Catalogue writes

    def add_catalogue(self, catalogue_input):
        try:
            fields = {key: catalogue_input[key] for key in CATALOGUE_INPUT_FIELDS if key in catalogue_input}
            catalogue = Catalogue.objects.create(**fields)
        except Exception as e:
            logger.error(f"Error adding catalogue: {str(e)}", exc_info=True)
            self.notifier.error('Error', 'Failed to add catalogue')
            return None

        self.refresh_after_write()
        self.notifier.success('Success', 'Catalogue added successfully')
        logger.info(f"Catalogue {catalogue.pk} added by {self._actor_label()}")
        return catalogue.pk

    def update_catalogue(self, catalogue_id, catalogue_input):
        try:
            fields = {key: catalogue_input[key] for key in CATALOGUE_INPUT_FIELDS if key in catalogue_input}
            if not Catalogue.objects.filter(pk=catalogue_id).exists():
                raise Catalogue.DoesNotExist(f"Catalogue {catalogue_id} does not exist")
            if fields:
                Catalogue.objects.filter(pk=catalogue_id).update(**fields)
        except Exception as e:
            logger.error(f"Error updating catalogue: {str(e)}", exc_info=True)
            self.notifier.error('Error', 'Failed to update catalogue')
            return False

        self.refresh_after_write()
        self.notifier.success('Success', 'Catalogue updated successfully')
        return True

    def delete_catalogue(self, catalogue_id):
        try:
            deleted, _ = Catalogue.objects.filter(pk=catalogue_id).delete()
            if not deleted:
                raise Catalogue.DoesNotExist(f"Catalogue {catalogue_id} does not exist")
        except Exception as e:
            logger.error(f"Error deleting catalogue: {str(e)}", exc_info=True)
            self.notifier.error('Error', 'Failed to delete catalogue')
            return False

        self.refresh_after_write()
        self.notifier.success('Success', 'Catalogue deleted successfully')
        logger.info(f"Catalogue {catalogue_id} deleted by {self._actor_label()}")
        return True

    # Item writes

    def add_item(self, item_input):
        """Insert the item and its size rows in one transaction"""
        try:
            with transaction.atomic():
                fields = {key: item_input[key] for key in ITEM_INPUT_FIELDS if key in item_input}
                item = Item.objects.create(**fields)
                self._insert_sizes(item.pk, item_input.get('sizes') or [])
        except Exception as e:
            logger.error(f"Error adding item: {str(e)}", exc_info=True)
            self.notifier.error('Error', 'Failed to add item')
            return None

        self.refresh_after_write()
        self.notifier.success('Success', 'Item added successfully')
        logger.info(f"Item {item.pk} added by {self._actor_label()}")
        return item.pk

    def update_item(self, item_id, item_input):
        """
        Update the supplied item fields; when sizes are supplied they replace
        the existing rows wholesale. Both phases commit together.
        """
        try:
            with transaction.atomic():
                item = Item.objects.select_for_update().get(pk=item_id)
                fields = {key: item_input[key] for key in ITEM_INPUT_FIELDS if key in item_input}
                if fields:
                    Item.objects.filter(pk=item.pk).update(**fields)
                if 'sizes' in item_input and item_input['sizes'] is not None:
                    ItemSize.objects.filter(item_id=item.pk).delete()
                    self._insert_sizes(item.pk, item_input['sizes'])
        except Exception as e:
            logger.error(f"Error updating item: {str(e)}", exc_info=True)
            self.notifier.error('Error', 'Failed to update item')
            return False

        self.refresh_after_write()
        self.notifier.success('Success', 'Item updated successfully')
        return True

    def delete_item(self, item_id):
        try:
            deleted, _ = Item.objects.filter(pk=item_id).delete()
            if not deleted:
                raise Item.DoesNotExist(f"Item {item_id} does not exist")
        except Exception as e:
            logger.error(f"Error deleting item: {str(e)}", exc_info=True)
            self.notifier.error('Error', 'Failed to delete item')
            return False

        self.refresh_after_write()
        self.notifier.success('Success', 'Item deleted successfully')
        logger.info(f"Item {item_id} deleted by {self._actor_label()}")
        return True

    def _insert_sizes(self, item_id, sizes):
        ItemSize.objects.bulk_create([
            ItemSize(item_id=item_id, size=size['size'], price=size['price'], stock=size.get('stock'))
            for size in sizes
        ])

    # Stock

    def _decrement_stock(self, item_id, decrement_by, size=None):
        """
        Atomic, clamped decrement of item stock (and of the size's own stock
        when that size tracks one). Returns the number of item rows touched.
        """
        updated = Item.objects.filter(pk=item_id).update(stock=Greatest(F('stock') - decrement_by, 0))
        if size is not None:
            ItemSize.objects.filter(item_id=item_id, size=size, stock__isnull=False).update(
                stock=Greatest(F('stock') - decrement_by, 0)
            )
        if not updated:
            logger.warning(f"Stock decrement skipped: item {item_id} no longer exists")
        return updated

    def update_stock(self, item_id, decrement_by, size=None):
        """stock := max(0, stock - decrement_by) in a single UPDATE"""
        try:
            decrement_by = int(decrement_by)
            if decrement_by < 0:
                raise ValueError(f"Stock decrement must not be negative: {decrement_by}")
            self._decrement_stock(item_id, decrement_by, size=size)
        except Exception as e:
            logger.error(f"Error updating stock: {str(e)}", exc_info=True)
            return False

        self.refresh_after_write()
        return True

    # Sales

    def add_sale(self, sale_input):
        """
        Record a sale from cart lines and decrement stock for each line.

        The sale row and every decrement commit together. Returns the new
        sale id, or None.
        """
        from ssuniforms.pos.models import Sale

        if self.actor is None or not getattr(self.actor, 'is_authenticated', False):
            self.notifier.error('Error', 'User not authenticated')
            return None

        try:
            lines = sale_input.get('items') or []
            total_amount = sum(
                (Decimal(str(line['price'])) * int(line['quantity']) for line in lines),
                Decimal('0'),
            )
            snapshot = [
                {
                    'id': line['id'],
                    'item_id': str(line['item']['id']),
                    'name': line['item']['name'],
                    'size': line['size'],
                    'price': Decimal(str(line['price'])),
                    'quantity': int(line['quantity']),
                }
                for line in lines
            ]

            with transaction.atomic():
                sale = Sale.objects.create(
                    employee=self.actor,
                    customer_name=sale_input.get('customer_name') or None,
                    customer_phone=sale_input.get('customer_phone') or None,
                    total_amount=total_amount,
                    items=snapshot,
                )
                for line in snapshot:
                    self._decrement_stock(line['item_id'], line['quantity'], size=line['size'])
        except Exception as e:
            logger.error(f"Error adding sale: {str(e)}", exc_info=True)
            self.notifier.error('Error', 'Failed to record sale')
            return None

        self.refresh_after_write()
        self.fetch_sales()
        self.notifier.success('Sale Complete', f"Sale recorded successfully. Total: {format_price(total_amount)}")
        logger.info(f"Sale {sale.pk} recorded by {self._actor_label()}: {total_amount}")
        return sale.pk

    # Derived figures

    def calculate_dashboard_stats(self, now=None):
        from ssuniforms.reports.analytics import calculate_dashboard_stats

        result = calculate_dashboard_stats(
            self.catalogues, self.sales, now=now, best_seller_metric=self.best_seller_metric
        )
        self.dashboard_stats = result['dashboard_stats']
        self.sales_analytics = result['sales_analytics']
        self.best_sellers = result['best_sellers']
        self.low_stock_items = result['low_stock_items']
        return result

    def _actor_label(self):
        if self.actor is None or not getattr(self.actor, 'is_authenticated', False):
            return 'anonymous'
        return f"user {self.actor.pk}"
