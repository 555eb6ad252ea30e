"""
Cart store.

The cart is a list of lines keyed by (item id, size):
    {id: "<item_id>-<size>", item: {...}, size, price, quantity}
`price` is the unit price captured when the line was first added. The
lines are persisted as JSON under a fixed key in a mapping (the Django
session in the API) after every change and reloaded on construction.
Storage failures are logged and the cart degrades to empty.
"""
import json
import logging
from decimal import Decimal

from django.core.serializers.json import DjangoJSONEncoder

from ssuniforms.core.notifications import Notifier

logger = logging.getLogger('ssuniforms.pos.cart')

CART_STORAGE_KEY = 'ss-uniforms-cart'


def line_id(item_id, size):
    return f"{item_id}-{size}"


class CartStore:
    def __init__(self, storage, notifier=None):
        self.storage = storage
        self.notifier = notifier or Notifier()
        self.items = self._load()

    def _load(self):
        try:
            raw = self.storage.get(CART_STORAGE_KEY)
            if not raw:
                return []
            lines = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
            return [
                {
                    'id': line['id'],
                    'item': line['item'],
                    'size': line['size'],
                    'price': Decimal(str(line['price'])),
                    'quantity': int(line['quantity']),
                }
                for line in lines
            ]
        except Exception as e:
            logger.error(f"Error loading cart from storage: {str(e)}")
            return []

    def _save(self):
        try:
            self.storage[CART_STORAGE_KEY] = json.dumps(self.items, cls=DjangoJSONEncoder)
        except Exception as e:
            logger.error(f"Error saving cart to storage: {str(e)}")

    def _find(self, item_id, size):
        item_id = str(item_id)
        for line in self.items:
            if str(line['item']['id']) == item_id and line['size'] == size:
                return line
        return None

    def add_item(self, item, size, unit_price, quantity=1):
        """Add a line, or grow the quantity of the matching (item, size) line"""
        if quantity < 1:
            raise ValueError('quantity must be at least 1')

        existing = self._find(item['id'], size)
        if existing is not None:
            existing['quantity'] += quantity
            self.notifier.success(
                'Cart Updated',
                f"{item['name']} ({size}) quantity updated to {existing['quantity']}",
            )
        else:
            self.items.append({
                'id': line_id(item['id'], size),
                'item': item,
                'size': size,
                'price': Decimal(str(unit_price)),
                'quantity': quantity,
            })
            self.notifier.success('Added to Cart', f"{item['name']} ({size}) added to cart")
        self._save()

    def remove_item(self, item_id, size):
        item_id = str(item_id)
        self.items = [
            line for line in self.items
            if not (str(line['item']['id']) == item_id and line['size'] == size)
        ]
        self.notifier.success('Removed from Cart', 'Item removed from cart')
        self._save()

    def update_quantity(self, item_id, size, quantity):
        """Overwrite a line's quantity; zero or less removes the line"""
        if quantity <= 0:
            self.remove_item(item_id, size)
            return
        line = self._find(item_id, size)
        if line is not None:
            line['quantity'] = quantity
            self._save()

    def clear_cart(self):
        self.items = []
        self.notifier.success('Cart Cleared', 'All items removed from cart')
        self._save()

    def is_in_cart(self, item_id, size):
        return self._find(item_id, size) is not None

    def get_item_quantity(self, item_id, size):
        line = self._find(item_id, size)
        return line['quantity'] if line else 0

    @property
    def total_items(self):
        return sum(line['quantity'] for line in self.items)

    @property
    def total_price(self):
        return sum((line['price'] * line['quantity'] for line in self.items), Decimal('0'))

    def as_dict(self):
        return {
            'items': self.items,
            'total_items': self.total_items,
            'total_price': self.total_price,
        }
