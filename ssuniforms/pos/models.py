import uuid
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class Sale(models.Model):
    """
    Immutable record of a completed checkout.

    `items` is a snapshot of the cart lines at sale time
    ({id, item_id, name, size, price, quantity}); it never follows later
    price or name changes. `total_amount` is fixed at creation.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    employee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True,
                                 blank=True, related_name='sales')
    customer_name = models.CharField(max_length=200, blank=True, null=True, db_index=True)
    customer_phone = models.CharField(max_length=20, blank=True, null=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    items = models.JSONField(encoder=DjangoJSONEncoder, default=list)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"Sale {self.id} - {self.total_amount}"

    class Meta:
        db_table = 'sales'
        ordering = ['-created_at']
