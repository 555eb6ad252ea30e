import uuid
from django.db import models


class Catalogue(models.Model):
    """A named collection of uniform items for one school or organisation"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    image = models.CharField(max_length=500, blank=True)
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'catalogues'
        ordering = ['order', 'created_at']


class Item(models.Model):
    """Uniform item, filed under one of the fixed catalogue sections"""
    SECTION_SUMMER = 'summer'
    SECTION_WINTER = 'winter'
    SECTION_HOUSE = 'house'
    SECTION_OTHER = 'other'
    SECTION_CHOICES = [
        (SECTION_SUMMER, 'Summer'),
        (SECTION_WINTER, 'Winter'),
        (SECTION_HOUSE, 'House'),
        (SECTION_OTHER, 'Other'),
    ]
    SECTION_TYPES = [choice[0] for choice in SECTION_CHOICES]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    catalogue = models.ForeignKey(Catalogue, on_delete=models.CASCADE, related_name='items')
    name = models.CharField(max_length=200, db_index=True)
    material = models.CharField(max_length=200, blank=True)
    location = models.CharField(max_length=200, blank=True)
    stock = models.IntegerField(default=0)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    image = models.CharField(max_length=500, blank=True)
    section_type = models.CharField(max_length=20, choices=SECTION_CHOICES, default=SECTION_OTHER, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} ({self.section_type})"

    class Meta:
        db_table = 'items'
        ordering = ['created_at']


class ItemSize(models.Model):
    """Priced size option for an item; stock is tracked only when set"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    item = models.ForeignKey(Item, on_delete=models.CASCADE, related_name='sizes')
    size = models.CharField(max_length=50)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    stock = models.IntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.item.name} - {self.size}"

    class Meta:
        db_table = 'item_sizes'
        ordering = ['created_at']
