from django.contrib import admin
from .models import Catalogue, Item, ItemSize


class ItemSizeInline(admin.TabularInline):
    model = ItemSize
    extra = 0
    fields = ['size', 'price', 'stock']


@admin.register(Catalogue)
class CatalogueAdmin(admin.ModelAdmin):
    list_display = ['name', 'order', 'created_at']
    search_fields = ['name', 'description']
    ordering = ['order', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'catalogue', 'section_type', 'stock', 'price', 'location', 'created_at']
    list_filter = ['section_type', 'catalogue']
    search_fields = ['name', 'material', 'location', 'catalogue__name']
    ordering = ['catalogue', 'name']
    readonly_fields = ['created_at']
    inlines = [ItemSizeInline]


@admin.register(ItemSize)
class ItemSizeAdmin(admin.ModelAdmin):
    list_display = ['item', 'size', 'price', 'stock', 'created_at']
    search_fields = ['item__name', 'size']
    ordering = ['item', 'size']
