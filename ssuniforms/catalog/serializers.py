from rest_framework import serializers
from .models import Catalogue, Item, ItemSize


class CatalogueSerializer(serializers.ModelSerializer):
    class Meta:
        model = Catalogue
        fields = ['id', 'name', 'description', 'image', 'order', 'created_at']
        read_only_fields = ['created_at']


class ItemSizeSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    stock = serializers.IntegerField(min_value=0, required=False, allow_null=True)

    class Meta:
        model = ItemSize
        fields = ['id', 'item_id', 'size', 'price', 'stock', 'created_at']
        read_only_fields = ['item_id', 'created_at']

    def validate_size(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Size label is required.')
        return value


class ItemSerializer(serializers.ModelSerializer):
    catalogue_id = serializers.PrimaryKeyRelatedField(source='catalogue', queryset=Catalogue.objects.all())
    section_type = serializers.ChoiceField(choices=Item.SECTION_CHOICES)
    stock = serializers.IntegerField(min_value=0)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    sizes = ItemSizeSerializer(many=True, required=False)

    class Meta:
        model = Item
        fields = ['id', 'catalogue_id', 'name', 'material', 'location', 'stock', 'price',
                  'image', 'section_type', 'created_at', 'sizes']
        read_only_fields = ['created_at']

    def validate_sizes(self, value):
        labels = [size['size'] for size in value]
        if len(labels) != len(set(labels)):
            raise serializers.ValidationError('Each size label may appear only once.')
        return value

    def to_store_input(self):
        """Validated data in the plain-dict shape the inventory store writes"""
        data = dict(self.validated_data)
        if 'catalogue' in data:
            data['catalogue_id'] = data.pop('catalogue').pk
        if 'sizes' in data:
            data['sizes'] = [dict(size) for size in data['sizes']]
        return data
