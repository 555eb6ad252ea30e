from rest_framework import serializers
from .models import ShopInfo


class ShopInfoSerializer(serializers.ModelSerializer):
    images = serializers.ListField(child=serializers.CharField(max_length=500), required=False)

    class Meta:
        model = ShopInfo
        fields = ['id', 'name', 'description', 'address', 'email', 'phone', 'images', 'created_at']
        read_only_fields = ['created_at']
