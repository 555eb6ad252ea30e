from rest_framework import serializers
from .models import Sale


class SaleSerializer(serializers.ModelSerializer):
    employee_id = serializers.IntegerField(read_only=True, allow_null=True)
    employee_name = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = ['id', 'employee_id', 'employee_name', 'customer_name', 'customer_phone',
                  'total_amount', 'items', 'created_at']
        read_only_fields = fields

    def get_employee_name(self, obj):
        """Profile name of the recording employee, if they still exist"""
        employee = obj.employee
        if employee is None:
            return None
        profile = getattr(employee, 'profile', None)
        return profile.name if profile else employee.email


class CartLineInputSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    size = serializers.CharField(max_length=50, required=False, default='Standard')
    quantity = serializers.IntegerField(min_value=1, required=False, default=1)


class CartQuantitySerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    size = serializers.CharField(max_length=50, required=False, default='Standard')
    # Zero or negative removes the line
    quantity = serializers.IntegerField()


class CartRemoveSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    size = serializers.CharField(max_length=50, required=False, default='Standard')


class CheckoutSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=200)
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')

    def validate_customer_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Customer name is required.')
        return value
