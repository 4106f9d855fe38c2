from rest_framework import serializers
from django.conf import settings

from .models import MenuItem


class MenuItemSerializer(serializers.ModelSerializer):
    is_stock_tracked = serializers.ReadOnlyField()
    is_low_stock = serializers.ReadOnlyField()
    is_orderable = serializers.ReadOnlyField()

    class Meta:
        model = MenuItem
        fields = [
            'id', 'name', 'description', 'price', 'item_type', 'is_available',
            'stock_quantity', 'is_stock_tracked', 'is_low_stock', 'is_orderable',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate(self, attrs):
        item_type = attrs.get('item_type', getattr(self.instance, 'item_type', MenuItem.TYPE_FOOD))
        stock_quantity = attrs.get('stock_quantity', getattr(self.instance, 'stock_quantity', None))

        if item_type == MenuItem.TYPE_FOOD and stock_quantity is not None:
            raise serializers.ValidationError({
                'stock_quantity': "Only drinks carry a stock count."
            })
        return attrs


class StockAdjustmentSerializer(serializers.Serializer):
    """Either an absolute ``stock_quantity`` (restock) or a signed ``delta``."""
    stock_quantity = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    delta = serializers.IntegerField(required=False)

    def validate(self, attrs):
        has_quantity = 'stock_quantity' in attrs
        has_delta = 'delta' in attrs
        if has_quantity == has_delta:
            raise serializers.ValidationError("Provide exactly one of stock_quantity or delta.")
        return attrs


class LowStockSerializer(serializers.ModelSerializer):
    threshold = serializers.SerializerMethodField()

    class Meta:
        model = MenuItem
        fields = ['id', 'name', 'stock_quantity', 'threshold']

    def get_threshold(self, obj):
        return settings.POS_LOW_STOCK_THRESHOLD
