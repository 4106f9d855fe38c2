from rest_framework import serializers

from .builder import SettlementLine
from .models import Order, OrderItem


class OrderItemReadSerializer(serializers.ModelSerializer):
    menu_item_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'menu_item_id', 'name', 'quantity', 'unit_price', 'line_total', 'special_requests']
        read_only_fields = fields


class OrderReadSerializer(serializers.ModelSerializer):
    items = OrderItemReadSerializer(many=True, read_only=True)
    waiter_name = serializers.SerializerMethodField()
    receipt_number = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'waiter', 'waiter_name', 'table_number', 'customer_name',
            'special_instructions', 'subtotal', 'tax_amount', 'total',
            'payment_method', 'status', 'receipt_number', 'items',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_waiter_name(self, obj):
        return obj.waiter.get_full_name() if obj.waiter else None

    def get_receipt_number(self, obj):
        receipt = getattr(obj, 'receipt', None)
        return receipt.receipt_number if receipt else None


class OrderSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = ['id', 'table_number', 'total', 'payment_method', 'status', 'created_at', 'updated_at']
        read_only_fields = fields


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)

    def validate_status(self, value):
        order = self.context['order']
        if not order.can_move_to(value):
            raise serializers.ValidationError(
                f"Cannot move an order from '{order.status}' to '{value}'."
            )
        return value


class SettleLineSerializer(serializers.Serializer):
    menu_item_id = serializers.UUIDField()
    # Range is checked by the settlement engine so the rejection stays structured
    quantity = serializers.IntegerField()
    special_requests = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def to_line(self, data):
        return SettlementLine(
            menu_item_id=str(data['menu_item_id']),
            quantity=data['quantity'],
            special_requests=data.get('special_requests', ''),
        )


class SettleOrderSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    items = SettleLineSerializer(many=True, allow_empty=True)
    table_number = serializers.IntegerField(min_value=1, required=False, default=1)
    customer_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    special_instructions = serializers.CharField(required=False, allow_blank=True, default='')

    def settlement_lines(self):
        line_serializer = SettleLineSerializer()
        return [line_serializer.to_line(item) for item in self.validated_data['items']]


class CheckoutSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)


class DraftContextSerializer(serializers.Serializer):
    table_number = serializers.IntegerField(min_value=1, required=False)
    customer_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    special_instructions = serializers.CharField(required=False, allow_blank=True)


class DraftAddItemSerializer(serializers.Serializer):
    menu_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(required=False, default=1)
    special_requests = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class DraftUpdateItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(required=False)
    special_requests = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide quantity or special_requests.")
        return attrs


def serialize_draft(builder):
    return {
        'table_number': builder.table_number,
        'customer_name': builder.customer_name,
        'special_instructions': builder.special_instructions,
        'lines': [
            {
                'id': line.id,
                'menu_item_id': line.menu_item_id,
                'name': line.name,
                'quantity': line.quantity,
                'unit_price': str(line.unit_price),
                'line_total': str(line.line_total),
                'stock_quantity': line.stock_quantity,
                'special_requests': line.special_requests,
            }
            for line in builder.lines
        ],
        'total': str(builder.total()),
    }
