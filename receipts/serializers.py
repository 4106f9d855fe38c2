from rest_framework import serializers

from .models import Receipt


class ReceiptSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Receipt
        fields = ['id', 'order_id', 'receipt_number', 'issued_at', 'snapshot']
        read_only_fields = fields
