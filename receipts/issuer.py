"""
Receipt issuer.

``issue`` stores at most one receipt per order; ``render`` turns a stored
receipt (or an order that has none yet) into printable HTML or text
without writing anything.
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from orders.models import Order
from orders.pricing import get_tax_rate
from .models import Receipt
from .numbering import receipt_number

logger = logging.getLogger(__name__)

TEMPLATES = {
    'html': 'receipts/receipt.html',
    'text': 'receipts/receipt.txt',
}


class ReceiptIssuer:
    def __init__(self, prefix=None):
        self.prefix = prefix or settings.POS_RECEIPT_PREFIX

    def number_for(self, order):
        return receipt_number(order.pk, prefix=self.prefix)

    def build(self, order):
        """Receipt snapshot for ``order``; nothing is saved."""
        waiter = order.waiter.get_full_name() if order.waiter else ''
        return {
            'restaurant': {
                'name': settings.POS_RESTAURANT_NAME,
                'address': settings.POS_RESTAURANT_ADDRESS,
            },
            'receipt_number': self.number_for(order),
            'order_id': str(order.pk),
            'settled_at': order.created_at.isoformat() if order.created_at else None,
            'table_number': order.table_number,
            'customer_name': order.customer_name,
            'waiter': waiter,
            'payment_method': order.payment_method,
            'items': [
                {
                    'name': item.name,
                    'quantity': item.quantity,
                    'unit_price': str(item.unit_price),
                    'line_total': str(item.line_total),
                    'special_requests': item.special_requests,
                }
                for item in order.items.all()
            ],
            'subtotal': str(order.subtotal),
            'tax': str(order.tax_amount),
            'tax_rate': str(get_tax_rate()),
            'total': str(order.total),
            'currency': settings.POS_CURRENCY_SYMBOL,
            'footer': settings.POS_RECEIPT_FOOTER,
        }

    def issue(self, order):
        """
        Store the receipt for ``order`` unless one exists.
        Returns ``(receipt, created)``.
        """
        existing = Receipt.objects.filter(order=order).first()
        if existing is not None:
            return existing, False
        try:
            with transaction.atomic():
                receipt = Receipt.objects.create(
                    order=order,
                    receipt_number=self.number_for(order),
                    snapshot=self.build(order),
                )
        except IntegrityError:
            # Another request issued it first
            return Receipt.objects.get(order=order), False
        logger.info("Issued receipt %s for order %s", receipt.receipt_number, order.pk)
        return receipt, True

    def get(self, order_id):
        return Receipt.objects.select_related('order').filter(order_id=order_id).first()

    def render(self, receipt_or_order, fmt='html'):
        if fmt not in TEMPLATES:
            raise ValueError(f"Unknown receipt format: {fmt}")

        if isinstance(receipt_or_order, Order):
            receipt = Receipt.objects.filter(order=receipt_or_order).first()
            if receipt is None:
                snapshot, issued_at = self.build(receipt_or_order), timezone.now()
            else:
                snapshot, issued_at = receipt.snapshot, receipt.issued_at
        else:
            snapshot, issued_at = receipt_or_order.snapshot, receipt_or_order.issued_at

        context = dict(snapshot)
        context['settled_at'] = parse_datetime(snapshot['settled_at']) if snapshot.get('settled_at') else None
        context['issued_at'] = issued_at
        context['payment_method_display'] = (snapshot.get('payment_method') or '').upper()
        return render_to_string(TEMPLATES[fmt], context)
