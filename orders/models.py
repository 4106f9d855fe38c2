from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from decimal import Decimal
import uuid

from inventory.models import MenuItem


class Order(models.Model):
    """A settled, paid order. Money fields and items never change after creation."""
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_PREPARING = 'preparing'
    STATUS_READY = 'ready'
    STATUS_SERVED = 'served'
    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_PREPARING, "Preparing"),
        (STATUS_READY, "Ready"),
        (STATUS_SERVED, "Served"),
    )
    # Kitchen workflow only moves forward
    STATUS_FLOW = [s for s, _ in STATUS_CHOICES]
    ACTIVE_STATUSES = [STATUS_PENDING, STATUS_CONFIRMED, STATUS_PREPARING, STATUS_READY]

    PAYMENT_CASH = 'cash'
    PAYMENT_CARD = 'card'
    PAYMENT_METHOD_CHOICES = (
        (PAYMENT_CASH, "Cash"),
        (PAYMENT_CARD, "Card"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    waiter = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        null=True, blank=True, related_name='orders'
    )
    table_number = models.PositiveIntegerField(default=1)
    customer_name = models.CharField(max_length=100, blank=True)
    special_instructions = models.TextField(blank=True)

    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"#{self.id} - Table {self.table_number} - {self.total}"

    def can_move_to(self, new_status):
        if new_status not in self.STATUS_FLOW:
            return False
        return self.STATUS_FLOW.index(new_status) > self.STATUS_FLOW.index(self.status)


class OrderItem(models.Model):
    order = models.ForeignKey(Order, related_name='items', on_delete=models.CASCADE)
    menu_item = models.ForeignKey(MenuItem, on_delete=models.PROTECT, related_name='order_items')
    name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    line_total = models.DecimalField(max_digits=10, decimal_places=2)
    special_requests = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering = ['id']

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError("Settled order items cannot be modified.")
        self.line_total = self.unit_price * self.quantity
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.quantity} x {self.name}"


class DraftOrder(models.Model):
    """A waiter's in-progress order, one per staff account."""
    waiter = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='draft_order'
    )
    data = models.JSONField(default=dict)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Draft for {self.waiter}"
