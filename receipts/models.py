from django.db import models

from orders.models import Order


class Receipt(models.Model):
    """Printable record of a settled order. One per order."""
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='receipt')
    receipt_number = models.CharField(max_length=20, db_index=True)
    issued_at = models.DateTimeField(auto_now_add=True)
    snapshot = models.JSONField(default=dict)

    class Meta:
        ordering = ['-issued_at']

    def __str__(self):
        return f"{self.receipt_number} for order #{self.order_id}"
