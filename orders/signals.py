# Change feed for settled orders and stock. Signals are sent after the
# surrounding transaction commits so receivers never see rolled-back work.
# Callbacks are robust: a failing receiver is logged, not raised.
import logging

from django.conf import settings
from django.db import transaction
from django.dispatch import Signal, receiver

from inventory.models import MenuItem
from inventory.signals import stock_changed

logger = logging.getLogger(__name__)

# Sent with ``order``
order_settled = Signal()
# Sent with ``order`` and ``previous`` (the old status)
order_status_changed = Signal()


def notify_order_settled(sender, order):
    transaction.on_commit(lambda: order_settled.send(sender=sender, order=order), robust=True)


def notify_order_status_changed(sender, order, previous):
    transaction.on_commit(
        lambda: order_status_changed.send(sender=sender, order=order, previous=previous),
        robust=True,
    )


@receiver(stock_changed)
def warn_on_low_stock(sender, menu_item_ids, **kwargs):
    """Log stock-tracked items that dropped below the low stock threshold."""
    low = MenuItem.objects.filter(
        pk__in=menu_item_ids,
        stock_quantity__isnull=False,
        stock_quantity__lt=settings.POS_LOW_STOCK_THRESHOLD,
    )
    for item in low:
        logger.warning("Low stock: %s has %s left", item.name, item.stock_quantity)
