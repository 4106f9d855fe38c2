"""
Stock counter primitives.

Every change to ``MenuItem.stock_quantity`` goes through a single guarded
UPDATE so the database re-checks the condition at write time.
"""
import logging

from django.db import models
from django.utils import timezone

from .models import MenuItem
from .signals import notify_stock_changed

logger = logging.getLogger(__name__)


def decrement_stock(menu_item_id, quantity, using=None):
    """
    Atomically take ``quantity`` units off a stock-tracked item.

    Returns True when the row was updated, False when the item is untracked,
    missing, or has fewer than ``quantity`` units left.
    """
    manager = MenuItem.objects.db_manager(using) if using else MenuItem.objects
    updated = manager.filter(
        pk=menu_item_id,
        stock_quantity__isnull=False,
        stock_quantity__gte=quantity,
    ).update(
        stock_quantity=models.F('stock_quantity') - quantity,
        updated_at=timezone.now(),
    )
    return updated == 1


def adjust_stock(menu_item, delta):
    """Apply a signed delta; a negative delta never drives stock below zero."""
    if delta < 0:
        updated = decrement_stock(menu_item.pk, -delta)
    else:
        updated = MenuItem.objects.filter(
            pk=menu_item.pk,
            stock_quantity__isnull=False,
        ).update(
            stock_quantity=models.F('stock_quantity') + delta,
            updated_at=timezone.now(),
        )
    if updated:
        notify_stock_changed(MenuItem, [menu_item.pk])
    return updated == 1


def restock(menu_item, quantity):
    """Set an absolute stock count. ``None`` stops tracking the item."""
    MenuItem.objects.filter(pk=menu_item.pk).update(
        stock_quantity=quantity,
        updated_at=timezone.now(),
    )
    notify_stock_changed(MenuItem, [menu_item.pk])
    logger.info("Stock for %s set to %s", menu_item.name, quantity)
