"""
Persistence capability used by the order components.

``OrderStore`` is the one seam between the POS logic and storage: generic
``read``/``write`` on named collections plus the single privileged
operation that settles an order against stock. ``DjangoOrderStore`` is the
ORM implementation.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional
import logging

from django.apps import apps
from django.db import transaction

from inventory.models import MenuItem
from inventory.signals import notify_stock_changed
from inventory.stock import decrement_stock
from .exceptions import MenuItemsMissing, StockShortfall
from .models import Order, OrderItem
from .pricing import calculate_totals, to_money
from .signals import notify_order_settled

logger = logging.getLogger(__name__)

CODE_INSUFFICIENT_STOCK = 'insufficient_stock'
CODE_VALIDATION_ERROR = 'validation_error'


@dataclass
class StoreOutcome:
    success: bool
    order_id: Optional[str] = None
    code: Optional[str] = None
    items: List[str] = field(default_factory=list)


class OrderStore(ABC):
    @abstractmethod
    def read(self, collection, **filters):
        """Return a list of records from ``collection`` matching ``filters``."""

    @abstractmethod
    def write(self, collection, record):
        """Create ``record`` (a dict) or update it when it carries an ``id``."""

    @abstractmethod
    def settle_order_with_stock(self, payment_method, line_items, context=None, tax_rate=None):
        """
        Atomically check and decrement stock for ``line_items`` and create the
        order with its items. Returns a ``StoreOutcome``; an
        ``insufficient_stock`` outcome leaves nothing written.
        """


class DjangoOrderStore(OrderStore):
    collections = {
        'menu_items': 'inventory.MenuItem',
        'orders': 'orders.Order',
        'order_items': 'orders.OrderItem',
        'receipts': 'receipts.Receipt',
    }

    def __init__(self, using=None):
        self.using = using

    def get_model(self, collection):
        try:
            return apps.get_model(self.collections[collection])
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}")

    def _manager(self, model):
        return model.objects.db_manager(self.using) if self.using else model.objects

    def read(self, collection, **filters):
        model = self.get_model(collection)
        return list(self._manager(model).filter(**filters))

    def write(self, collection, record):
        model = self.get_model(collection)
        record = dict(record)
        pk = record.pop('id', None)
        manager = self._manager(model)
        if pk is None:
            return manager.create(**record)
        instance = manager.get(pk=pk)
        for attr, value in record.items():
            setattr(instance, attr, value)
        instance.save(using=self.using)
        return instance

    def settle_order_with_stock(self, payment_method, line_items, context=None, tax_rate=None):
        context = context or {}
        try:
            with transaction.atomic(using=self.using):
                order = self._settle(payment_method, line_items, context, tax_rate)
        except MenuItemsMissing as missing:
            logger.info("Settlement rejected, menu items no longer exist: %s", missing)
            return StoreOutcome(False, code=CODE_VALIDATION_ERROR, items=missing.items)
        except StockShortfall as shortfall:
            logger.info("Settlement rejected, insufficient stock for: %s", shortfall)
            return StoreOutcome(False, code=CODE_INSUFFICIENT_STOCK, items=shortfall.items)
        return StoreOutcome(True, order_id=str(order.pk))

    def _settle(self, payment_method, line_items, context, tax_rate):
        requested = {}
        for line in line_items:
            key = str(line.menu_item_id)
            requested[key] = requested.get(key, 0) + line.quantity

        # Lock in primary key order so concurrent settlements cannot deadlock
        menu_items = {
            str(item.pk): item
            for item in self._manager(MenuItem).select_for_update().filter(pk__in=list(requested)).order_by('pk')
        }
        missing = [item_id for item_id in requested if item_id not in menu_items]
        if missing:
            raise MenuItemsMissing(sorted(missing))

        shortfall = [
            menu_items[item_id].name
            for item_id, quantity in requested.items()
            if menu_items[item_id].is_stock_tracked and menu_items[item_id].stock_quantity < quantity
        ]
        if shortfall:
            raise StockShortfall(shortfall)

        tracked = []
        for item_id in sorted(requested):
            item = menu_items[item_id]
            if not item.is_stock_tracked:
                continue
            # Guarded write: re-verify stock at write time
            if not decrement_stock(item.pk, requested[item_id], using=self.using):
                raise StockShortfall([item.name])
            tracked.append(item.pk)

        priced = []
        for line in line_items:
            item = menu_items[str(line.menu_item_id)]
            unit_price = to_money(line.unit_price if line.unit_price is not None else item.price)
            priced.append((line, item, unit_price))

        totals = calculate_totals([(line.quantity, unit_price) for line, _, unit_price in priced], tax_rate)

        order = self._manager(Order).create(
            waiter=context.get('waiter'),
            table_number=context.get('table_number') or 1,
            customer_name=context.get('customer_name') or '',
            special_instructions=context.get('special_instructions') or '',
            subtotal=totals.subtotal,
            tax_amount=totals.tax,
            total=totals.total,
            payment_method=payment_method,
        )
        self._manager(OrderItem).bulk_create([
            OrderItem(
                order=order,
                menu_item=item,
                name=item.name,
                quantity=line.quantity,
                unit_price=unit_price,
                line_total=unit_price * line.quantity,
                special_requests=line.special_requests or '',
            )
            for line, item, unit_price in priced
        ])
        notify_stock_changed(MenuItem, tracked)
        notify_order_settled(Order, order)
        return order
