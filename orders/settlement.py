"""
Settlement engine.

Turns an in-progress order into a settled one. Business rejections
(validation problems, insufficient stock) come back as a
``SettlementResult``; database faults raise ``PersistenceFault``.
"""
from dataclasses import dataclass, field
from typing import List, Optional
import logging

from django.conf import settings
from django.db import DatabaseError, InterfaceError

from .backends import CODE_INSUFFICIENT_STOCK, CODE_VALIDATION_ERROR, DjangoOrderStore
from .builder import SettlementLine
from .exceptions import PersistenceFault
from .models import Order
from .pricing import get_tax_rate

logger = logging.getLogger(__name__)

PAYMENT_METHODS = [method for method, _ in Order.PAYMENT_METHOD_CHOICES]
MESSAGE_UNKNOWN_ITEMS = "Some items are no longer on the menu."


@dataclass
class SettlementResult:
    success: bool
    order_id: Optional[str] = None
    code: Optional[str] = None
    items: List[str] = field(default_factory=list)
    message: str = ''

    def as_dict(self):
        data = {'success': self.success}
        if self.success:
            data['order_id'] = self.order_id
        else:
            data.update(code=self.code, items=self.items, message=self.message)
        return data


def _rejected(code, message, items=None):
    return SettlementResult(False, code=code, items=list(items or []), message=message)


class SettlementEngine:
    def __init__(self, store=None, tax_rate=None, max_line_quantity=None):
        self.store = store or DjangoOrderStore()
        self.tax_rate = tax_rate if tax_rate is not None else get_tax_rate()
        self.max_line_quantity = max_line_quantity or settings.POS_MAX_LINE_QUANTITY

    def validate(self, lines, payment_method):
        if not lines:
            return _rejected(CODE_VALIDATION_ERROR, "Please add items to the order before submitting.")
        if payment_method not in PAYMENT_METHODS:
            return _rejected(CODE_VALIDATION_ERROR, f"Unknown payment method: {payment_method}")
        bad_quantities = [str(line.menu_item_id) for line in lines if line.quantity <= 0]
        if bad_quantities:
            return _rejected(CODE_VALIDATION_ERROR, "Quantities must be at least 1.", bad_quantities)
        too_large = [str(line.menu_item_id) for line in lines if line.quantity > self.max_line_quantity]
        if too_large:
            return _rejected(CODE_VALIDATION_ERROR,
                             f"A line cannot exceed {self.max_line_quantity} units.", too_large)
        return None

    def check_menu(self, lines):
        wanted = {str(line.menu_item_id) for line in lines}
        found = {str(item.pk): item for item in self.store.read('menu_items', pk__in=list(wanted))}

        unknown = sorted(wanted - set(found))
        if unknown:
            return _rejected(CODE_VALIDATION_ERROR, MESSAGE_UNKNOWN_ITEMS, unknown)
        unavailable = sorted(item.name for item in found.values() if not item.is_available)
        if unavailable:
            return _rejected(CODE_VALIDATION_ERROR, "Some items are currently unavailable.", unavailable)
        return None

    def settle(self, lines, payment_method, waiter=None, table_number=1,
               customer_name='', special_instructions=''):
        lines = [
            line if isinstance(line, SettlementLine) else SettlementLine(**line)
            for line in lines
        ]
        rejection = self.validate(lines, payment_method)
        if rejection is not None:
            return rejection

        payload = {
            'payment_method': payment_method,
            'items': [(str(line.menu_item_id), line.quantity) for line in lines],
            'waiter': getattr(waiter, 'pk', None),
        }
        context = {
            'waiter': waiter,
            'table_number': table_number,
            'customer_name': customer_name,
            'special_instructions': special_instructions,
        }

        try:
            rejection = self.check_menu(lines)
            if rejection is not None:
                return rejection
            outcome = self.store.settle_order_with_stock(payment_method, lines, context, self.tax_rate)
        except (DatabaseError, InterfaceError) as exc:
            logger.exception("Settlement failed in the database; payload=%s", payload)
            raise PersistenceFault() from exc

        if not outcome.success:
            if outcome.code == CODE_INSUFFICIENT_STOCK:
                return _rejected(
                    CODE_INSUFFICIENT_STOCK,
                    "Not enough stock for: " + ", ".join(outcome.items),
                    outcome.items,
                )
            if outcome.code == CODE_VALIDATION_ERROR:
                return _rejected(CODE_VALIDATION_ERROR, MESSAGE_UNKNOWN_ITEMS, outcome.items)
            return _rejected(outcome.code or CODE_VALIDATION_ERROR, "The order could not be settled.", outcome.items)

        logger.info("Order %s settled (%s) payload=%s", outcome.order_id, payment_method, payload)
        return SettlementResult(True, order_id=outcome.order_id)

    def settle_builder(self, builder, payment_method, waiter=None):
        """Settle the lines held by an ``OrderBuilder``; the builder is not modified."""
        return self.settle(
            builder.settlement_lines(),
            payment_method,
            waiter=waiter,
            table_number=builder.table_number,
            customer_name=builder.customer_name,
            special_instructions=builder.special_instructions,
        )
