"""
In-memory order builder.

Holds the lines of one order before settlement. Stock checks here run
against the stock snapshot taken when an item was added; they only keep a
waiter from building an order that obviously cannot be filled. The
settlement engine re-checks stock atomically and is the only authority.
"""
from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import List, Optional
import uuid

from django.conf import settings

from .pricing import line_total, to_money

NOTICE_INVALID_QUANTITY = 'invalid_quantity'
NOTICE_UNAVAILABLE = 'unavailable'
NOTICE_INSUFFICIENT_STOCK = 'insufficient_stock'
NOTICE_LINE_LIMIT = 'line_limit'
NOTICE_CLAMPED = 'clamped'
NOTICE_REMOVED = 'removed'
NOTICE_UNKNOWN_LINE = 'unknown_line'


@dataclass
class OrderLine:
    menu_item_id: str
    name: str
    unit_price: Decimal
    quantity: int
    stock_quantity: Optional[int] = None
    special_requests: str = ''
    id: str = field(default_factory=lambda: f"temp-{uuid.uuid4().hex}")

    @property
    def is_stock_tracked(self):
        return self.stock_quantity is not None

    @property
    def line_total(self):
        return line_total(self.quantity, self.unit_price)

    def ceiling(self, max_line_quantity):
        if self.is_stock_tracked:
            return min(self.stock_quantity, max_line_quantity)
        return max_line_quantity


@dataclass
class BuilderResult:
    ok: bool
    line: Optional[OrderLine] = None
    notice: Optional[str] = None
    message: str = ''


@dataclass
class SettlementLine:
    """What the settlement engine needs from one line."""
    menu_item_id: str
    quantity: int
    unit_price: Optional[Decimal] = None
    special_requests: str = ''


class OrderBuilder:
    def __init__(self, table_number=1, customer_name='', special_instructions='', max_line_quantity=None):
        self.lines: List[OrderLine] = []
        self.table_number = table_number
        self.customer_name = customer_name
        self.special_instructions = special_instructions
        if max_line_quantity is None:
            max_line_quantity = settings.POS_MAX_LINE_QUANTITY
        self.max_line_quantity = max_line_quantity

    def __len__(self):
        return len(self.lines)

    @property
    def is_empty(self):
        return not self.lines

    def get_line(self, line_id):
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def _line_for_item(self, menu_item_id):
        for line in self.lines:
            if line.menu_item_id == menu_item_id:
                return line
        return None

    def quantity_in_order(self, menu_item_id):
        return sum(line.quantity for line in self.lines if line.menu_item_id == menu_item_id)

    def add_item(self, menu_item, quantity=1, special_requests=''):
        """
        Add ``quantity`` units of ``menu_item``; lines for the same item merge.

        ``menu_item`` is anything with ``id``, ``name``, ``price``,
        ``is_available`` and ``stock_quantity`` (None when untracked).
        """
        if quantity <= 0:
            return BuilderResult(False, notice=NOTICE_INVALID_QUANTITY,
                                 message="Quantity must be at least 1.")
        if not getattr(menu_item, 'is_available', True):
            return BuilderResult(False, notice=NOTICE_UNAVAILABLE,
                                 message=f"{menu_item.name} is not available.")

        menu_item_id = str(menu_item.id)
        stock = menu_item.stock_quantity
        already_in_order = self.quantity_in_order(menu_item_id)

        if stock is not None and already_in_order + quantity > stock:
            return BuilderResult(
                False, notice=NOTICE_INSUFFICIENT_STOCK,
                message=f"Only {stock} {menu_item.name} in stock ({already_in_order} already in this order)."
            )
        if already_in_order + quantity > self.max_line_quantity:
            return BuilderResult(
                False, notice=NOTICE_LINE_LIMIT,
                message=f"A line cannot exceed {self.max_line_quantity} units."
            )

        line = self._line_for_item(menu_item_id)
        if line is not None:
            line.quantity += quantity
            line.stock_quantity = stock
        else:
            line = OrderLine(
                menu_item_id=menu_item_id,
                name=menu_item.name,
                unit_price=to_money(menu_item.price),
                quantity=quantity,
                stock_quantity=stock,
                special_requests=special_requests or '',
            )
            self.lines.append(line)
        return BuilderResult(True, line=line)

    def update_quantity(self, line_id, new_quantity):
        """Set a line's quantity, clamping to the line ceiling. Zero or less removes it."""
        line = self.get_line(line_id)
        if line is None:
            return BuilderResult(False, notice=NOTICE_UNKNOWN_LINE, message="Line not found.")

        new_quantity = int(new_quantity)
        if new_quantity <= 0:
            self.remove_item(line_id)
            return BuilderResult(True, line=line, notice=NOTICE_REMOVED)

        ceiling = line.ceiling(self.max_line_quantity)
        if ceiling < 1:
            self.remove_item(line_id)
            return BuilderResult(True, line=line, notice=NOTICE_REMOVED,
                                 message=f"{line.name} is out of stock.")
        if new_quantity > ceiling:
            line.quantity = ceiling
            if line.is_stock_tracked and ceiling == line.stock_quantity:
                message = f"Only {ceiling} {line.name} available."
            else:
                message = f"Quantity limited to {ceiling}."
            return BuilderResult(True, line=line, notice=NOTICE_CLAMPED, message=message)

        line.quantity = new_quantity
        return BuilderResult(True, line=line)

    def set_special_requests(self, line_id, text):
        line = self.get_line(line_id)
        if line is None:
            return BuilderResult(False, notice=NOTICE_UNKNOWN_LINE, message="Line not found.")
        line.special_requests = text or ''
        return BuilderResult(True, line=line)

    def remove_item(self, line_id):
        self.lines = [line for line in self.lines if line.id != line_id]

    def total(self):
        return sum((line.line_total for line in self.lines), Decimal('0.00'))

    def set_context(self, table_number=None, customer_name=None, special_instructions=None):
        if table_number is not None:
            self.table_number = table_number
        if customer_name is not None:
            self.customer_name = customer_name
        if special_instructions is not None:
            self.special_instructions = special_instructions

    def clear(self):
        self.lines = []
        self.customer_name = ''
        self.special_instructions = ''

    def settlement_lines(self):
        return [
            SettlementLine(
                menu_item_id=line.menu_item_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                special_requests=line.special_requests,
            )
            for line in self.lines
        ]

    def to_dict(self):
        lines = []
        for line in self.lines:
            data = asdict(line)
            data['unit_price'] = str(line.unit_price)
            lines.append(data)
        return {
            'table_number': self.table_number,
            'customer_name': self.customer_name,
            'special_instructions': self.special_instructions,
            'lines': lines,
        }

    @classmethod
    def from_dict(cls, data, max_line_quantity=None):
        builder = cls(
            table_number=data.get('table_number', 1),
            customer_name=data.get('customer_name', ''),
            special_instructions=data.get('special_instructions', ''),
            max_line_quantity=max_line_quantity,
        )
        for raw in data.get('lines', []):
            raw = dict(raw)
            raw['unit_price'] = Decimal(raw['unit_price'])
            builder.lines.append(OrderLine(**raw))
        return builder
