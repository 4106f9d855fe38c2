from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

CENTS = Decimal('0.01')

Totals = namedtuple('Totals', ['subtotal', 'tax', 'total'])


def to_money(value):
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(quantity, unit_price):
    return to_money(Decimal(str(unit_price)) * quantity)


def get_tax_rate():
    return Decimal(str(settings.POS_TAX_RATE))


def calculate_totals(lines, tax_rate=None):
    """
    Totals for ``(quantity, unit_price)`` pairs.

    Tax is rounded half-up to the cent on the whole subtotal, and the total
    is always subtotal + tax.
    """
    if tax_rate is None:
        tax_rate = get_tax_rate()
    subtotal = sum((line_total(quantity, unit_price) for quantity, unit_price in lines), Decimal('0.00'))
    subtotal = to_money(subtotal)
    tax = to_money(subtotal * Decimal(str(tax_rate)))
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)
