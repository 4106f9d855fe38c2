"""Totals and tax rounding."""
from decimal import Decimal

from orders.pricing import calculate_totals, line_total, to_money


def test_tax_is_rounded_half_up_on_subtotal():
    # 10.00 * 0.0875 = 0.875 -> 0.88
    totals = calculate_totals([(1, Decimal('10.00'))], Decimal('0.0875'))
    assert totals.subtotal == Decimal('10.00')
    assert totals.tax == Decimal('0.88')
    assert totals.total == Decimal('10.88')


def test_total_is_subtotal_plus_tax():
    totals = calculate_totals([(3, Decimal('7.50')), (2, Decimal('12.99'))])
    assert totals.subtotal == Decimal('48.48')
    assert totals.total == totals.subtotal + totals.tax
    assert totals.tax == Decimal('4.24')


def test_empty_lines_give_zero_totals():
    totals = calculate_totals([])
    assert totals == (Decimal('0.00'), Decimal('0.00'), Decimal('0.00'))


def test_line_total_accepts_floats_and_strings():
    assert line_total(3, 0.1) == Decimal('0.30')
    assert line_total(2, '4.005') == Decimal('8.01')


def test_to_money_rounds_to_cents():
    assert to_money('2.345') == Decimal('2.35')
    assert to_money(Decimal('2.344')) == Decimal('2.34')
