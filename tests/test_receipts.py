"""Receipt numbering, issuing and rendering."""
from decimal import Decimal
import uuid

import pytest

from orders.models import Order
from orders.settlement import SettlementEngine
from receipts.issuer import ReceiptIssuer
from receipts.models import Receipt
from receipts.numbering import parse_base36_prefix, receipt_counter, receipt_number


@pytest.mark.parametrize('order_id, expected', [
    ('00000000-0000-0000-0000-000000000006', 'BPR 007'),
    ('00000000-0000-0000-0000-0000000000rr', 'BPR 001'),
    ('00000000-0000-0000-0000-00000000000a', 'BPR 011'),
])
def test_receipt_number_from_order_id(order_id, expected):
    assert receipt_number(order_id, prefix='BPR') == expected


def test_receipt_number_is_deterministic():
    order_id = uuid.uuid4()
    assert receipt_number(order_id) == receipt_number(str(order_id))


def test_counter_stays_in_range():
    for _ in range(50):
        assert 1 <= receipt_counter(uuid.uuid4()) <= 999


def test_counter_without_base36_digits_is_one():
    assert receipt_counter('order-------') == 1


def test_parse_base36_prefix_stops_at_first_non_digit():
    assert parse_base36_prefix('Z1-9') == 35 * 36 + 1
    assert parse_base36_prefix('-abc') is None


@pytest.fixture
def settled_order(db, house_red, jollof, waiter):
    result = SettlementEngine(tax_rate=Decimal('0.0875')).settle(
        [
            {'menu_item_id': str(house_red.pk), 'quantity': 2, 'special_requests': 'chilled'},
            {'menu_item_id': str(jollof.pk), 'quantity': 1},
        ],
        'card', waiter=waiter, table_number=5, customer_name='Tunde'
    )
    return Order.objects.get(pk=result.order_id)


def test_build_snapshot(settled_order, settings):
    snapshot = ReceiptIssuer(prefix='BPR').build(settled_order)
    assert snapshot['receipt_number'] == receipt_number(settled_order.pk, prefix='BPR')
    assert snapshot['restaurant']['name'] == settings.POS_RESTAURANT_NAME
    assert snapshot['table_number'] == 5
    assert snapshot['waiter'] == 'John Doe'
    assert snapshot['subtotal'] == '27.99'
    assert snapshot['tax'] == '2.45'
    assert snapshot['total'] == '30.44'
    assert [item['name'] for item in snapshot['items']] == ['House Red', 'Jollof Rice']


def test_issue_is_idempotent(settled_order):
    issuer = ReceiptIssuer()
    first, created = issuer.issue(settled_order)
    second, created_again = issuer.issue(settled_order)

    assert created and not created_again
    assert first.pk == second.pk
    assert Receipt.objects.filter(order=settled_order).count() == 1


def test_render_does_not_write(settled_order):
    issuer = ReceiptIssuer()
    html = issuer.render(settled_order, fmt='html')
    assert Receipt.objects.count() == 0
    assert 'House Red' in html
    assert issuer.number_for(settled_order) in html


def test_render_text_from_stored_receipt(settled_order):
    issuer = ReceiptIssuer()
    receipt, _ = issuer.issue(settled_order)
    text = issuer.render(receipt, fmt='text')
    assert receipt.receipt_number in text
    assert '30.44' in text
    assert 'chilled' in text


def test_render_rejects_unknown_format(settled_order):
    with pytest.raises(ValueError):
        ReceiptIssuer().render(settled_order, fmt='pdf')


def test_receipt_endpoints(settled_order, waiter_client, other_waiter_client):
    url = f'/receipts/{settled_order.pk}/'

    assert waiter_client.get(url).status_code == 404

    created = waiter_client.post(url)
    assert created.status_code == 201
    assert created.data['receipt_number'] == receipt_number(settled_order.pk)

    assert waiter_client.post(url).status_code == 200
    assert waiter_client.get(url).status_code == 200
    assert other_waiter_client.get(url).status_code == 403

    printed = waiter_client.get(f'/receipts/{settled_order.pk}/print/')
    assert printed.status_code == 200
    assert printed['Content-Type'].startswith('text/html')

    text = waiter_client.get(f'/receipts/{settled_order.pk}/text/')
    assert text['Content-Type'].startswith('text/plain')
