"""Order endpoints: settlement, drafts, workflow and reporting."""
from unittest import mock

import pytest
from django.db import DatabaseError, InterfaceError, OperationalError
from rest_framework.test import APIClient

from orders.models import Order, OrderItem
from receipts.models import Receipt

pytestmark = pytest.mark.django_db


def settle(client, items, payment_method='cash', **extra):
    payload = {'payment_method': payment_method, 'items': items, **extra}
    return client.post('/orders/settle/', payload, format='json')


def item_line(menu_item, quantity):
    return {'menu_item_id': str(menu_item.pk), 'quantity': quantity}


def test_settle_returns_order_and_receipt(waiter_client, waiter, house_red, jollof):
    response = settle(waiter_client, [item_line(house_red, 2), item_line(jollof, 1)], table_number=2)

    assert response.status_code == 201
    assert response.data['success'] is True
    assert response.data['receipt_number'].startswith('BPR ')
    assert response.data['order']['total'] == '30.44'
    assert response.data['order']['waiter'] == waiter.pk
    house_red.refresh_from_db()
    assert house_red.stock_quantity == 1


def test_settle_insufficient_stock_is_conflict(waiter_client, house_red):
    response = settle(waiter_client, [item_line(house_red, 4)])
    assert response.status_code == 409
    assert response.data == {
        'success': False,
        'code': 'insufficient_stock',
        'items': ['House Red'],
        'message': 'Not enough stock for: House Red',
    }


def test_settle_empty_order_is_validation_error(waiter_client):
    response = settle(waiter_client, [])
    assert response.status_code == 400
    assert response.data['code'] == 'validation_error'
    assert response.data['message'] == 'Please add items to the order before submitting.'


def test_settle_zero_quantity_is_validation_error(waiter_client, jollof):
    response = settle(waiter_client, [item_line(jollof, 0)])
    assert response.status_code == 400
    assert response.data['code'] == 'validation_error'


def test_settle_unknown_payment_method_uses_error_envelope(waiter_client, jollof):
    response = settle(waiter_client, [item_line(jollof, 1)], payment_method='voucher')
    assert response.status_code == 400
    assert response.data['error'] is True
    assert 'payment_method' in response.data['details']


def test_settle_database_fault_is_503(waiter_client, house_red):
    with mock.patch.object(OrderItem.objects, 'bulk_create', side_effect=DatabaseError('locked')):
        response = settle(waiter_client, [item_line(house_red, 1)])

    assert response.status_code == 503
    assert response.data['message'] == 'Service temporarily unavailable. Please try again.'
    assert response.data['details'] == {}
    house_red.refresh_from_db()
    assert house_red.stock_quantity == 3


def test_settle_connection_closed_is_503(waiter_client, house_red):
    with mock.patch.object(OrderItem.objects, 'bulk_create',
                           side_effect=InterfaceError('connection already closed')):
        response = settle(waiter_client, [item_line(house_red, 1)])

    assert response.status_code == 503
    house_red.refresh_from_db()
    assert house_red.stock_quantity == 3


def test_receipt_fault_after_commit_still_reports_settlement(waiter_client, house_red):
    with mock.patch.object(Receipt.objects, 'create', side_effect=OperationalError('disk I/O error')):
        response = settle(waiter_client, [item_line(house_red, 1)])

    # The order committed, so the client must not be told to retry
    assert response.status_code == 201
    assert response.data['success'] is True
    assert response.data['receipt_number'] is None
    assert Order.objects.count() == 1
    house_red.refresh_from_db()
    assert house_red.stock_quantity == 2

    issued = waiter_client.post(f"/receipts/{response.data['order_id']}/")
    assert issued.status_code == 201


def test_settle_requires_authentication(api_client, jollof):
    response = settle(api_client, [item_line(jollof, 1)])
    assert response.status_code == 401
    assert response.data['reauthenticate'] is True


def test_waiters_only_see_their_orders(waiter_client, other_waiter_client, admin_client, jollof):
    order_id = settle(waiter_client, [item_line(jollof, 1)]).data['order_id']
    settle(other_waiter_client, [item_line(jollof, 2)])

    own = waiter_client.get('/orders/')
    assert [row['id'] for row in own.data['results']] == [order_id]
    assert admin_client.get('/orders/').data['count'] == 2

    assert waiter_client.get(f'/orders/{order_id}/').status_code == 200
    assert other_waiter_client.get(f'/orders/{order_id}/').status_code == 404


def test_status_moves_forward_only(waiter_client, jollof):
    order_id = settle(waiter_client, [item_line(jollof, 1)]).data['order_id']
    url = f'/orders/{order_id}/status/'

    response = waiter_client.patch(url, {'status': 'preparing'}, format='json')
    assert response.status_code == 200
    assert response.data['status'] == 'preparing'

    backwards = waiter_client.patch(url, {'status': 'pending'}, format='json')
    assert backwards.status_code == 400
    assert Order.objects.get(pk=order_id).status == 'preparing'


def test_active_orders_exclude_served(waiter_client, jollof):
    served_id = settle(waiter_client, [item_line(jollof, 1)]).data['order_id']
    active_id = settle(waiter_client, [item_line(jollof, 1)]).data['order_id']
    Order.objects.filter(pk=served_id).update(status=Order.STATUS_SERVED)

    response = waiter_client.get('/orders/active/')
    assert [row['id'] for row in response.data] == [active_id]


def test_statistics(admin_client, waiter_client, jollof):
    settle(waiter_client, [item_line(jollof, 1)], payment_method='card')
    settle(waiter_client, [item_line(jollof, 2)], payment_method='cash')

    response = admin_client.get('/orders/statistics/', {'days': 3})
    assert response.status_code == 200
    assert response.data['order_count'] == 2
    assert len(response.data['daily']) == 3
    assert response.data['daily'][-1]['orders'] == 2
    assert set(response.data['by_payment_method']) == {'card', 'cash'}
    assert response.data['active_orders'] == 2


def test_changes_feed(waiter_client, house_red):
    assert waiter_client.get('/orders/changes/').status_code == 400

    settle(waiter_client, [item_line(house_red, 1)])
    response = waiter_client.get('/orders/changes/', {'since': '2000-01-01T00:00:00Z'})

    assert response.status_code == 200
    assert len(response.data['orders']) == 1
    assert response.data['menu_items'][0]['stock_quantity'] == 2
    assert response.data['poll_interval'] == 5


class TestDraftOrder:
    def add(self, client, menu_item, quantity=1):
        return client.post(
            '/orders/draft/items/',
            {'menu_item_id': str(menu_item.pk), 'quantity': quantity},
            format='json'
        )

    def test_build_and_checkout(self, waiter_client, house_red, jollof):
        waiter_client.patch('/orders/draft/', {'table_number': 6, 'customer_name': 'Tunde'}, format='json')
        assert self.add(waiter_client, house_red, 2).status_code == 201
        assert self.add(waiter_client, jollof).status_code == 201

        draft = waiter_client.get('/orders/draft/').data['draft']
        assert draft['table_number'] == 6
        assert draft['total'] == '27.99'

        response = waiter_client.post('/orders/draft/checkout/', {'payment_method': 'card'}, format='json')
        assert response.status_code == 201
        order = Order.objects.get(pk=response.data['order_id'])
        assert order.table_number == 6
        assert order.customer_name == 'Tunde'

        after = waiter_client.get('/orders/draft/').data['draft']
        assert after['lines'] == []
        assert after['table_number'] == 6

    def test_add_beyond_stock_is_conflict(self, waiter_client, house_red):
        response = self.add(waiter_client, house_red, 4)
        assert response.status_code == 409
        assert response.data['notice'] == 'insufficient_stock'
        assert waiter_client.get('/orders/draft/').data['draft']['lines'] == []

    def test_update_clamps_and_removes(self, waiter_client, house_red):
        line_id = self.add(waiter_client, house_red, 1).data['draft']['lines'][0]['id']
        url = f'/orders/draft/items/{line_id}/'

        clamped = waiter_client.patch(url, {'quantity': 9}, format='json')
        assert clamped.data['notice'] == 'clamped'
        assert clamped.data['draft']['lines'][0]['quantity'] == 3

        removed = waiter_client.patch(url, {'quantity': 0}, format='json')
        assert removed.data['notice'] == 'removed'
        assert removed.data['draft']['lines'] == []
        assert waiter_client.delete(url).status_code == 404

    def test_checkout_conflict_keeps_draft(self, waiter_client, other_waiter_client, house_red):
        self.add(waiter_client, house_red, 2)
        assert settle(other_waiter_client, [item_line(house_red, 2)]).status_code == 201

        response = waiter_client.post('/orders/draft/checkout/', {'payment_method': 'cash'}, format='json')
        assert response.status_code == 409
        assert response.data['items'] == ['House Red']
        assert waiter_client.get('/orders/draft/').data['draft']['lines'][0]['quantity'] == 2

    def test_checkout_empty_draft(self, waiter_client):
        response = waiter_client.post('/orders/draft/checkout/', {'payment_method': 'cash'}, format='json')
        assert response.status_code == 400
        assert response.data['code'] == 'validation_error'

    def test_discard(self, waiter_client, jollof):
        self.add(waiter_client, jollof)
        assert waiter_client.delete('/orders/draft/').status_code == 204
        assert waiter_client.get('/orders/draft/').data['draft']['lines'] == []

    def test_draft_follows_the_account_not_the_cookie(self, waiter, house_red):
        first_device, second_device = APIClient(), APIClient()
        first_device.force_authenticate(user=waiter)
        second_device.force_authenticate(user=waiter)

        self.add(first_device, house_red, 2)

        draft = second_device.get('/orders/draft/').data['draft']
        assert [line['quantity'] for line in draft['lines']] == [2]

    def test_drafts_are_per_waiter(self, waiter_client, other_waiter_client, jollof):
        self.add(waiter_client, jollof)
        assert other_waiter_client.get('/orders/draft/').data['draft']['lines'] == []
