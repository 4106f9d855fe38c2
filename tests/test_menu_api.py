"""Menu and stock endpoints."""
from decimal import Decimal

import pytest

from inventory.models import MenuItem
from inventory.stock import adjust_stock, decrement_stock
from orders.settlement import SettlementEngine

pytestmark = pytest.mark.django_db


def test_staff_can_list_menu(waiter_client, house_red, jollof):
    response = waiter_client.get('/menu/items/')
    assert response.status_code == 200
    names = [row['name'] for row in response.data['results']]
    assert names == ['House Red', 'Jollof Rice']

    drinks = waiter_client.get('/menu/items/', {'item_type': 'drink'})
    assert [row['name'] for row in drinks.data['results']] == ['House Red']


def test_waiter_cannot_create_menu_item(waiter_client):
    response = waiter_client.post('/menu/items/', {'name': 'Stout', 'price': '5.00', 'item_type': 'drink'})
    assert response.status_code == 403


def test_admin_creates_drink_with_stock(admin_client):
    response = admin_client.post(
        '/menu/items/',
        {'name': 'Stout', 'price': '5.00', 'item_type': 'drink', 'stock_quantity': 12},
        format='json'
    )
    assert response.status_code == 201
    assert response.data['is_stock_tracked'] is True
    assert response.data['is_low_stock'] is False


def test_food_cannot_carry_stock(admin_client):
    response = admin_client.post(
        '/menu/items/',
        {'name': 'Suya', 'price': '8.00', 'item_type': 'food', 'stock_quantity': 4},
        format='json'
    )
    assert response.status_code == 400
    assert 'stock_quantity' in response.data['details']


def test_update_rejects_stock_change(admin_client, house_red):
    response = admin_client.patch(
        f'/menu/items/{house_red.pk}/', {'price': '8.00', 'stock_quantity': 50}, format='json'
    )
    assert response.status_code == 400
    assert f'menu/items/{house_red.pk}/stock/' in str(response.data['details']['stock_quantity'])
    house_red.refresh_from_db()
    assert house_red.price == Decimal('7.50')
    assert house_red.stock_quantity == 3


def test_update_accepts_unchanged_stock(admin_client, house_red):
    response = admin_client.patch(
        f'/menu/items/{house_red.pk}/', {'price': '8.00', 'stock_quantity': 3}, format='json'
    )
    assert response.status_code == 200
    house_red.refresh_from_db()
    assert house_red.price == Decimal('8.00')


def test_restock_and_delta(admin_client, house_red):
    url = f'/menu/items/{house_red.pk}/stock/'

    assert admin_client.post(url, {'stock_quantity': 20}, format='json').data['stock_quantity'] == 20
    assert admin_client.post(url, {'delta': -5}, format='json').data['stock_quantity'] == 15
    assert admin_client.post(url, {'delta': -16}, format='json').status_code == 409
    assert admin_client.post(url, {'delta': 1, 'stock_quantity': 2}, format='json').status_code == 400


def test_stock_endpoint_rejects_food(admin_client, jollof):
    response = admin_client.post(f'/menu/items/{jollof.pk}/stock/', {'stock_quantity': 5}, format='json')
    assert response.status_code == 400


def test_low_stock_items(waiter_client, house_red, lager, jollof):
    response = waiter_client.get('/menu/low-stock/')
    assert response.data['threshold'] == 10
    assert [row['name'] for row in response.data['items']] == ['House Red']


def test_delete_item_with_sales_marks_it_unavailable(admin_client, jollof):
    SettlementEngine().settle([{'menu_item_id': str(jollof.pk), 'quantity': 1}], 'cash')

    response = admin_client.delete(f'/menu/items/{jollof.pk}/')
    assert response.status_code == 200
    jollof.refresh_from_db()
    assert jollof.is_available is False


def test_delete_unsold_item(admin_client, lager):
    assert admin_client.delete(f'/menu/items/{lager.pk}/').status_code == 204
    assert not MenuItem.objects.filter(pk=lager.pk).exists()


def test_guarded_decrement(house_red, jollof):
    assert decrement_stock(house_red.pk, 3)
    assert not decrement_stock(house_red.pk, 1)
    assert not decrement_stock(jollof.pk, 1)
    house_red.refresh_from_db()
    assert house_red.stock_quantity == 0


def test_adjust_stock_skips_untracked_items(jollof):
    assert adjust_stock(jollof, 5) is False
    jollof.refresh_from_db()
    assert jollof.stock_quantity is None


def test_orderable_flags(house_red):
    assert house_red.is_orderable
    assert house_red.is_low_stock
    house_red.stock_quantity = 0
    assert not house_red.is_orderable
