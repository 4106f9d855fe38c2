from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from authentication.models import CustomUser
from inventory.models import MenuItem


@pytest.fixture
def admin_user(db):
    return CustomUser.objects.create_user(
        email='admin@bar.com', password='SecurePassword123!',
        first_name='Ada', last_name='Obi', role=CustomUser.ROLE_ADMIN
    )


@pytest.fixture
def waiter(db):
    return CustomUser.objects.create_user(
        email='waiter@bar.com', password='SecurePassword123!',
        first_name='John', last_name='Doe', role=CustomUser.ROLE_WAITER
    )


@pytest.fixture
def other_waiter(db):
    return CustomUser.objects.create_user(
        email='second@bar.com', password='SecurePassword123!',
        first_name='Mary', last_name='Eze', role=CustomUser.ROLE_WAITER
    )


@pytest.fixture
def house_red(db):
    return MenuItem.objects.create(
        name='House Red', price=Decimal('7.50'),
        item_type=MenuItem.TYPE_DRINK, stock_quantity=3
    )


@pytest.fixture
def lager(db):
    return MenuItem.objects.create(
        name='Lager', price=Decimal('4.00'),
        item_type=MenuItem.TYPE_DRINK, stock_quantity=24
    )


@pytest.fixture
def jollof(db):
    return MenuItem.objects.create(
        name='Jollof Rice', price=Decimal('12.99'),
        item_type=MenuItem.TYPE_FOOD
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def waiter_client(waiter):
    client = APIClient()
    client.force_authenticate(user=waiter)
    return client


@pytest.fixture
def other_waiter_client(other_waiter):
    client = APIClient()
    client.force_authenticate(user=other_waiter)
    return client
