"""
Shared fixtures: fresh seed data for every test plus signed-in clients
"""

import pytest

import shopadmin

TEST_SEED = 1234


@pytest.fixture(autouse=True)
def fresh_data():
    """Reseed every store so tests never see each other's writes"""
    shopadmin.reset_data(seed=TEST_SEED)
    yield


@pytest.fixture
def client():
    shopadmin.app.config['TESTING'] = True
    return shopadmin.app.test_client()


def bearer(user_id):
    user = shopadmin.find_by_id(shopadmin.users, user_id)
    return {'Authorization': f'Bearer {shopadmin.generate_token(user)}'}


@pytest.fixture
def super_headers():
    return bearer('0')


@pytest.fixture
def operation_headers():
    return bearer('1')


@pytest.fixture
def cs_headers():
    return bearer('2')


@pytest.fixture
def new_customer(client, super_headers):
    """A customer with no orders or reviews yet"""
    response = client.post('/api/customers', headers=super_headers, json={
        'name': 'Test Customer',
        'email': 'test.customer@example.com',
        'phone': '010-0000-9999'
    })
    return response.get_json()['data']


@pytest.fixture
def new_product(client, super_headers):
    """An AVAILABLE product with 10 units at 10,000 each"""
    response = client.post('/api/products', headers=super_headers, json={
        'name': 'Test Product',
        'category': 'TOYS',
        'price': '10,000원',
        'stock': 10
    })
    return response.get_json()['data']
