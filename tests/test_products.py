"""
Tests for product endpoints and the stock/status rules
"""

import pytest

import shopadmin


class TestProductCreate:
    """Test cases for POST /api/products"""

    def test_create_product(self, new_product):
        assert new_product['id'] == 'P101'
        assert new_product['price'] == '10,000원'
        assert new_product['status'] == 'AVAILABLE'
        assert new_product['createdBy'] == '0'
        assert shopadmin.products[0]['id'] == 'P101'

    def test_create_with_zero_stock_is_sold_out(self, client, operation_headers):
        response = client.post('/api/products', headers=operation_headers, json={
            'name': 'Empty Shelf', 'category': 'BOOKS', 'price': 5000, 'stock': 0
        })
        body = response.get_json()
        assert body['data']['status'] == 'SOLD_OUT'
        assert body['data']['createdByName'] == 'Kim Unyeong'

    @pytest.mark.parametrize('price', [-5000, '-5000', ' -5,000원'])
    def test_negative_price_rejected(self, client, operation_headers, price):
        response = client.post('/api/products', headers=operation_headers, json={
            'name': 'Refund Machine', 'category': 'TOYS', 'price': price, 'stock': 1
        })
        body = response.get_json()
        assert body['code'] == 'VALIDATION_ERROR'
        assert [e['field'] for e in body['errors']] == ['price']

    def test_create_validation(self, client, operation_headers):
        response = client.post('/api/products', headers=operation_headers, json={
            'name': '', 'category': 'CARS', 'price': 'free', 'stock': -1
        })
        body = response.get_json()
        assert body['code'] == 'VALIDATION_ERROR'
        assert {e['field'] for e in body['errors']} == {'name', 'category', 'price', 'stock'}


class TestStockAndStatus:
    """Test cases for the stock-driven status flips"""

    def test_stock_zero_marks_sold_out(self, client, operation_headers, new_product):
        body = client.patch(f"/api/products/{new_product['id']}/stock", headers=operation_headers, json={'stock': 0}).get_json()
        assert body['data']['status'] == 'SOLD_OUT'

    def test_restock_marks_available(self, client, operation_headers, new_product):
        path = f"/api/products/{new_product['id']}/stock"
        client.patch(path, headers=operation_headers, json={'stock': 0})
        body = client.patch(path, headers=operation_headers, json={'stock': 4}).get_json()
        assert body['data']['status'] == 'AVAILABLE'

    def test_discontinued_is_sticky(self, client, operation_headers, new_product):
        pid = new_product['id']
        client.patch(f'/api/products/{pid}/status', headers=operation_headers, json={'status': 'DISCONTINUED'})

        client.patch(f'/api/products/{pid}/stock', headers=operation_headers, json={'stock': 0})
        assert shopadmin.find_by_id(shopadmin.products, pid)['status'] == 'DISCONTINUED'
        client.patch(f'/api/products/{pid}/stock', headers=operation_headers, json={'stock': 20})
        assert shopadmin.find_by_id(shopadmin.products, pid)['status'] == 'DISCONTINUED'

    def test_available_without_stock_stays_sold_out(self, client, operation_headers, new_product):
        pid = new_product['id']
        client.patch(f'/api/products/{pid}/stock', headers=operation_headers, json={'stock': 0})
        body = client.patch(f'/api/products/{pid}/status', headers=operation_headers, json={'status': 'AVAILABLE'}).get_json()
        assert body['data']['status'] == 'SOLD_OUT'

    def test_manual_sold_out_is_kept(self, client, operation_headers, new_product):
        body = client.patch(f"/api/products/{new_product['id']}/status", headers=operation_headers, json={'status': 'SOLD_OUT'}).get_json()
        assert body['data']['status'] == 'SOLD_OUT'
        assert body['data']['stock'] == 10

    def test_negative_stock_rejected(self, client, operation_headers, new_product):
        response = client.patch(f"/api/products/{new_product['id']}/stock", headers=operation_headers, json={'stock': -3})
        assert response.get_json()['code'] == 'VALIDATION_ERROR'

    def test_stock_change_is_logged(self, client, operation_headers, new_product):
        client.patch(f"/api/products/{new_product['id']}/stock", headers=operation_headers, json={'stock': 7})
        entry = shopadmin.inventory_log[-1]
        assert entry['product'] == new_product['id']
        assert entry['change'] == -3
        assert entry['stock_after'] == 7

    def test_sync_product_status_helper(self):
        product = {'stock': 0, 'status': 'AVAILABLE'}
        assert shopadmin.sync_product_status(product)['status'] == 'SOLD_OUT'
        product['stock'] = 2
        assert shopadmin.sync_product_status(product)['status'] == 'AVAILABLE'
        product['status'] = 'SOLD_OUT'
        assert shopadmin.sync_product_status(product, restock=False)['status'] == 'SOLD_OUT'


class TestProductReadAndUpdate:
    """Test cases for product detail and basic edits"""

    def test_detail_includes_review_summary(self, client, cs_headers):
        product_id = shopadmin.reviews[0]['productId']
        body = client.get(f'/api/products/{product_id}', headers=cs_headers).get_json()
        summary = body['data']['reviewSummary']
        ratings = [r['rating'] for r in shopadmin.reviews if r['productId'] == product_id]

        assert summary['totalReviews'] == len(ratings)
        assert summary['averageRating'] == float(shopadmin.average_rating(ratings))
        assert sum(summary[k] for k in ('fiveStarCount', 'fourStarCount', 'threeStarCount', 'twoStarCount', 'oneStarCount')) == len(ratings)
        assert len(body['data']['recentReviews']) == min(3, len(ratings))

    def test_average_rounds_halves_up(self, client, cs_headers, new_product):
        """Test ratings 5,4,4,4 average to 4.3, not the banker's 4.2"""
        for i, rating in enumerate((5, 4, 4, 4)):
            shopadmin.reviews.append({
                'id': f'R9{i:02d}', 'orderId': f'ORDER-99{i:02d}', 'productId': new_product['id'],
                'customerId': 'C001', 'customer': 'Choi Wonbin', 'customerEmail': 'wonbin@example.com',
                'product': new_product['name'], 'rating': rating, 'comment': 'ok', 'date': shopadmin.today_str()
            })
        body = client.get(f"/api/products/{new_product['id']}", headers=cs_headers).get_json()
        assert body['data']['reviewSummary']['averageRating'] == 4.3

    def test_detail_without_reviews(self, client, cs_headers, new_product):
        body = client.get(f"/api/products/{new_product['id']}", headers=cs_headers).get_json()
        assert body['data']['reviewSummary']['averageRating'] == 0
        assert body['data']['recentReviews'] == []

    def test_update_basic_fields_only(self, client, operation_headers, new_product):
        body = client.put(f"/api/products/{new_product['id']}", headers=operation_headers, json={
            'price': 12000, 'stock': 999
        }).get_json()
        assert body['data']['price'] == '12,000원'
        assert body['data']['stock'] == 10

    def test_filter_by_category(self, client, cs_headers):
        body = client.get('/api/products?category=FOOD&limit=100', headers=cs_headers).get_json()
        assert body['data']['pagination']['total'] == 12
        assert all(p['category'] == 'FOOD' for p in body['data']['items'])


class TestProductDelete:
    """Test cases for the delete guard on products"""

    def test_delete_unused_product(self, client, operation_headers, new_product):
        assert client.delete(f"/api/products/{new_product['id']}", headers=operation_headers).status_code == 200
        assert shopadmin.find_by_id(shopadmin.products, new_product['id']) is None

    def test_delete_product_with_orders_is_blocked(self, client, super_headers):
        product_id = shopadmin.orders[0]['productId']
        before = len(shopadmin.products)

        response = client.delete(f'/api/products/{product_id}', headers=super_headers)

        assert response.get_json()['code'] == 'HAS_RELATED_DATA'
        assert len(shopadmin.products) == before

    def test_delete_product_with_only_reviews_is_blocked(self, client, super_headers):
        review = shopadmin.reviews[0]
        product_id = review['productId']
        for order in [o for o in shopadmin.orders if o['productId'] == product_id]:
            assert client.delete(f"/api/orders/{order['id']}", headers=super_headers).status_code == 200
        products_before = len(shopadmin.products)
        reviews_before = len(shopadmin.reviews)

        response = client.delete(f'/api/products/{product_id}', headers=super_headers)

        assert response.status_code == 400
        assert response.get_json()['code'] == 'HAS_RELATED_DATA'
        assert len(shopadmin.products) == products_before
        assert len(shopadmin.reviews) == reviews_before
        assert shopadmin.find_by_id(shopadmin.reviews, review['id']) is not None

    def test_cs_cannot_delete(self, client, cs_headers, new_product):
        assert client.delete(f"/api/products/{new_product['id']}", headers=cs_headers).status_code == 403
