"""
Shop Admin client

API wrapper plus the state stores the admin console keeps on its side:
auth session, theme, dashboard widget order and the last fetched page of
every entity. Requests go through a transport with the Flask test client
interface, by default the in-process shopadmin app, so nothing touches the
network.
"""

import json
import logging
import os
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

AUTH_STORAGE_KEY = 'auth-storage'
THEME_STORAGE_KEY = 'theme-storage'
WIDGET_ORDER_KEY = 'dashboardWidgetOrder_v4'

# big enough to pull every row in one go for dropdowns
NO_PAGINATION_LIMIT = 1000

DEFAULT_WIDGET_ORDER = [
    'totalRevenue',
    'preparingOrders',
    'shippingOrders',
    'completedOrders',
    'lowStockAlert',
    'outOfStockAlert',
    'userStatusChart',
    'productCategoryChart',
    'recentOrders',
    'reviewChart',
]

EMPTY_PAGINATION = {'page': 1, 'limit': 10, 'total': 0, 'totalPages': 0}


class ApiError(Exception):
    """non-success envelope, carries the http status and the error code"""

    def __init__(self, status, code, message, errors=None):
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message
        self.errors = errors or []

    def __repr__(self):
        return f'ApiError({self.status}, {self.code!r}, {self.message!r})'


def build_query_string(params):
    # empty values are dropped so the server falls back to its defaults
    cleaned = {k: v for k, v in (params or {}).items() if v is not None and v != ''}
    return '?' + urlencode(cleaned) if cleaned else ''


def handle_response(response):
    """unwrap the envelope, raise ApiError when success is false"""
    if response.status_code == 204:
        return {}

    body = response.get_json(silent=True)
    if not isinstance(body, dict):
        raise ApiError(response.status_code, 'PARSE_ERROR', 'Response is not valid JSON')

    if response.status_code >= 400 or not body.get('success'):
        raise ApiError(
            response.status_code,
            body.get('code', 'UNKNOWN_ERROR'),
            body.get('message') or 'Request failed',
            body.get('errors')
        )
    return body


class ApiClient:
    def __init__(self, transport=None, token=None, base_url='/api'):
        if transport is None:
            import shopadmin
            transport = shopadmin.app.test_client()
        self.transport = transport
        self.token = token
        self.base_url = base_url.rstrip('/')

        self.users = UsersApi(self, 'users')
        self.customers = CustomersApi(self, 'customers')
        self.products = ProductsApi(self, 'products')
        self.orders = OrdersApi(self, 'orders')
        self.reviews = ReviewsApi(self, 'reviews')
        self.auth = AuthApi(self)
        self.dashboard = DashboardApi(self)

    def request(self, method, path, body=None, params=None):
        headers = {'Content-Type': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        url = f'{self.base_url}{path}{build_query_string(params)}'
        logger.debug('%s %s', method, url)
        response = self.transport.open(url, method=method, headers=headers, json=body)
        return handle_response(response)

    def data(self, method, path, body=None, params=None):
        return self.request(method, path, body, params).get('data')


class _Resource:
    """list/get/create/delete shared by every entity endpoint"""

    def __init__(self, client, name):
        self.client = client
        self.path = f'/{name}'

    def get_all(self, **params):
        return self.client.data('GET', self.path, params=params)

    def get_all_no_pagination(self, **params):
        params['limit'] = NO_PAGINATION_LIMIT
        params.setdefault('page', 1)
        return self.get_all(**params)['items']

    def get_by_id(self, item_id):
        return self.client.data('GET', f'{self.path}/{item_id}')

    def create(self, data):
        return self.client.data('POST', self.path, data)

    def delete(self, item_id):
        self.client.request('DELETE', f'{self.path}/{item_id}')


class UsersApi(_Resource):
    def update(self, user_id, data):
        return self.client.data('PUT', f'{self.path}/{user_id}', data)

    def update_role(self, user_id, role):
        return self.client.data('PATCH', f'{self.path}/{user_id}/role', {'role': role})

    def update_status(self, user_id, status):
        return self.client.data('PATCH', f'{self.path}/{user_id}/status', {'status': status})

    def approve(self, user_id):
        return self.client.data('POST', f'{self.path}/{user_id}/approve')

    def reject(self, user_id, rejection_reason):
        return self.client.data('POST', f'{self.path}/{user_id}/reject', {'rejectionReason': rejection_reason})


class CustomersApi(_Resource):
    def update(self, customer_id, data):
        return self.client.data('PATCH', f'{self.path}/{customer_id}', data)

    def update_status(self, customer_id, status):
        return self.client.data('PATCH', f'{self.path}/{customer_id}/status', {'status': status})


class ProductsApi(_Resource):
    def update(self, product_id, data):
        return self.client.data('PUT', f'{self.path}/{product_id}', data)

    def update_stock(self, product_id, stock):
        return self.client.data('PATCH', f'{self.path}/{product_id}/stock', {'stock': stock})

    def update_status(self, product_id, status):
        return self.client.data('PATCH', f'{self.path}/{product_id}/status', {'status': status})


class OrdersApi(_Resource):
    def update_status(self, order_id, status, cancellation_reason=None):
        body = {'status': status}
        if cancellation_reason:
            body['cancellationReason'] = cancellation_reason
        return self.client.data('PATCH', f'{self.path}/{order_id}/status', body)


class ReviewsApi(_Resource):
    pass


class AuthApi:
    def __init__(self, client):
        self.client = client

    def login(self, email, password):
        return self.client.data('POST', '/auth/login', {'email': email, 'password': password})

    def register(self, data):
        return self.client.data('POST', '/auth/register', data)

    def logout(self):
        self.client.request('POST', '/auth/logout')

    def get_profile(self):
        return self.client.data('GET', '/users/me')

    def update_profile(self, data):
        return self.client.data('PATCH', '/users/me', data)

    def change_password(self, current_password, new_password):
        self.client.request('PUT', '/auth/password', {
            'currentPassword': current_password,
            'newPassword': new_password
        })


class DashboardApi:
    def __init__(self, client):
        self.client = client

    def get_stats(self):
        return self.client.data('GET', '/dashboard/stats')


# ============== STORES ==============

class LocalStorage:
    """key/value json store, kept in a file when a path is given"""

    def __init__(self, path=None):
        self.path = path
        self._data = {}
        if path and os.path.exists(path):
            try:
                with open(path, encoding='utf-8') as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    self._data = loaded
            except ValueError:
                logger.warning('ignoring unreadable storage file %s', path)

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = value
        self._flush()

    def remove(self, key):
        if self._data.pop(key, None) is not None:
            self._flush()

    def _flush(self):
        if not self.path:
            return
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)


class AuthStore:
    """logged-in admin and token, survives restarts through storage"""

    def __init__(self, client=None, storage=None):
        self.client = client or ApiClient()
        self.storage = storage or LocalStorage()
        saved = self.storage.get(AUTH_STORAGE_KEY) or {}
        self.user = saved.get('user')
        self.token = saved.get('token')
        self.is_authenticated = bool(saved.get('isAuthenticated') and self.token)
        self.client.token = self.token

    def _persist(self):
        self.storage.set(AUTH_STORAGE_KEY, {
            'user': self.user,
            'token': self.token,
            'isAuthenticated': self.is_authenticated
        })

    def login(self, email, password):
        result = self.client.auth.login(email, password)
        self.user = result['user']
        self.token = result['token']
        self.is_authenticated = True
        self.client.token = self.token
        self._persist()
        logger.info('logged in as %s', self.user['email'])
        return self.user

    def register(self, data):
        # new accounts start PENDING, so there is nothing to log in with yet
        return self.client.auth.register(data)

    def logout(self):
        self.user = None
        self.token = None
        self.is_authenticated = False
        self.client.token = None
        self.storage.remove(AUTH_STORAGE_KEY)

    def update_profile(self, data):
        self.user = self.client.auth.update_profile(data)
        self._persist()
        return self.user

    def change_password(self, current_password, new_password):
        self.client.auth.change_password(current_password, new_password)


class ThemeStore:
    def __init__(self, storage=None):
        self.storage = storage or LocalStorage()
        saved = self.storage.get(THEME_STORAGE_KEY) or {}
        self.is_dark_mode = bool(saved.get('isDarkMode', False))
        self.is_sidebar_open = bool(saved.get('isSidebarOpen', True))

    def _persist(self):
        self.storage.set(THEME_STORAGE_KEY, {
            'isDarkMode': self.is_dark_mode,
            'isSidebarOpen': self.is_sidebar_open
        })

    def toggle_theme(self):
        self.set_theme(not self.is_dark_mode)

    def set_theme(self, is_dark):
        self.is_dark_mode = bool(is_dark)
        self._persist()

    def toggle_sidebar(self):
        self.set_sidebar_open(not self.is_sidebar_open)

    def set_sidebar_open(self, is_open):
        self.is_sidebar_open = bool(is_open)
        self._persist()


class DashboardLayout:
    """order of the dashboard widgets, unknown or missing names are repaired on load"""

    def __init__(self, storage=None):
        self.storage = storage or LocalStorage()
        saved = self.storage.get(WIDGET_ORDER_KEY)
        if isinstance(saved, list):
            kept = list(dict.fromkeys(w for w in saved if w in DEFAULT_WIDGET_ORDER))
            self.order = kept + [w for w in DEFAULT_WIDGET_ORDER if w not in kept]
        else:
            self.order = list(DEFAULT_WIDGET_ORDER)

    def move(self, widget, index):
        if widget not in self.order:
            raise ValueError(f'unknown widget: {widget}')
        self.order.remove(widget)
        index = max(0, min(index, len(self.order)))
        self.order.insert(index, widget)
        self.storage.set(WIDGET_ORDER_KEY, self.order)
        return self.order

    def reset(self):
        self.order = list(DEFAULT_WIDGET_ORDER)
        self.storage.remove(WIDGET_ORDER_KEY)
        return self.order


class DataStore:
    """last fetched page of every entity plus the dashboard stats.

    List fetches record the error and keep going, mutations record it and
    raise so the caller can show it.
    """

    ENTITIES = ('users', 'customers', 'products', 'orders', 'reviews')

    def __init__(self, client=None):
        self.client = client or ApiClient()
        self.users = []
        self.customers = []
        self.products = []
        self.orders = []
        self.reviews = []
        self.pagination = {name: dict(EMPTY_PAGINATION) for name in self.ENTITIES}
        self.dashboard = None
        self.is_loading = False
        self.error = None
        self._dashboard_listeners = []

    # ---------- dashboard notifications ----------

    def on_dashboard_update(self, callback):
        self._dashboard_listeners.append(callback)

    def _notify_dashboard(self):
        for callback in self._dashboard_listeners:
            callback()

    # ---------- fetching ----------

    def _fetch_page(self, name, params):
        self.is_loading = True
        self.error = None
        try:
            result = getattr(self.client, name).get_all(**params)
            setattr(self, name, result['items'])
            self.pagination[name] = result['pagination']
        except ApiError as e:
            self.error = e.message
            logger.error('fetching %s failed: %s', name, e.message)
        finally:
            self.is_loading = False

    def fetch_users(self, **params):
        self._fetch_page('users', params)

    def fetch_customers(self, **params):
        self._fetch_page('customers', params)

    def fetch_products(self, **params):
        self._fetch_page('products', params)

    def fetch_orders(self, **params):
        self._fetch_page('orders', params)

    def fetch_reviews(self, **params):
        self._fetch_page('reviews', params)

    def _fetch_all(self, name):
        self.is_loading = True
        self.error = None
        try:
            setattr(self, name, getattr(self.client, name).get_all_no_pagination())
        except ApiError as e:
            self.error = e.message
            logger.error('fetching all %s failed: %s', name, e.message)
        finally:
            self.is_loading = False

    def fetch_all_customers(self):
        self._fetch_all('customers')

    def fetch_all_products(self):
        self._fetch_all('products')

    def fetch_dashboard_stats(self):
        self.is_loading = True
        self.error = None
        try:
            self.dashboard = self.client.dashboard.get_stats()
        except ApiError as e:
            self.error = e.message
            logger.error('fetching dashboard stats failed: %s', e.message)
        finally:
            self.is_loading = False

    # ---------- mutations ----------

    def _run(self, call, *args):
        self.is_loading = True
        self.error = None
        try:
            return call(*args)
        except ApiError as e:
            self.error = e.message
            raise
        finally:
            self.is_loading = False

    def _replace(self, name, item):
        rows = getattr(self, name)
        setattr(self, name, [item if row['id'] == item['id'] else row for row in rows])

    def _drop(self, name, item_id):
        setattr(self, name, [row for row in getattr(self, name) if row['id'] != item_id])

    def _prepend(self, name, item):
        setattr(self, name, [item] + getattr(self, name))

    # users

    def create_user(self, data):
        user = self._run(self.client.users.create, data)
        self._prepend('users', user)
        return user

    def update_user(self, user_id, data):
        user = self._run(self.client.users.update, user_id, data)
        self._replace('users', user)
        return user

    def update_user_role(self, user_id, role):
        user = self._run(self.client.users.update_role, user_id, role)
        self._replace('users', user)
        return user

    def update_user_status(self, user_id, status):
        user = self._run(self.client.users.update_status, user_id, status)
        self._replace('users', user)
        return user

    def approve_user(self, user_id):
        user = self._run(self.client.users.approve, user_id)
        self._replace('users', user)
        return user

    def reject_user(self, user_id, reason):
        user = self._run(self.client.users.reject, user_id, reason)
        self._replace('users', user)
        return user

    def delete_user(self, user_id):
        self._run(self.client.users.delete, user_id)
        self._drop('users', user_id)
        self._notify_dashboard()

    # customers

    def create_customer(self, data):
        customer = self._run(self.client.customers.create, data)
        self._prepend('customers', customer)
        return customer

    def update_customer(self, customer_id, data):
        customer = self._run(self.client.customers.update, customer_id, data)
        self._replace('customers', customer)
        return customer

    def update_customer_status(self, customer_id, status):
        customer = self._run(self.client.customers.update_status, customer_id, status)
        self._replace('customers', customer)
        self._notify_dashboard()
        return customer

    def delete_customer(self, customer_id):
        self._run(self.client.customers.delete, customer_id)
        self._drop('customers', customer_id)
        self._notify_dashboard()

    # products

    def create_product(self, data):
        product = self._run(self.client.products.create, data)
        self._prepend('products', product)
        return product

    def update_product(self, product_id, data):
        product = self._run(self.client.products.update, product_id, data)
        self._replace('products', product)
        return product

    def update_product_stock(self, product_id, stock):
        product = self._run(self.client.products.update_stock, product_id, stock)
        self._replace('products', product)
        self._notify_dashboard()
        return product

    def update_product_status(self, product_id, status):
        product = self._run(self.client.products.update_status, product_id, status)
        self._replace('products', product)
        self._notify_dashboard()
        return product

    def delete_product(self, product_id):
        self._run(self.client.products.delete, product_id)
        self._drop('products', product_id)
        self._notify_dashboard()

    # orders

    def create_order(self, data):
        order = self._run(self.client.orders.create, data)
        self._prepend('orders', order)
        return order

    def update_order_status(self, order_id, status, cancellation_reason=None):
        order = self._run(self.client.orders.update_status, order_id, status, cancellation_reason)
        self._replace('orders', order)
        self._notify_dashboard()
        return order

    def delete_order(self, order_id):
        self._run(self.client.orders.delete, order_id)
        self._drop('orders', order_id)
        self._notify_dashboard()

    # reviews

    def create_review(self, data):
        review = self._run(self.client.reviews.create, data)
        self._prepend('reviews', review)
        return review

    def delete_review(self, review_id):
        self._run(self.client.reviews.delete, review_id)
        self._drop('reviews', review_id)
        self._notify_dashboard()
