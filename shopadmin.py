"""
Shop Admin mock API
Version 1.4.0

Backend for the shop admin console. Admin accounts, customers, products,
orders and reviews all live in module-level lists and are regenerated on
every start - there is no database behind this, restart = fresh data.

UPDATE 1.2: cancelling an order puts the stock back (warehouse asked)
UPDATE 1.3: deletes are blocked when orders/reviews still point at the row
UPDATE 1.4: dashboard stats are computed per request, no more cache
"""

from flask import Flask, request, jsonify, g, has_request_context
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash, check_password_hash
import base64
import json
import math
import os
import random
import re
import threading
import time
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from functools import wraps

app = Flask(__name__)

# ============== CONFIGURATION ==============
# deployment knobs can be overridden from the environment

HOST = os.environ.get('SHOPADMIN_HOST', '0.0.0.0')
PORT = int(os.environ.get('SHOPADMIN_PORT', 5001))
DEBUG = os.environ.get('SHOPADMIN_DEBUG', '').lower() in ('1', 'true', 'yes')
LOG_LEVEL = os.environ.get('SHOPADMIN_LOG_LEVEL', 'INFO').upper()
# unset = different random data on every start
SEED = int(os.environ['SHOPADMIN_SEED']) if os.environ.get('SHOPADMIN_SEED') else None

VERSION = '1.4.0'
TOKEN_TTL_MS = 24 * 60 * 60 * 1000
PASSWORD_MIN_LENGTH = 8
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
LOW_STOCK_THRESHOLD = 5  # 1..5 units left counts as low stock
RECENT_REVIEWS_LIMIT = 3
RECENT_ORDERS_LIMIT = 10
CURRENCY_SUFFIX = '원'  # amounts are whole KRW
DEFAULT_CATEGORY = 'OTHER'

SEED_START_DATE = date(2025, 1, 1)
SEED_ORDER_COUNT = 100
CS_ORDER_RATE = 0.3  # share of preparing seed orders placed by CS staff
RESERVED_CUSTOMER_ID = 'C041'  # never gets seed orders, kept deletable

ROLES = ('SUPER_ADMIN', 'OPERATION_ADMIN', 'CS_ADMIN')
SUPER_ADMIN, OPERATION_ADMIN, CS_ADMIN = ROLES
MANAGERS = (SUPER_ADMIN, OPERATION_ADMIN)

USER_STATUSES = ('ACTIVE', 'INACTIVE', 'SUSPENDED', 'PENDING', 'REJECTED')
CUSTOMER_STATUSES = ('ACTIVE', 'INACTIVE', 'SUSPENDED')
PRODUCT_STATUSES = ('AVAILABLE', 'SOLD_OUT', 'DISCONTINUED')
ORDER_STATUSES = ('PREPARING', 'SHIPPING', 'DELIVERED', 'CANCELLED')
PRODUCT_CATEGORIES = ('ELECTRONICS', 'FASHION', 'FOOD', 'LIVING', 'SPORTS', 'BEAUTY', 'BOOKS', 'TOYS')

# order lifecycle, anything not listed here is rejected
ORDER_TRANSITIONS = {
    'PREPARING': ('SHIPPING', 'CANCELLED'),
    'SHIPPING': ('DELIVERED',),
    'DELIVERED': (),
    'CANCELLED': (),
}

# fields the sort treats as money even without the currency suffix
AMOUNT_FIELDS = ('price', 'totalSpent', 'amount')

API_MESSAGES = {
    'OK': 'Request completed successfully.',
    'CREATED': 'Resource created successfully.',
    'UNAUTHORIZED': 'Authentication required.',
    'FORBIDDEN': 'You do not have permission to do this.',
    'TOKEN_EXPIRED': 'Token has expired.',
    'INVALID_TOKEN': 'Token is invalid.',
    'ACCOUNT_PENDING': 'Account is waiting for approval.',
    'ACCOUNT_REJECTED': 'Account request was rejected.',
    'ACCOUNT_SUSPENDED': 'Account is suspended.',
    'ACCOUNT_INACTIVE': 'Account is inactive.',
    'INVALID_CREDENTIALS': 'Email or password is incorrect.',
    'VALIDATION_ERROR': 'Input validation failed.',
    'DUPLICATE_EMAIL': 'Email is already in use.',
    'INVALID_EMAIL': 'Email format is invalid.',
    'INVALID_PASSWORD': 'Password is incorrect.',
    'NOT_FOUND': 'Requested resource was not found.',
    'ALREADY_EXISTS': 'Resource already exists.',
    'HAS_RELATED_DATA': 'Related data exists, cannot delete.',
    'CUSTOMER_NOT_FOUND': 'Customer not found. Pick a valid customer.',
    'PRODUCT_NOT_FOUND': 'Product not found. Pick a valid product.',
    'PRODUCT_DISCONTINUED': 'Discontinued products cannot be ordered.',
    'PRODUCT_SOLD_OUT': 'Sold out products cannot be ordered.',
    'INSUFFICIENT_STOCK': 'Not enough stock.',
    'INVALID_STATUS_CHANGE': 'Status change is not allowed.',
    'METHOD_NOT_ALLOWED': 'Method not allowed.',
    'INTERNAL_ERROR': 'Internal server error.',
}

# http errors raised by flask/werkzeug before our handlers run
HTTP_ERROR_CODES = {
    400: 'VALIDATION_ERROR',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
}

# ============== DATA STORAGE ==============
# plain lists, newest rows are inserted at the front where the UI expects it

users = []
customers = []
products = []
orders = []
reviews = []
audit_log = []
inventory_log = []

# one request at a time touches the stores, even under the threaded dev server
store_lock = threading.Lock()

# ============== HELPERS ==============

def hash_password(password):
    return generate_password_hash(password)

def check_password(record, password):
    if not record.get('password') or not password:
        return False
    return check_password_hash(record['password'], password)

def average_rating(ratings):
    """mean to one decimal, halves round up (4.25 -> 4.3)"""
    if not ratings:
        return Decimal('0.0')
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return mean.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)

def now_ms():
    return int(time.time() * 1000)

def today_str():
    return date.today().isoformat()

def log_action(action, user_id=None, data=None):
    # audit trail for every write
    audit_log.append({
        'ts': datetime.now().isoformat(),
        'action': action,
        'user': user_id,
        'data': data,
        'ip': request.remote_addr if has_request_context() else None
    })
    app.logger.debug('audit %s by %s: %s', action, user_id, data)

def log_inventory(product, change, reason, ref_id=None):
    # stock audit trail, stock_after is read after the change was applied
    inventory_log.append({
        'ts': datetime.now().isoformat(),
        'product': product['id'],
        'change': change,
        'reason': reason,
        'ref': ref_id,
        'stock_after': product['stock']
    })

def current_user_id():
    auth = g.get('auth')
    return auth.get('userId') if auth else None

def validate_email(email):
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return isinstance(email, str) and re.match(pattern, email) is not None

def clean_str(value):
    return value.strip() if isinstance(value, str) else ''

def as_int(value):
    """int() for json input - bools and fractions are not ints"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and re.fullmatch(r'\s*-?\d+\s*', value):
        return int(value)
    return None

def parse_amount(value):
    """'1,500,000원' -> 1500000, anything without digits is 0"""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    digits = re.sub(r'\D', '', str(value or ''))
    return int(digits) if digits else 0

def format_amount(amount):
    return f"{int(amount):,}{CURRENCY_SUFFIX}"

def find_by_id(collection, item_id):
    for item in collection:
        if item['id'] == item_id:
            return item
    return None

def remove_by_id(collection, item_id):
    before = len(collection)
    collection[:] = [item for item in collection if item['id'] != item_id]
    return len(collection) < before

def next_numeric_id(collection, prefix='', width=0):
    """max existing number + 1, so ids never repeat after a delete"""
    highest = 0
    for item in collection:
        match = re.fullmatch(re.escape(prefix) + r'(\d+)', str(item['id']))
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}{str(highest + 1).zfill(width)}"

def find_user_by_email(email, exclude_id=None):
    email = (email or '').lower()
    for u in users:
        if u['email'].lower() == email and u['id'] != exclude_id:
            return u
    return None

def find_customer_by_email(email, exclude_id=None):
    email = (email or '').lower()
    for c in customers:
        if c['email'].lower() == email and c['id'] != exclude_id:
            return c
    return None

def without_password(record):
    # never send password hashes to the client
    return {k: v for k, v in record.items() if k != 'password'}

# ---------- response envelope ----------

def ok(data=None, message=None, code='OK', status=200):
    body = {'success': True, 'code': code}
    if message:
        body['message'] = message
    if data is not None:
        body['data'] = data
    return jsonify(body), status

def created(data, message=None):
    return ok(data, message, code='CREATED', status=201)

def fail(code, message=None, status=400, errors=None):
    body = {
        'success': False,
        'code': code,
        'message': message or API_MESSAGES.get(code, code)
    }
    if errors:
        body['errors'] = errors
    return jsonify(body), status

def field_error(field, message):
    return {'field': field, 'message': message}

def validation_failed(errors, message=None):
    return fail('VALIDATION_ERROR', message, 400, errors)

def get_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None

# ---------- mock token ----------
# NOT real JWT: three base64 json parts and a fixed fake signature

def _encode_part(obj):
    raw = json.dumps(obj, ensure_ascii=False, separators=(',', ':'))
    return base64.b64encode(raw.encode('utf-8')).decode('ascii')

def _decode_part(part):
    try:
        return json.loads(base64.b64decode(part.encode('ascii'), validate=True).decode('utf-8'))
    except ValueError:
        # binascii.Error, UnicodeError and JSONDecodeError are all ValueErrors
        return None

def generate_token(user):
    issued = now_ms()
    payload = {
        'userId': user['id'],
        'name': user['name'],
        'email': user['email'],
        'role': user['role'],
        'iat': issued,
        'exp': issued + TOKEN_TTL_MS
    }
    return '.'.join([
        _encode_part({'alg': 'HS256', 'typ': 'JWT'}),
        _encode_part(payload),
        _encode_part({'mock': 'signature'})
    ])

def decode_token(token):
    if not token:
        return None
    parts = token.split('.')
    if len(parts) != 3:
        return None
    payload = _decode_part(parts[1])
    if not isinstance(payload, dict):
        return None
    if 'userId' not in payload or 'role' not in payload:
        return None
    if isinstance(payload.get('exp'), bool) or not isinstance(payload.get('exp'), (int, float)):
        return None
    return payload

def extract_token(auth_header):
    if not auth_header:
        return None
    parts = auth_header.split(' ')
    if len(parts) != 2 or parts[0] != 'Bearer':
        return None
    return parts[1]

def authenticate():
    """returns (payload, None) or (None, error code)"""
    token = extract_token(request.headers.get('Authorization'))
    if not token:
        return None, 'UNAUTHORIZED'
    payload = decode_token(token)
    if payload is None:
        return None, 'INVALID_TOKEN'
    if payload['exp'] < now_ms():
        return None, 'TOKEN_EXPIRED'
    return payload, None

def require_auth(*roles):
    # no roles = any signed in admin
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            payload, code = authenticate()
            if payload is None:
                app.logger.info('%s %s rejected: %s', request.method, request.path, code)
                return fail(code, status=401)
            if roles and payload.get('role') not in roles:
                app.logger.info('%s %s forbidden for role %s', request.method, request.path, payload.get('role'))
                return fail('FORBIDDEN', status=403)
            g.auth = payload
            return f(*args, **kwargs)
        return decorated
    return decorator

# ---------- list queries ----------

def _positive_int_arg(name, default):
    value = as_int(request.args.get(name))
    if value is None or value < 1:
        return default
    return value

def parse_query_params():
    sort_order = request.args.get('sortOrder', 'asc').lower()
    return {
        'search': request.args.get('search', '').strip(),
        'page': _positive_int_arg('page', DEFAULT_PAGE),
        'limit': _positive_int_arg('limit', DEFAULT_LIMIT),
        'sort_by': request.args.get('sortBy', ''),
        'sort_order': 'desc' if sort_order == 'desc' else 'asc'
    }

def sort_value(item, key):
    value = item.get(key)
    if isinstance(value, str) and (CURRENCY_SUFFIX in value or key in AMOUNT_FIELDS):
        return parse_amount(value)
    return value

def _sort_key(value):
    # numbers before text so mixed columns never blow up the comparison
    if isinstance(value, (int, float)):
        return (0, value, '')
    return (1, 0, str(value))

def paginate(data, search='', search_fields=(), filters=None, sort_by='',
             sort_order='asc', page=DEFAULT_PAGE, limit=DEFAULT_LIMIT):
    """search + filter + sort + slice, shared by every list endpoint.

    Search is a case-insensitive substring match over search_fields, filters
    are exact matches on the string form and empty filter values are ignored.
    Equal sort keys keep their store order (list.sort is stable) but nobody
    should rely on that. Rows missing the sort field always go last.
    """
    result = list(data)

    if search and search_fields:
        needle = search.lower()
        result = [
            item for item in result
            if any(item.get(field) and needle in str(item[field]).lower() for field in search_fields)
        ]

    for key, value in (filters or {}).items():
        if value:
            result = [
                item for item in result
                if item.get(key) is not None and str(item[key]) == str(value)
            ]

    if sort_by:
        present = [item for item in result if sort_value(item, sort_by) is not None]
        missing = [item for item in result if sort_value(item, sort_by) is None]
        present.sort(key=lambda item: _sort_key(sort_value(item, sort_by)), reverse=(sort_order == 'desc'))
        result = present + missing

    page = page or DEFAULT_PAGE
    limit = limit or DEFAULT_LIMIT
    total = len(result)
    start = (page - 1) * limit
    return {
        'items': result[start:start + limit],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': math.ceil(total / limit)
        }
    }

def query_collection(collection, search_fields, filter_names=()):
    filters = {name: request.args.get(name, '') for name in filter_names}
    return paginate(collection, search_fields=search_fields, filters=filters, **parse_query_params())

# ---------- derived data ----------

def sync_product_status(product, restock=True):
    """stock 0 forces SOLD_OUT, restock flips SOLD_OUT back. DISCONTINUED is sticky."""
    if product['status'] == 'DISCONTINUED':
        return product
    if product['stock'] <= 0:
        product['status'] = 'SOLD_OUT'
    elif restock and product['status'] == 'SOLD_OUT':
        product['status'] = 'AVAILABLE'
    return product

def deduct_stock(product, quantity, order_id=None):
    product['stock'] -= quantity
    sync_product_status(product)
    log_inventory(product, -quantity, 'order', order_id)

def restore_stock(order, reason):
    product = find_by_id(products, order['productId'])
    if not product:
        # product row is gone, nothing to put back
        return None
    product['stock'] += order['quantity']
    sync_product_status(product)
    log_inventory(product, order['quantity'], reason, order['id'])
    return product

def recalc_customer_totals(customer_id):
    """totalOrders/totalSpent only count orders that were not cancelled"""
    customer = find_by_id(customers, customer_id)
    if not customer:
        return None
    active = [o for o in orders if o['customerId'] == customer_id and o['status'] != 'CANCELLED']
    customer['totalOrders'] = len(active)
    customer['totalSpent'] = format_amount(sum(parse_amount(o['amount']) for o in active))
    return customer

def review_summary(product_id):
    ratings = [r['rating'] for r in reviews if r['productId'] == product_id]
    total = len(ratings)
    return {
        'averageRating': float(average_rating(ratings)) if total else 0,
        'totalReviews': total,
        'fiveStarCount': ratings.count(5),
        'fourStarCount': ratings.count(4),
        'threeStarCount': ratings.count(3),
        'twoStarCount': ratings.count(2),
        'oneStarCount': ratings.count(1)
    }

def recent_reviews(product_id, limit=RECENT_REVIEWS_LIMIT):
    product_reviews = [r for r in reviews if r['productId'] == product_id]
    product_reviews.sort(key=lambda r: r['date'], reverse=True)
    return product_reviews[:limit]

def next_order_ids(day):
    """internal id ORDER-NNNN plus the human order number YYYYMMDD-NNN"""
    order_id = next_numeric_id(orders, 'ORDER-', 4)
    date_part = day.replace('-', '')
    seqs = [
        int(o['orderNo'].split('-', 1)[1])
        for o in orders
        if o['orderNo'].startswith(date_part + '-') and o['orderNo'].split('-', 1)[1].isdigit()
    ]
    return order_id, f"{date_part}-{max(seqs, default=0) + 1:03d}"

def dashboard_stats():
    """everything the dashboard shows, rebuilt from the stores on every call"""
    today = today_str()
    live_orders = [o for o in orders if o['status'] != 'CANCELLED']
    todays_orders = [o for o in live_orders if o['date'] == today]
    low_stock = [p for p in products if 0 < p['stock'] <= LOW_STOCK_THRESHOLD]

    summary = {
        'totalUsers': len(users),
        'activeUsers': len([u for u in users if u['status'] == 'ACTIVE']),
        'totalCustomers': len(customers),
        'activeCustomers': len([c for c in customers if c['status'] == 'ACTIVE']),
        'totalProducts': len(products),
        'lowStockProducts': len(low_stock),
        'totalOrders': len(live_orders),
        'todayOrders': len(todays_orders),
        'totalReviews': len(reviews),
        'averageRating': str(average_rating([r['rating'] for r in reviews]))
    }

    widgets = {
        'totalRevenue': sum(parse_amount(o['amount']) for o in live_orders),
        'todayRevenue': sum(parse_amount(o['amount']) for o in todays_orders),
        'preparingOrders': len([o for o in orders if o['status'] == 'PREPARING']),
        'shippingOrders': len([o for o in orders if o['status'] == 'SHIPPING']),
        'completedOrders': len([o for o in orders if o['status'] == 'DELIVERED']),
        'lowStockProducts': len(low_stock),
        'outOfStockProducts': len([p for p in products if p['status'] == 'SOLD_OUT' or p['stock'] == 0])
    }

    category_counts = {}
    for p in products:
        category = p.get('category') or DEFAULT_CATEGORY
        category_counts[category] = category_counts.get(category, 0) + 1

    charts = {
        'reviewRating': [
            {'rating': rating, 'count': len([r for r in reviews if r['rating'] == rating])}
            for rating in (1, 2, 3, 4, 5)
        ],
        'customerStatus': [
            {'status': status, 'count': count}
            for status, count in (
                (s, len([c for c in customers if c['status'] == s])) for s in CUSTOMER_STATUSES
            )
            if count > 0
        ],
        'productCategory': sorted(
            [{'category': k, 'count': v} for k, v in category_counts.items()],
            key=lambda x: x['count'],
            reverse=True
        )
    }

    return {
        'summary': summary,
        'widgets': widgets,
        'charts': charts,
        'recentOrders': orders[:RECENT_ORDERS_LIMIT]
    }

# ============== INIT DATA ==============

# (id, name, email, password, phone, role, status, extra)
SEED_USERS = [
    ('0', 'admin', 'admin@shopadmin.dev', 'admin1234', '010-0000-0000', SUPER_ADMIN, 'ACTIVE', {}),
    ('1', 'Kim Unyeong', 'operation@shopadmin.dev', 'password123', '010-1111-1111', OPERATION_ADMIN, 'ACTIVE', {}),
    ('2', 'Lee Gogaek', 'cs@shopadmin.dev', 'password123', '010-2222-2222', CS_ADMIN, 'ACTIVE', {}),
    ('3', 'Park Daegi', 'pending@shopadmin.dev', 'password123', '010-3333-3333', CS_ADMIN, 'PENDING',
     {'requestMessage': 'Park Daegi from the CS team, requesting CS admin access.'}),
    ('4', 'Choi Geobu', 'rejected@shopadmin.dev', 'password123', '010-4444-4444', OPERATION_ADMIN, 'REJECTED',
     {'requestMessage': 'Applying for operation admin.', 'rejectionReason': 'Not enough experience'}),
    ('5', 'Jung Jeongji', 'suspended@shopadmin.dev', 'password123', '010-5555-5555', CS_ADMIN, 'SUSPENDED', {}),
    ('6', 'Kim Cheolsu', 'kim@shopadmin.dev', 'password123', '010-6666-6666', OPERATION_ADMIN, 'ACTIVE', {}),
    ('7', 'Lee Younghee', 'lee@shopadmin.dev', 'password123', '010-7777-7777', CS_ADMIN, 'ACTIVE', {}),
    ('8', 'Park Minsu', 'park@shopadmin.dev', 'password123', '010-8888-8888', OPERATION_ADMIN, 'ACTIVE', {}),
    ('9', 'Jung Suyeon', 'jung@shopadmin.dev', 'password123', '010-9999-9999', CS_ADMIN, 'INACTIVE', {}),
    ('10', 'Choi Dongwook', 'choi@shopadmin.dev', 'password123', '010-1010-1010', OPERATION_ADMIN, 'ACTIVE', {}),
]

# (id, name, email, phone, status)
SEED_CUSTOMERS = [
    ('C001', 'Choi Wonbin', 'wonbin@example.com', '010-1111-2222', 'ACTIVE'),
    ('C002', 'Lee Younghee', 'younghee@example.com', '010-2222-3333', 'ACTIVE'),
    ('C003', 'Park Junyoung', 'junyoung@example.com', '010-3333-4444', 'ACTIVE'),
    ('C004', 'Choi Jieun', 'sujin@example.com', '010-4444-5555', 'INACTIVE'),
    ('C005', 'Kang Jungyu', 'junkyu@example.com', '010-5555-6666', 'ACTIVE'),
    ('C006', 'Kang Taewoo', 'taewoo@example.com', '010-6666-7777', 'ACTIVE'),
    ('C007', 'Yoon Jiwon', 'jiwon@example.com', '010-7777-8888', 'ACTIVE'),
    ('C008', 'Song Minjae', 'minjae@example.com', '010-8888-9999', 'ACTIVE'),
    ('C009', 'Han Seoyeon', 'seoyeon@example.com', '010-9999-0000', 'SUSPENDED'),
    ('C010', 'VIP Customer', 'vip@example.com', '010-0000-1111', 'INACTIVE'),
    ('C011', 'Jung Yumi', 'yumi@example.com', '010-1234-0001', 'ACTIVE'),
    ('C012', 'Kim Doyoon', 'doyoon@example.com', '010-1234-0002', 'ACTIVE'),
    ('C013', 'Park Seojoon', 'seojoon@example.com', '010-1234-0003', 'ACTIVE'),
    ('C014', 'Lee Seoa', 'seoa@example.com', '010-1234-0004', 'ACTIVE'),
    ('C015', 'Choi Eunwoo', 'eunwoo@example.com', '010-1234-0005', 'ACTIVE'),
    ('C016', 'Kang Hayoon', 'hayoon@example.com', '010-1234-0006', 'ACTIVE'),
    ('C017', 'Jo Minjoon', 'minjoon@example.com', '010-1234-0007', 'INACTIVE'),
    ('C018', 'Yoon Jia', 'jia@example.com', '010-1234-0008', 'ACTIVE'),
    ('C019', 'Lim Dohyun', 'dohyun@example.com', '010-1234-0009', 'ACTIVE'),
    ('C020', 'Han Jiwoo', 'jiwoo@example.com', '010-1234-0010', 'ACTIVE'),
    ('C021', 'Shin Seoyeon', 'seoyeon2@example.com', '010-1234-0011', 'ACTIVE'),
    ('C022', 'Kwon Yujun', 'yujun@example.com', '010-1234-0012', 'ACTIVE'),
    ('C023', 'Hwang Haeun', 'haeun@example.com', '010-1234-0013', 'SUSPENDED'),
    ('C024', 'Song Jiho', 'jiho@example.com', '010-1234-0014', 'ACTIVE'),
    ('C025', 'Oh Sua', 'sua@example.com', '010-1234-0015', 'ACTIVE'),
    ('C026', 'Bae Seoa', 'seoa2@example.com', '010-1234-0016', 'ACTIVE'),
    ('C027', 'Seok Jimin', 'jimin@example.com', '010-1234-0017', 'ACTIVE'),
    ('C028', 'Jung Siwoo', 'siwoo@example.com', '010-1234-0018', 'INACTIVE'),
    ('C029', 'Hong Yejun', 'yejun@example.com', '010-1234-0019', 'ACTIVE'),
    ('C030', 'Baek Hajun', 'hajun@example.com', '010-1234-0020', 'ACTIVE'),
    ('C031', 'Moon Chaewon', 'chaewon@example.com', '010-1234-0021', 'ACTIVE'),
    ('C032', 'Son Seoyoon', 'seoyoon@example.com', '010-1234-0022', 'ACTIVE'),
    ('C033', 'Yang Jihoo', 'jihoo@example.com', '010-1234-0023', 'ACTIVE'),
    ('C034', 'Heo Jiho', 'jiho2@example.com', '010-1234-0024', 'SUSPENDED'),
    ('C035', 'Noh Eunseo', 'eunseo@example.com', '010-1234-0025', 'ACTIVE'),
    ('C036', 'Seo Yejun', 'yejun2@example.com', '010-1234-0026', 'ACTIVE'),
    ('C037', 'Yoo Harin', 'harin@example.com', '010-1234-0027', 'ACTIVE'),
    ('C038', 'Chae Ayoon', 'ayoon@example.com', '010-1234-0028', 'ACTIVE'),
    ('C039', 'Jin Ijun', 'ijun@example.com', '010-1234-0029', 'INACTIVE'),
    ('C040', 'Cheon Soohyun', 'soohyun@example.com', '010-1234-0030', 'ACTIVE'),
    ('C041', 'Choi Sakje', 'delete-test@example.com', '010-9999-9999', 'ACTIVE'),
]

# (id, name, category, unit price, stock)
SEED_PRODUCTS = [
    ('P001', 'Laptop', 'ELECTRONICS', 1500000, 15),
    ('P002', 'Smartphone', 'ELECTRONICS', 950000, 32),
    ('P003', 'Tablet', 'ELECTRONICS', 680000, 28),
    ('P004', 'Wireless Earbuds', 'ELECTRONICS', 89000, 45),
    ('P005', 'Bluetooth Speaker', 'ELECTRONICS', 125000, 23),
    ('P006', 'Mechanical Keyboard', 'ELECTRONICS', 159000, 3),
    ('P007', 'Gaming Mouse', 'ELECTRONICS', 78000, 56),
    ('P008', '27in Monitor', 'ELECTRONICS', 350000, 18),
    ('P009', 'Webcam', 'ELECTRONICS', 95000, 0),
    ('P010', 'Fast Charger', 'ELECTRONICS', 35000, 89),
    ('P011', 'Smartwatch', 'ELECTRONICS', 450000, 25),
    ('P012', 'External HDD 1TB', 'ELECTRONICS', 89000, 0),
    ('P013', 'Graphics Card', 'ELECTRONICS', 890000, 10),
    ('P014', 'Basic T-Shirt', 'FASHION', 25000, 120),
    ('P015', 'Jeans', 'FASHION', 79000, 45),
    ('P016', 'Sneakers', 'FASHION', 129000, 38),
    ('P017', 'Backpack', 'FASHION', 89000, 52),
    ('P018', 'Baseball Cap', 'FASHION', 29000, 78),
    ('P019', 'Sock Set', 'FASHION', 15000, 95),
    ('P020', 'Hoodie', 'FASHION', 59000, 2),
    ('P021', 'Sweatshirt', 'FASHION', 49000, 0),
    ('P022', 'Slacks', 'FASHION', 69000, 60),
    ('P023', 'Leather Jacket', 'FASHION', 199000, 15),
    ('P024', 'Coat', 'FASHION', 259000, 0),
    ('P025', 'Padded Jacket', 'FASHION', 299000, 30),
    ('P026', 'Scarf', 'FASHION', 39000, 50),
    ('P027', 'Premium Coffee Beans', 'FOOD', 28000, 67),
    ('P028', 'Green Tea Bags', 'FOOD', 12000, 85),
    ('P029', 'Mixed Nuts', 'FOOD', 18000, 43),
    ('P030', 'Energy Bar', 'FOOD', 15000, 92),
    ('P031', 'Fruit Jam Set', 'FOOD', 22000, 34),
    ('P032', 'Olive Oil', 'FOOD', 35000, 28),
    ('P033', 'Honey Gift Set', 'FOOD', 45000, 1),
    ('P034', 'Dark Chocolate', 'FOOD', 8000, 0),
    ('P035', 'Protein Bar', 'FOOD', 25000, 100),
    ('P036', 'Organic Salad', 'FOOD', 9900, 50),
    ('P037', 'Frozen Chicken Breast', 'FOOD', 19900, 0),
    ('P038', 'Handmade Sausage', 'FOOD', 15900, 40),
    ('P039', 'Hotel Towel Set', 'LIVING', 38000, 45),
    ('P040', 'Pillow', 'LIVING', 45000, 32),
    ('P041', 'Wet Wipes Bulk', 'LIVING', 18000, 100),
    ('P042', 'Hand Sanitizer Set', 'LIVING', 25000, 68),
    ('P043', 'Dish Soap Set', 'LIVING', 12000, 88),
    ('P044', 'Dish Cloth Set', 'LIVING', 9000, 76),
    ('P045', 'Air Freshener', 'LIVING', 15000, 4),
    ('P046', 'LED Desk Lamp', 'LIVING', 42000, 25),
    ('P047', 'Cordless Vacuum', 'LIVING', 299000, 15),
    ('P048', 'Air Purifier', 'LIVING', 199000, 0),
    ('P049', 'Humidifier', 'LIVING', 79000, 30),
    ('P050', 'Electric Kettle', 'LIVING', 49000, 50),
    ('P051', 'Yoga Mat', 'SPORTS', 39000, 54),
    ('P052', 'Dumbbell Set', 'SPORTS', 65000, 22),
    ('P053', 'Running Shoes', 'SPORTS', 159000, 18),
    ('P054', 'Training Set', 'SPORTS', 89000, 35),
    ('P055', 'Swim Goggles', 'SPORTS', 32000, 0),
    ('P056', 'Bike Helmet', 'SPORTS', 78000, 27),
    ('P057', 'Table Tennis Set', 'SPORTS', 55000, 2),
    ('P058', 'Badminton Racket', 'SPORTS', 95000, 31),
    ('P059', 'Soccer Ball', 'SPORTS', 29000, 60),
    ('P060', 'Basketball', 'SPORTS', 32000, 0),
    ('P061', 'Trekking Poles', 'SPORTS', 89000, 25),
    ('P062', 'Camping Chair', 'SPORTS', 45000, 40),
    ('P063', 'Moisturizer', 'BEAUTY', 45000, 48),
    ('P064', 'Sunscreen', 'BEAUTY', 28000, 65),
    ('P065', 'Lipstick Set', 'BEAUTY', 52000, 37),
    ('P066', 'Mascara', 'BEAUTY', 23000, 71),
    ('P067', 'Cleansing Oil', 'BEAUTY', 32000, 0),
    ('P068', 'Toner', 'BEAUTY', 35000, 42),
    ('P069', 'Perfume', 'BEAUTY', 89000, 19),
    ('P070', 'Hand Cream Set', 'BEAUTY', 18000, 3),
    ('P071', 'Hair Essence', 'BEAUTY', 25000, 60),
    ('P072', 'Body Lotion', 'BEAUTY', 19000, 80),
    ('P073', 'Eyeshadow Palette', 'BEAUTY', 48000, 0),
    ('P074', 'Cushion Foundation', 'BEAUTY', 38000, 50),
    ('P075', 'Nail Polish Set', 'BEAUTY', 29000, 40),
    ('P076', 'Bestselling Novel', 'BOOKS', 16800, 58),
    ('P077', 'Self-help Book', 'BOOKS', 18900, 45),
    ('P078', 'IT Handbook', 'BOOKS', 35000, 24),
    ('P079', 'Cookbook', 'BOOKS', 25000, 38),
    ('P080', 'Business Book', 'BOOKS', 22000, 51),
    ('P081', 'Essay Collection', 'BOOKS', 14500, 67),
    ('P082', 'Picture Book', 'BOOKS', 12000, 0),
    ('P083', 'Comic Book Set', 'BOOKS', 48000, 1),
    ('P084', 'History Book', 'BOOKS', 28000, 30),
    ('P085', 'Popular Science', 'BOOKS', 21000, 40),
    ('P086', 'Travel Guide', 'BOOKS', 19800, 25),
    ('P087', 'Language Workbook', 'BOOKS', 24000, 50),
    ('P088', 'Magazine', 'BOOKS', 9900, 0),
    ('P089', 'Lego Set', 'TOYS', 89000, 32),
    ('P090', 'Jigsaw Puzzle', 'TOYS', 25000, 46),
    ('P091', 'Board Game', 'TOYS', 45000, 28),
    ('P092', 'Plastic Model Kit', 'TOYS', 38000, 35),
    ('P093', 'Plush Doll', 'TOYS', 32000, 52),
    ('P094', 'RC Car', 'TOYS', 125000, 15),
    ('P095', 'Drone', 'TOYS', 280000, 2),
    ('P096', 'Electric Scooter', 'TOYS', 450000, 8),
    ('P097', 'Action Figure', 'TOYS', 59000, 0),
    ('P098', 'Slime Kit', 'TOYS', 19000, 60),
    ('P099', 'Mini Car Track', 'TOYS', 75000, 25),
    ('P100', 'Dollhouse', 'TOYS', 150000, 0),
]

# J-curve: most buyers who bother to review are happy
RATING_WEIGHTS = ((5, 0.5), (4, 0.3), (3, 0.1), (2, 0.05), (1, 0.05))

REVIEW_COMMENTS = {
    5: [
        'Really happy with this purchase, great quality.',
        'Fast delivery and I love the product.',
        'Best value for money, highly recommended!',
        'Will definitely buy again.',
        'Bought it as a gift and they loved it.'
    ],
    4: [
        'Good overall, shipping was quick too.',
        'Decent product for the price.',
        'Better quality than I expected.',
        'Satisfied, will use it well.',
        'Packaging was careful and neat.'
    ],
    3: [
        'It is okay. Does the job.',
        'You get what you pay for.',
        'Shipping was fast but the product is average.',
        'Not bad.',
        'Color is a bit different from the pictures.'
    ],
    2: [
        'Worse than I expected, packaging was poor.',
        'Finishing is a bit sloppy.',
        'Delivery took way too long.',
        'Not great.',
        'Probably will not buy again.'
    ],
    1: [
        'Arrived defective, I want a refund.',
        'Terrible, do not buy this.',
        'Late delivery and a bad product.',
        'Waste of money.',
        'Could not even reach customer service.'
    ]
}

# seed hashes are the same on every reset, hashing is slow on purpose
_seed_password_hashes = {}

def _seed_password(password):
    if password not in _seed_password_hashes:
        _seed_password_hashes[password] = hash_password(password)
    return _seed_password_hashes[password]

def random_date(rng, start, end):
    if end <= start:
        return start
    return start + timedelta(days=rng.randint(0, (end - start).days))

def pick_rating(rng):
    roll = rng.random()
    cumulative = 0
    for rating, weight in RATING_WEIGHTS:
        cumulative += weight
        if roll < cumulative:
            return rating
    return RATING_WEIGHTS[-1][0]

def _seed_order(rng, order_date, status, buyers, cs_admin=None):
    customer = rng.choice(buyers)
    product = rng.choice(products)
    quantity = rng.randint(1, 3)
    order = {
        'id': '',
        'orderNo': '',
        'customerId': customer['id'],
        'customer': customer['name'],
        'customerEmail': customer['email'],
        'productId': product['id'],
        'product': product['name'],
        'quantity': quantity,
        'amount': format_amount(parse_amount(product['price']) * quantity),
        'date': order_date.isoformat(),
        'status': status
    }
    if cs_admin:
        order.update({
            'createdByAdminId': cs_admin['id'],
            'createdByAdminName': cs_admin['name'],
            'createdByAdminEmail': cs_admin['email'],
            'createdByAdminRole': cs_admin['role']
        })
    return order

def init_data(rng=None):
    rng = rng or random.Random()
    today = date.today()
    start = min(SEED_START_DATE, today)

    # admins
    for uid, name, email, password, phone, role, status, extra in SEED_USERS:
        created_at = random_date(rng, start, today)
        user = {
            'id': uid,
            'name': name,
            'email': email,
            'password': _seed_password(password),
            'phone': phone,
            'role': role,
            'status': status,
            'createdAt': created_at.isoformat(),
            'approvedAt': None,
            'rejectedAt': None
        }
        user.update(extra)
        if status not in ('PENDING', 'REJECTED'):
            approved_at = created_at + timedelta(days=rng.randint(1, 7))
            user['approvedAt'] = (approved_at if approved_at < today else created_at).isoformat()
        if status == 'REJECTED':
            rejected_at = created_at + timedelta(days=rng.randint(1, 3))
            user['rejectedAt'] = min(rejected_at, today).isoformat()
        users.append(user)

    for cid, name, email, phone, status in SEED_CUSTOMERS:
        customers.append({
            'id': cid,
            'name': name,
            'email': email,
            'phone': phone,
            'status': status,
            'createdAt': random_date(rng, start, today).isoformat(),
            'totalOrders': 0,
            'totalSpent': format_amount(0)
        })

    for index, (pid, name, category, price, stock) in enumerate(SEED_PRODUCTS):
        # super admin and operation admin take turns as creator
        creator = users[0] if index % 2 == 0 else users[1]
        products.append({
            'id': pid,
            'name': name,
            'category': category,
            'price': format_amount(price),
            'stock': stock,
            'status': 'AVAILABLE',
            'createdAt': random_date(rng, start, today).isoformat(),
            'createdBy': creator['id'],
            'createdByName': creator['name'],
            'createdByEmail': creator['email']
        })

    # orders: 75% delivered, 15% shipping, rest preparing
    delivered_count = int(SEED_ORDER_COUNT * 0.75)
    shipping_count = int(SEED_ORDER_COUNT * 0.15)
    preparing_count = SEED_ORDER_COUNT - delivered_count - shipping_count
    shipping_start = today - timedelta(days=10)
    preparing_start = today - timedelta(days=3)
    buyers = [c for c in customers if c['id'] != RESERVED_CUSTOMER_ID]
    cs_admin = next((u for u in users if u['role'] == CS_ADMIN), None)

    generated = []
    for _ in range(delivered_count):
        generated.append(_seed_order(rng, random_date(rng, start, shipping_start), 'DELIVERED', buyers))
    for _ in range(shipping_count):
        generated.append(_seed_order(rng, random_date(rng, shipping_start, preparing_start), 'SHIPPING', buyers))
    for _ in range(preparing_count):
        placed_by_cs = rng.random() < CS_ORDER_RATE
        generated.append(_seed_order(
            rng, random_date(rng, preparing_start, today), 'PREPARING', buyers,
            cs_admin if placed_by_cs else None
        ))
    rng.shuffle(generated)

    per_day = {}
    for counter, order in enumerate(generated, start=1):
        per_day[order['date']] = per_day.get(order['date'], 0) + 1
        order['id'] = f"ORDER-{counter:04d}"
        order['orderNo'] = f"{order['date'].replace('-', '')}-{per_day[order['date']]:03d}"

    # dashboard looks dead without orders today, force a few
    today_iso = today.isoformat()
    if not any(o['date'] == today_iso for o in generated):
        for order in generated[:3]:
            per_day[today_iso] = per_day.get(today_iso, 0) + 1
            order['date'] = today_iso
            order['status'] = 'PREPARING'
            order['orderNo'] = f"{today_iso.replace('-', '')}-{per_day[today_iso]:03d}"

    generated.sort(key=lambda o: o['date'], reverse=True)
    orders.extend(generated)

    # derived data
    for p in products:
        sync_product_status(p, restock=False)
    for c in customers:
        recalc_customer_totals(c['id'])

    # one review per delivered order
    review_counter = 1
    for order in orders:
        if order['status'] != 'DELIVERED':
            continue
        rating = pick_rating(rng)
        review_day = date.fromisoformat(order['date']) + timedelta(days=3)
        reviews.append({
            'id': f"R{review_counter:03d}",
            'orderId': order['id'],
            'productId': order['productId'],
            'customerId': order['customerId'],
            'customer': order['customer'],
            'customerEmail': order.get('customerEmail', ''),
            'product': order['product'],
            'rating': rating,
            'comment': rng.choice(REVIEW_COMMENTS[rating]),
            'date': min(review_day, today).isoformat()
        })
        review_counter += 1

    app.logger.info(
        'seeded %d users, %d customers, %d products, %d orders, %d reviews',
        len(users), len(customers), len(products), len(orders), len(reviews)
    )

def reset_data(seed=None):
    """wipe every store and regenerate the seed data"""
    for store in (users, customers, products, orders, reviews, audit_log, inventory_log):
        store.clear()
    init_data(random.Random(seed))

# ============== ROUTES ==============

@app.route('/health')
def health():
    return ok({
        'status': 'ok',
        'version': VERSION,
        'timestamp': datetime.now().isoformat()
    })

# ---------- AUTH ----------

def check_account_input(data, require_password=True):
    """shared validation for register and admin-created accounts.

    Returns (values, None) or (None, error response).
    """
    values = {
        'name': clean_str(data.get('name')),
        'email': clean_str(data.get('email')).lower(),
        'phone': clean_str(data.get('phone')),
        'role': data.get('role'),
        'password': data.get('password') if isinstance(data.get('password'), str) else ''
    }

    errors = []
    if not values['name']:
        errors.append(field_error('name', 'Name is required'))
    if not values['email']:
        errors.append(field_error('email', 'Email is required'))
    if require_password and not values['password']:
        errors.append(field_error('password', 'Password is required'))
    if values['role'] not in ROLES:
        errors.append(field_error('role', f"Role must be one of: {', '.join(ROLES)}"))
    if errors:
        return None, validation_failed(errors)

    if not validate_email(values['email']):
        return None, fail('INVALID_EMAIL', errors=[field_error('email', API_MESSAGES['INVALID_EMAIL'])])
    if len(values['password']) < PASSWORD_MIN_LENGTH:
        message = f'Password must be at least {PASSWORD_MIN_LENGTH} characters'
        return None, validation_failed([field_error('password', message)], message)
    if find_user_by_email(values['email']):
        return None, fail('DUPLICATE_EMAIL')
    return values, None

@app.route('/api/auth/login', methods=['POST'])
def login():
    data = get_body() or {}
    email = clean_str(data.get('email')).lower()
    password = data.get('password') if isinstance(data.get('password'), str) else ''

    if not email or not password:
        return validation_failed(
            [field_error(f, f'{f.capitalize()} is required') for f, v in (('email', email), ('password', password)) if not v],
            'Email and password required'
        )

    user = find_user_by_email(email)
    if not user or not check_password(user, password):
        app.logger.info('failed login for %s', email)
        return fail('INVALID_CREDENTIALS', status=401)

    # only ACTIVE accounts get a token
    if user['status'] == 'PENDING':
        return fail('ACCOUNT_PENDING', 'Account is waiting for a super admin to approve it.', 403)
    if user['status'] == 'REJECTED':
        reason = user.get('rejectionReason') or 'not given'
        return fail('ACCOUNT_REJECTED', f'Account request was rejected. Reason: {reason}', 403)
    if user['status'] == 'SUSPENDED':
        return fail('ACCOUNT_SUSPENDED', status=403)
    if user['status'] == 'INACTIVE':
        return fail('ACCOUNT_INACTIVE', status=403)

    token = generate_token(user)
    log_action('login', user['id'])
    app.logger.info('login %s (%s)', user['email'], user['role'])

    return ok({'user': without_password(user), 'token': token})

@app.route('/api/auth/register', methods=['POST'])
def register():
    data = get_body()
    if data is None:
        return validation_failed([], 'No data provided')

    values, error = check_account_input(data)
    if error:
        return error

    user = {
        'id': next_numeric_id(users),
        'name': values['name'],
        'email': values['email'],
        'password': hash_password(values['password']),
        'phone': values['phone'],
        'role': values['role'],
        'status': 'PENDING',
        'createdAt': today_str(),
        'approvedAt': None,
        'rejectedAt': None,
        'requestMessage': clean_str(data.get('requestMessage'))
    }
    users.append(user)

    log_action('register', user['id'], {'role': user['role']})

    return created(
        without_password(user),
        'Registration received. A super admin has to approve the account before you can log in.'
    )

@app.route('/api/auth/logout', methods=['POST'])
@require_auth()
def logout():
    # tokens are stateless, the client just forgets it
    log_action('logout', current_user_id())
    return ok(message='Logged out successfully')

@app.route('/api/auth/password', methods=['PUT'])
@require_auth()
def change_password():
    user = find_by_id(users, current_user_id())
    if not user:
        return fail('NOT_FOUND', 'User not found', 404)

    data = get_body() or {}
    current_password = data.get('currentPassword') if isinstance(data.get('currentPassword'), str) else ''
    new_password = data.get('newPassword') if isinstance(data.get('newPassword'), str) else ''

    if not check_password(user, current_password):
        return fail('INVALID_PASSWORD', 'Current password is incorrect.', 401)

    if len(new_password) < PASSWORD_MIN_LENGTH:
        message = f'New password must be at least {PASSWORD_MIN_LENGTH} characters'
        return validation_failed([field_error('newPassword', message)], message)

    user['password'] = hash_password(new_password)

    log_action('change_password', user['id'])

    return ok(message='Password changed successfully')

@app.route('/api/users/me', methods=['GET'])
@require_auth()
def get_current_user():
    user = find_by_id(users, current_user_id())
    if not user:
        return fail('NOT_FOUND', 'User not found', 404)
    return ok(without_password(user))

@app.route('/api/users/me', methods=['PATCH'])
@require_auth()
def update_current_user():
    user = find_by_id(users, current_user_id())
    if not user:
        return fail('NOT_FOUND', 'User not found', 404)

    data = get_body() or {}
    updates, error = check_contact_updates(data, find_user_by_email, user['id'])
    if error:
        return error

    user.update(updates)

    log_action('update_profile', user['id'], {'fields': sorted(updates)})

    return ok(without_password(user), 'Profile updated successfully')

def check_contact_updates(data, email_lookup, record_id):
    """name/email/phone edits shared by admins and customers, only keys present are applied"""
    updates = {}
    errors = []
    if 'name' in data:
        updates['name'] = clean_str(data['name'])
        if not updates['name']:
            errors.append(field_error('name', 'Name cannot be empty'))
    if 'phone' in data:
        updates['phone'] = clean_str(data['phone'])
    if 'email' in data:
        updates['email'] = clean_str(data['email']).lower()
        if not updates['email']:
            errors.append(field_error('email', 'Email cannot be empty'))
    if errors:
        return None, validation_failed(errors)

    if 'email' in updates:
        if not validate_email(updates['email']):
            return None, fail('INVALID_EMAIL', errors=[field_error('email', API_MESSAGES['INVALID_EMAIL'])])
        if email_lookup(updates['email'], exclude_id=record_id):
            return None, fail('DUPLICATE_EMAIL')
    return updates, None

# ---------- ADMIN USERS ----------
# super admin only

@app.route('/api/users', methods=['GET'])
@require_auth(SUPER_ADMIN)
def list_users():
    result = query_collection(users, ('name', 'email', 'phone'), ('status', 'role'))
    result['items'] = [without_password(u) for u in result['items']]
    return ok(result)

@app.route('/api/users/<uid>', methods=['GET'])
@require_auth(SUPER_ADMIN)
def get_user(uid):
    user = find_by_id(users, uid)
    if not user:
        return fail('NOT_FOUND', 'User not found', 404)
    return ok(without_password(user))

@app.route('/api/users', methods=['POST'])
@require_auth(SUPER_ADMIN)
def create_user():
    data = get_body()
    if data is None:
        return validation_failed([], 'No data provided')

    values, error = check_account_input(data)
    if error:
        return error

    status = data.get('status') or 'ACTIVE'
    if status not in USER_STATUSES:
        return validation_failed([field_error('status', f"Status must be one of: {', '.join(USER_STATUSES)}")])

    today = today_str()
    user = {
        'id': next_numeric_id(users),
        'name': values['name'],
        'email': values['email'],
        'password': hash_password(values['password']),
        'phone': values['phone'],
        'role': values['role'],
        'status': status,
        'createdAt': today,
        'approvedAt': today if status == 'ACTIVE' else None,
        'rejectedAt': None
    }
    users.append(user)

    log_action('create_user', current_user_id(), {'user_id': user['id'], 'role': user['role']})

    return created(without_password(user))

@app.route('/api/users/<uid>', methods=['PUT'])
@require_auth(SUPER_ADMIN)
def update_user(uid):
    # basic info only, role and status have their own endpoints
    user = find_by_id(users, uid)
    if not user:
        return fail('NOT_FOUND', 'User not found', 404)

    data = get_body() or {}
    updates, error = check_contact_updates(data, find_user_by_email, uid)
    if error:
        return error

    user.update(updates)

    log_action('update_user', current_user_id(), {'user_id': uid, 'fields': sorted(updates)})

    return ok(without_password(user))

@app.route('/api/users/<uid>/role', methods=['PATCH'])
@require_auth(SUPER_ADMIN)
def update_user_role(uid):
    user = find_by_id(users, uid)
    if not user:
        return fail('NOT_FOUND', 'User not found', 404)

    data = get_body() or {}
    role = data.get('role')
    if role not in ROLES:
        return validation_failed([field_error('role', f"Role must be one of: {', '.join(ROLES)}")])

    old_role = user['role']
    user['role'] = role

    log_action('update_user_role', current_user_id(), {'user_id': uid, 'old': old_role, 'new': role})

    return ok(without_password(user))

@app.route('/api/users/<uid>/status', methods=['PATCH'])
@require_auth(SUPER_ADMIN)
def update_user_status(uid):
    user = find_by_id(users, uid)
    if not user:
        return fail('NOT_FOUND', 'User not found', 404)

    data = get_body() or {}
    status = data.get('status')
    if status not in USER_STATUSES:
        return validation_failed([field_error('status', f"Status must be one of: {', '.join(USER_STATUSES)}")])

    # pending requests go through approve/reject, not a raw status edit
    if user['status'] == 'PENDING' or status in ('PENDING', 'REJECTED'):
        return fail('INVALID_STATUS_CHANGE', 'Pending accounts are handled with approve/reject.', 400)

    old_status = user['status']
    user['status'] = status

    log_action('update_user_status', current_user_id(), {'user_id': uid, 'old': old_status, 'new': status})

    return ok(without_password(user))

@app.route('/api/users/<uid>', methods=['DELETE'])
@require_auth(SUPER_ADMIN)
def delete_user(uid):
    if not remove_by_id(users, uid):
        return fail('NOT_FOUND', 'User not found', 404)

    log_action('delete_user', current_user_id(), {'user_id': uid})

    return ok(message='User deleted')

@app.route('/api/users/<uid>/approve', methods=['POST'])
@require_auth(SUPER_ADMIN)
def approve_user(uid):
    user = find_by_id(users, uid)
    if not user:
        return fail('NOT_FOUND', 'User not found', 404)

    if user['status'] != 'PENDING':
        return fail('INVALID_STATUS_CHANGE', f"Only pending accounts can be approved (current: {user['status']})", 400)

    user['status'] = 'ACTIVE'
    user['approvedAt'] = today_str()

    log_action('approve_user', current_user_id(), {'user_id': uid})

    return ok(without_password(user), 'Admin account approved')

@app.route('/api/users/<uid>/reject', methods=['POST'])
@require_auth(SUPER_ADMIN)
def reject_user(uid):
    user = find_by_id(users, uid)
    if not user:
        return fail('NOT_FOUND', 'User not found', 404)

    data = get_body() or {}
    reason = clean_str(data.get('rejectionReason'))
    if not reason:
        return validation_failed([field_error('rejectionReason', 'A rejection reason is required')])

    if user['status'] != 'PENDING':
        return fail('INVALID_STATUS_CHANGE', f"Only pending accounts can be rejected (current: {user['status']})", 400)

    user['status'] = 'REJECTED'
    user['rejectedAt'] = today_str()
    user['rejectionReason'] = reason

    log_action('reject_user', current_user_id(), {'user_id': uid, 'reason': reason})

    return ok(without_password(user), 'Admin request rejected')

# ---------- CUSTOMERS ----------

CUSTOMER_EDITABLE = ('name', 'email', 'phone', 'status')

@app.route('/api/customers', methods=['GET'])
@require_auth()
def list_customers():
    result = query_collection(customers, ('name', 'email', 'phone'), ('status',))
    result['items'] = [without_password(c) for c in result['items']]
    return ok(result)

@app.route('/api/customers/<cid>', methods=['GET'])
@require_auth()
def get_customer(cid):
    customer = find_by_id(customers, cid)
    if not customer:
        return fail('NOT_FOUND', 'Customer not found', 404)
    return ok(without_password(customer))

@app.route('/api/customers', methods=['POST'])
@require_auth()
def create_customer():
    data = get_body()
    if data is None:
        return validation_failed([], 'No data provided')

    name = clean_str(data.get('name'))
    email = clean_str(data.get('email')).lower()
    status = data.get('status') or 'ACTIVE'

    errors = []
    if not name:
        errors.append(field_error('name', 'Name is required'))
    if not email:
        errors.append(field_error('email', 'Email is required'))
    if status not in CUSTOMER_STATUSES:
        errors.append(field_error('status', f"Status must be one of: {', '.join(CUSTOMER_STATUSES)}"))
    if errors:
        return validation_failed(errors)

    if not validate_email(email):
        return fail('INVALID_EMAIL', errors=[field_error('email', API_MESSAGES['INVALID_EMAIL'])])
    if find_customer_by_email(email):
        return fail('DUPLICATE_EMAIL')

    today = today_str()
    customer = {
        'id': next_numeric_id(customers, 'C', 3),
        'name': name,
        'email': email,
        'phone': clean_str(data.get('phone')),
        'status': status,
        'createdAt': today,
        'lastLoginAt': today,
        'totalOrders': 0,
        'totalSpent': format_amount(0)
    }
    if isinstance(data.get('password'), str) and data['password']:
        customer['password'] = hash_password(data['password'])
    customers.append(customer)

    log_action('create_customer', current_user_id(), {'customer_id': customer['id']})

    return created(without_password(customer))

@app.route('/api/customers/<cid>', methods=['PUT', 'PATCH'])
@require_auth()
def update_customer(cid):
    customer = find_by_id(customers, cid)
    if not customer:
        return fail('NOT_FOUND', 'Customer not found', 404)

    data = get_body() or {}
    # totals are derived from orders and can't be written directly
    data = {k: v for k, v in data.items() if k in CUSTOMER_EDITABLE}

    updates, error = check_contact_updates(data, find_customer_by_email, cid)
    if error:
        return error
    if 'status' in data:
        if data['status'] not in CUSTOMER_STATUSES:
            return validation_failed([field_error('status', f"Status must be one of: {', '.join(CUSTOMER_STATUSES)}")])
        updates['status'] = data['status']

    customer.update(updates)

    log_action('update_customer', current_user_id(), {'customer_id': cid, 'fields': sorted(updates)})

    return ok(without_password(customer))

@app.route('/api/customers/<cid>/status', methods=['PATCH'])
@require_auth()
def update_customer_status(cid):
    customer = find_by_id(customers, cid)
    if not customer:
        return fail('NOT_FOUND', 'Customer not found', 404)

    data = get_body() or {}
    status = data.get('status')
    if status not in CUSTOMER_STATUSES:
        return validation_failed([field_error('status', f"Status must be one of: {', '.join(CUSTOMER_STATUSES)}")])

    old_status = customer['status']
    customer['status'] = status

    log_action('update_customer_status', current_user_id(), {'customer_id': cid, 'old': old_status, 'new': status})

    return ok(without_password(customer), 'Customer status updated')

@app.route('/api/customers/<cid>', methods=['DELETE'])
@require_auth(SUPER_ADMIN)
def delete_customer(cid):
    customer = find_by_id(customers, cid)
    if not customer:
        return fail('NOT_FOUND', 'Customer not found', 404)

    # referential checks, nothing is removed if either hits
    if any(o['customerId'] == cid for o in orders):
        app.logger.warning('refused to delete customer %s: has orders', cid)
        return fail('HAS_RELATED_DATA', 'This customer has orders and cannot be deleted.', 400)
    if any(r['customerId'] == cid for r in reviews):
        app.logger.warning('refused to delete customer %s: has reviews', cid)
        return fail('HAS_RELATED_DATA', 'This customer has written reviews and cannot be deleted.', 400)

    remove_by_id(customers, cid)

    log_action('delete_customer', current_user_id(), {'customer_id': cid})

    return ok(message='Customer deleted')

# ---------- PRODUCTS ----------

def check_product_fields(data, partial=False):
    """validates name/category/price/stock/status; partial skips absent keys"""
    values = {}
    errors = []

    if not partial or 'name' in data:
        values['name'] = clean_str(data.get('name'))
        if not values['name']:
            errors.append(field_error('name', 'Name is required'))
    if not partial or 'category' in data:
        values['category'] = data.get('category')
        if values['category'] not in PRODUCT_CATEGORIES:
            errors.append(field_error('category', f"Category must be one of: {', '.join(PRODUCT_CATEGORIES)}"))
    if not partial or 'price' in data:
        price = parse_amount(data.get('price'))
        # parse_amount drops the sign, so catch "-5000" here
        if isinstance(data.get('price'), str) and data['price'].strip().startswith('-'):
            price = 0
        if price <= 0:
            errors.append(field_error('price', 'Price must be a positive amount'))
        values['price'] = format_amount(price)
    if not partial or 'stock' in data:
        stock = as_int(data.get('stock', 0))
        if stock is None or stock < 0:
            errors.append(field_error('stock', 'Stock must be a whole number of 0 or more'))
        values['stock'] = stock
    if not partial or 'status' in data:
        values['status'] = data.get('status') or 'AVAILABLE'
        if values['status'] not in PRODUCT_STATUSES:
            errors.append(field_error('status', f"Status must be one of: {', '.join(PRODUCT_STATUSES)}"))

    if errors:
        return None, validation_failed(errors)
    return values, None

@app.route('/api/products', methods=['GET'])
@require_auth()
def list_products():
    return ok(query_collection(products, ('name', 'category'), ('category', 'status')))

@app.route('/api/products/<pid>', methods=['GET'])
@require_auth()
def get_product(pid):
    product = find_by_id(products, pid)
    if not product:
        return fail('NOT_FOUND', 'Product not found', 404)

    # review summary + latest reviews ride along with the product
    return ok({
        **product,
        'reviewSummary': review_summary(pid),
        'recentReviews': recent_reviews(pid)
    })

@app.route('/api/products', methods=['POST'])
@require_auth(*MANAGERS)
def create_product():
    data = get_body()
    if data is None:
        return validation_failed([], 'No data provided')

    values, error = check_product_fields(data)
    if error:
        return error

    auth = g.auth
    product = {
        'id': next_numeric_id(products, 'P', 3),
        'name': values['name'],
        'category': values['category'],
        'price': values['price'],
        'stock': values['stock'],
        'status': values['status'],
        'image': data.get('image'),
        'createdAt': today_str(),
        'createdBy': auth['userId'],
        'createdByName': auth.get('name'),
        'createdByEmail': auth.get('email')
    }
    sync_product_status(product, restock=False)
    products.insert(0, product)

    log_action('create_product', auth['userId'], {'product_id': product['id']})

    return created(product)

@app.route('/api/products/<pid>', methods=['PUT'])
@require_auth(*MANAGERS)
def update_product(pid):
    # name/category/price only, stock and status have their own endpoints
    product = find_by_id(products, pid)
    if not product:
        return fail('NOT_FOUND', 'Product not found', 404)

    data = get_body() or {}
    data = {k: v for k, v in data.items() if k in ('name', 'category', 'price')}
    values, error = check_product_fields(data, partial=True)
    if error:
        return error

    old_price = product['price']
    product.update(values)

    log_action('update_product', current_user_id(), {
        'product_id': pid,
        'fields': sorted(values),
        'old_price': old_price if product['price'] != old_price else None
    })

    return ok(product)

@app.route('/api/products/<pid>/stock', methods=['PATCH'])
@require_auth(*MANAGERS)
def update_product_stock(pid):
    product = find_by_id(products, pid)
    if not product:
        return fail('NOT_FOUND', 'Product not found', 404)

    data = get_body() or {}
    stock = as_int(data.get('stock'))
    if stock is None or stock < 0:
        return validation_failed([field_error('stock', 'Stock must be a whole number of 0 or more')])

    old_stock = product['stock']
    product['stock'] = stock
    sync_product_status(product)

    log_inventory(product, stock - old_stock, 'manual adjustment')
    log_action('update_product_stock', current_user_id(), {'product_id': pid, 'old': old_stock, 'new': stock})

    return ok(product)

@app.route('/api/products/<pid>/status', methods=['PATCH'])
@require_auth(*MANAGERS)
def update_product_status(pid):
    product = find_by_id(products, pid)
    if not product:
        return fail('NOT_FOUND', 'Product not found', 404)

    data = get_body() or {}
    status = data.get('status')
    if status not in PRODUCT_STATUSES:
        return validation_failed([field_error('status', f"Status must be one of: {', '.join(PRODUCT_STATUSES)}")])

    old_status = product['status']
    product['status'] = status
    # marking SOLD_OUT by hand is allowed, AVAILABLE with no stock is not
    sync_product_status(product, restock=False)

    log_action('update_product_status', current_user_id(), {'product_id': pid, 'old': old_status, 'new': product['status']})

    return ok(product)

@app.route('/api/products/<pid>', methods=['DELETE'])
@require_auth(*MANAGERS)
def delete_product(pid):
    product = find_by_id(products, pid)
    if not product:
        return fail('NOT_FOUND', 'Product not found', 404)

    if any(o['productId'] == pid for o in orders):
        app.logger.warning('refused to delete product %s: has orders', pid)
        return fail('HAS_RELATED_DATA', 'This product has orders and cannot be deleted.', 400)
    if any(r['productId'] == pid for r in reviews):
        app.logger.warning('refused to delete product %s: has reviews', pid)
        return fail('HAS_RELATED_DATA', 'This product has reviews and cannot be deleted.', 400)

    remove_by_id(products, pid)

    log_action('delete_product', current_user_id(), {'product_id': pid})

    return ok(message='Product deleted')

# ---------- ORDERS ----------

@app.route('/api/orders', methods=['GET'])
@require_auth()
def list_orders():
    return ok(query_collection(orders, ('orderNo', 'customer', 'product'), ('status', 'customerId', 'productId')))

@app.route('/api/orders/<oid>', methods=['GET'])
@require_auth()
def get_order(oid):
    order = find_by_id(orders, oid)
    if not order:
        return fail('NOT_FOUND', 'Order not found', 404)
    return ok(order)

@app.route('/api/orders', methods=['POST'])
@require_auth()
def create_order():
    data = get_body()
    if data is None:
        return validation_failed([], 'No data provided')

    quantity = as_int(data.get('quantity', 1))
    if quantity is None or quantity < 1:
        return validation_failed([field_error('quantity', 'Quantity must be a whole number of 1 or more')])

    # customer by id, falling back to the display name
    customer = find_by_id(customers, data.get('customerId'))
    if not customer and data.get('customer'):
        customer = next((c for c in customers if c['name'] == data['customer']), None)
    if not customer:
        return fail('CUSTOMER_NOT_FOUND', status=404)

    product = find_by_id(products, data.get('productId'))
    if not product and data.get('product'):
        product = next((p for p in products if p['name'] == data['product']), None)
    if not product:
        return fail('PRODUCT_NOT_FOUND', status=404)

    # every check runs before anything is touched
    if product['status'] == 'DISCONTINUED':
        return fail('PRODUCT_DISCONTINUED')
    if product['status'] == 'SOLD_OUT':
        return fail('PRODUCT_SOLD_OUT')
    if product['stock'] < quantity:
        app.logger.warning('order rejected, %s has %d left, %d requested', product['id'], product['stock'], quantity)
        return fail(
            'INSUFFICIENT_STOCK',
            f"Not enough stock (in stock: {product['stock']}, requested: {quantity})"
        )

    today = today_str()
    order_id, order_no = next_order_ids(today)
    admin = find_by_id(users, current_user_id()) or {}

    order = {
        'id': order_id,
        'orderNo': order_no,
        'customerId': customer['id'],
        'customer': customer['name'],
        'customerEmail': customer['email'],
        'productId': product['id'],
        'product': product['name'],
        'quantity': quantity,
        'amount': format_amount(parse_amount(product['price']) * quantity),
        'date': today,
        'status': 'PREPARING',
        # who placed it, CS orders are placed on the customer's behalf
        'createdByAdminId': admin.get('id', g.auth['userId']),
        'createdByAdminName': admin.get('name', g.auth.get('name')),
        'createdByAdminEmail': admin.get('email', g.auth.get('email')),
        'createdByAdminRole': admin.get('role', g.auth.get('role'))
    }

    deduct_stock(product, quantity, order_id)
    orders.insert(0, order)
    recalc_customer_totals(customer['id'])

    log_action('create_order', current_user_id(), {'order_id': order_id, 'amount': order['amount']})

    return created(order)

@app.route('/api/orders/<oid>/status', methods=['PATCH'])
@require_auth()
def update_order_status(oid):
    order = find_by_id(orders, oid)
    if not order:
        return fail('NOT_FOUND', 'Order not found', 404)

    data = get_body() or {}
    status = data.get('status')
    if status not in ORDER_STATUSES:
        return validation_failed([field_error('status', f"Status must be one of: {', '.join(ORDER_STATUSES)}")])

    previous = order['status']
    if status == 'CANCELLED' and previous != 'PREPARING':
        return fail('INVALID_STATUS_CHANGE', 'Orders can only be cancelled while PREPARING.', 400)
    if status not in ORDER_TRANSITIONS[previous]:
        return fail('INVALID_STATUS_CHANGE', f'Order cannot move from {previous} to {status}.', 400)

    order['status'] = status

    if status == 'CANCELLED':
        reason = clean_str(data.get('cancellationReason'))
        if reason:
            order['cancellationReason'] = reason
        restore_stock(order, 'cancel')
        recalc_customer_totals(order['customerId'])

    log_action('update_order_status', current_user_id(), {'order_id': oid, 'old': previous, 'new': status})

    return ok(order)

@app.route('/api/orders/<oid>', methods=['DELETE'])
@require_auth(*MANAGERS)
def delete_order(oid):
    order = find_by_id(orders, oid)
    if not order:
        return fail('NOT_FOUND', 'Order not found', 404)

    # cancelled orders already gave their stock back
    if order['status'] != 'CANCELLED':
        restore_stock(order, 'order deleted')

    remove_by_id(orders, oid)
    recalc_customer_totals(order['customerId'])

    log_action('delete_order', current_user_id(), {'order_id': oid})

    return ok(message='Order deleted')

# ---------- REVIEWS ----------

@app.route('/api/reviews', methods=['GET'])
@require_auth()
def list_reviews():
    return ok(query_collection(reviews, ('customer', 'product', 'comment'), ('rating', 'productId', 'customerId')))

@app.route('/api/reviews/<rid>', methods=['GET'])
@require_auth()
def get_review(rid):
    review = find_by_id(reviews, rid)
    if not review:
        return fail('NOT_FOUND', 'Review not found', 404)
    return ok(review)

@app.route('/api/reviews', methods=['POST'])
@require_auth()
def create_review():
    data = get_body()
    if data is None:
        return validation_failed([], 'No data provided')

    rating = as_int(data.get('rating'))
    comment = clean_str(data.get('comment'))

    errors = []
    if not data.get('orderId'):
        errors.append(field_error('orderId', 'Order is required'))
    if rating is None or not 1 <= rating <= 5:
        errors.append(field_error('rating', 'Rating must be a whole number from 1 to 5'))
    if not comment:
        errors.append(field_error('comment', 'Comment is required'))
    if errors:
        return validation_failed(errors)

    order = find_by_id(orders, data['orderId'])
    if not order:
        return fail('NOT_FOUND', 'Order not found', 404)
    if order['status'] != 'DELIVERED':
        return validation_failed([field_error('orderId', 'Only delivered orders can be reviewed')])
    # write once: one review per order
    if any(r['orderId'] == order['id'] for r in reviews):
        return fail('ALREADY_EXISTS', 'This order already has a review.', 409)

    review = {
        'id': next_numeric_id(reviews, 'R', 3),
        'orderId': order['id'],
        'productId': order['productId'],
        'customerId': order['customerId'],
        'customer': order['customer'],
        'customerEmail': order.get('customerEmail', ''),
        'product': order['product'],
        'rating': rating,
        'comment': comment,
        'date': today_str()
    }
    reviews.append(review)

    log_action('create_review', current_user_id(), {'review_id': review['id'], 'rating': rating})

    return created(review)

@app.route('/api/reviews/<rid>', methods=['DELETE'])
@require_auth(*MANAGERS)
def delete_review(rid):
    if not remove_by_id(reviews, rid):
        return fail('NOT_FOUND', 'Review not found', 404)

    log_action('delete_review', current_user_id(), {'review_id': rid})

    return ok(message='Review deleted')

# ---------- DASHBOARD ----------

@app.route('/api/dashboard/stats', methods=['GET'])
@require_auth()
def get_dashboard_stats():
    return ok(dashboard_stats())

# ============== REQUEST LOCK ==============

@app.before_request
def lock_stores():
    store_lock.acquire()
    g.holds_store_lock = True

@app.teardown_request
def unlock_stores(exc=None):
    if g.pop('holds_store_lock', False):
        store_lock.release()

# ============== ERROR HANDLERS ==============

@app.errorhandler(404)
def not_found(e):
    return fail('NOT_FOUND', 'Endpoint not found', 404)

@app.errorhandler(405)
def method_not_allowed(e):
    return fail('METHOD_NOT_ALLOWED', status=405)

@app.errorhandler(Exception)
def handle_exception(e):
    if isinstance(e, HTTPException):
        return fail(HTTP_ERROR_CODES.get(e.code, 'INTERNAL_ERROR'), e.description, e.code)
    # in debug mode, let it bubble up
    if app.debug:
        raise e
    app.logger.exception('unhandled error on %s %s', request.method, request.path)
    log_action('unhandled_error', data={'error': str(e), 'type': type(e).__name__})
    return fail('INTERNAL_ERROR', status=500)

# ============== STARTUP ==============

reset_data(SEED)

if __name__ == '__main__':
    import logging
    logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    app.logger.setLevel(LOG_LEVEL)
    print("=" * 50)
    print(f"Shop Admin mock API v{VERSION}")
    print("=" * 50)
    print(f"Loaded {len(users)} admins, {len(customers)} customers, {len(products)} products")
    print(f"Loaded {len(orders)} orders, {len(reviews)} reviews")
    print(f"Starting server on http://{HOST}:{PORT}")
    print("=" * 50)
    app.run(host=HOST, port=PORT, debug=DEBUG)
