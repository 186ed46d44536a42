"""
Tests for login, registration, tokens and role checks
"""

import base64
import json

import shopadmin


def login(client, email, password):
    return client.post('/api/auth/login', json={'email': email, 'password': password})


class TestLogin:
    """Test cases for POST /api/auth/login"""

    def test_login_success_returns_user_and_token(self, client):
        """Test an active admin gets a token and no password hash"""
        response = login(client, 'admin@shopadmin.dev', 'admin1234')
        body = response.get_json()

        assert response.status_code == 200
        assert body['success'] is True
        assert body['code'] == 'OK'
        assert body['data']['user']['role'] == 'SUPER_ADMIN'
        assert 'password' not in body['data']['user']
        assert shopadmin.decode_token(body['data']['token'])['userId'] == '0'

    def test_login_is_case_insensitive_on_email(self, client):
        response = login(client, 'ADMIN@shopadmin.dev', 'admin1234')
        assert response.status_code == 200

    def test_wrong_password(self, client):
        response = login(client, 'admin@shopadmin.dev', 'wrong-password')
        assert response.status_code == 401
        assert response.get_json()['code'] == 'INVALID_CREDENTIALS'

    def test_unknown_email(self, client):
        response = login(client, 'nobody@shopadmin.dev', 'password123')
        assert response.status_code == 401
        assert response.get_json()['code'] == 'INVALID_CREDENTIALS'

    def test_missing_fields(self, client):
        response = client.post('/api/auth/login', json={'email': 'admin@shopadmin.dev'})
        body = response.get_json()
        assert response.status_code == 400
        assert body['code'] == 'VALIDATION_ERROR'
        assert body['errors'][0]['field'] == 'password'

    def test_pending_account_gets_no_token(self, client):
        """Test a PENDING admin is refused with 403 and no data"""
        response = login(client, 'pending@shopadmin.dev', 'password123')
        body = response.get_json()
        assert response.status_code == 403
        assert body['code'] == 'ACCOUNT_PENDING'
        assert 'data' not in body

    def test_rejected_account_message_has_reason(self, client):
        response = login(client, 'rejected@shopadmin.dev', 'password123')
        body = response.get_json()
        assert response.status_code == 403
        assert body['code'] == 'ACCOUNT_REJECTED'
        assert 'Not enough experience' in body['message']

    def test_suspended_and_inactive_accounts(self, client):
        assert login(client, 'suspended@shopadmin.dev', 'password123').get_json()['code'] == 'ACCOUNT_SUSPENDED'
        assert login(client, 'jung@shopadmin.dev', 'password123').get_json()['code'] == 'ACCOUNT_INACTIVE'

    def test_login_is_audited(self, client):
        login(client, 'cs@shopadmin.dev', 'password123')
        assert shopadmin.audit_log[-1]['action'] == 'login'
        assert shopadmin.audit_log[-1]['user'] == '2'


class TestRegister:
    """Test cases for POST /api/auth/register"""

    payload = {
        'name': 'New Admin',
        'email': 'new.admin@shopadmin.dev',
        'password': 'longenough',
        'phone': '010-1212-3434',
        'role': 'CS_ADMIN',
        'requestMessage': 'Joining the CS team'
    }

    def test_register_creates_pending_account(self, client):
        response = client.post('/api/auth/register', json=self.payload)
        body = response.get_json()

        assert response.status_code == 201
        assert body['code'] == 'CREATED'
        assert body['data']['status'] == 'PENDING'
        assert body['data']['id'] == '11'
        assert 'password' not in body['data']

        # pending accounts cannot log in yet
        assert login(client, self.payload['email'], 'longenough').get_json()['code'] == 'ACCOUNT_PENDING'

    def test_duplicate_email(self, client):
        response = client.post('/api/auth/register', json={**self.payload, 'email': 'admin@shopadmin.dev'})
        assert response.status_code == 400
        assert response.get_json()['code'] == 'DUPLICATE_EMAIL'

    def test_invalid_email(self, client):
        response = client.post('/api/auth/register', json={**self.payload, 'email': 'not-an-email'})
        assert response.get_json()['code'] == 'INVALID_EMAIL'

    def test_short_password(self, client):
        response = client.post('/api/auth/register', json={**self.payload, 'password': 'short'})
        body = response.get_json()
        assert body['code'] == 'VALIDATION_ERROR'
        assert body['errors'][0]['field'] == 'password'

    def test_unknown_role(self, client):
        response = client.post('/api/auth/register', json={**self.payload, 'role': 'GOD_MODE'})
        body = response.get_json()
        assert body['code'] == 'VALIDATION_ERROR'
        assert [e['field'] for e in body['errors']] == ['role']


class TestToken:
    """Test cases for the mock token codec"""

    def test_token_has_three_base64_parts(self):
        token = shopadmin.generate_token(shopadmin.users[0])
        parts = token.split('.')
        assert len(parts) == 3
        payload = json.loads(base64.b64decode(parts[1]))
        assert payload['exp'] - payload['iat'] == shopadmin.TOKEN_TTL_MS
        assert payload['role'] == 'SUPER_ADMIN'

    def test_decode_rejects_garbage(self):
        assert shopadmin.decode_token('') is None
        assert shopadmin.decode_token('abc') is None
        assert shopadmin.decode_token('a.!!!.c') is None

    def test_extract_token(self):
        assert shopadmin.extract_token('Bearer abc') == 'abc'
        assert shopadmin.extract_token('Basic abc') is None
        assert shopadmin.extract_token(None) is None


class TestAuthorization:
    """Test cases for the auth decorator and role matrix"""

    def test_missing_token(self, client):
        response = client.get('/api/products')
        assert response.status_code == 401
        assert response.get_json()['code'] == 'UNAUTHORIZED'

    def test_invalid_token(self, client):
        response = client.get('/api/products', headers={'Authorization': 'Bearer not.a.token'})
        assert response.status_code == 401
        assert response.get_json()['code'] == 'INVALID_TOKEN'

    def test_expired_token(self, client, monkeypatch):
        token = shopadmin.generate_token(shopadmin.users[0])
        real_now = shopadmin.now_ms()
        monkeypatch.setattr(shopadmin, 'now_ms', lambda: real_now + shopadmin.TOKEN_TTL_MS + 1)

        response = client.get('/api/products', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 401
        assert response.get_json()['code'] == 'TOKEN_EXPIRED'

    def test_users_are_super_admin_only(self, client, operation_headers, cs_headers, super_headers):
        assert client.get('/api/users', headers=operation_headers).status_code == 403
        assert client.get('/api/users', headers=cs_headers).get_json()['code'] == 'FORBIDDEN'
        assert client.get('/api/users', headers=super_headers).status_code == 200

    def test_cs_cannot_write_products(self, client, cs_headers):
        response = client.post('/api/products', headers=cs_headers, json={
            'name': 'x', 'category': 'TOYS', 'price': 1000, 'stock': 1
        })
        assert response.status_code == 403

    def test_cs_can_read_everything_else(self, client, cs_headers):
        for path in ('/api/customers', '/api/products', '/api/orders', '/api/reviews', '/api/dashboard/stats'):
            assert client.get(path, headers=cs_headers).status_code == 200


class TestProfile:
    """Test cases for /api/users/me and password changes"""

    def test_get_profile(self, client, cs_headers):
        body = client.get('/api/users/me', headers=cs_headers).get_json()
        assert body['data']['email'] == 'cs@shopadmin.dev'
        assert 'password' not in body['data']

    def test_update_profile(self, client, cs_headers):
        response = client.patch('/api/users/me', headers=cs_headers, json={'name': 'Renamed', 'phone': '010-0101-0202'})
        assert response.status_code == 200
        assert shopadmin.find_by_id(shopadmin.users, '2')['name'] == 'Renamed'

    def test_update_profile_duplicate_email(self, client, cs_headers):
        response = client.patch('/api/users/me', headers=cs_headers, json={'email': 'admin@shopadmin.dev'})
        assert response.get_json()['code'] == 'DUPLICATE_EMAIL'

    def test_change_password(self, client, cs_headers):
        response = client.put('/api/auth/password', headers=cs_headers, json={
            'currentPassword': 'password123',
            'newPassword': 'brand-new-pass'
        })
        assert response.status_code == 200
        assert login(client, 'cs@shopadmin.dev', 'brand-new-pass').status_code == 200

    def test_change_password_wrong_current(self, client, cs_headers):
        response = client.put('/api/auth/password', headers=cs_headers, json={
            'currentPassword': 'nope',
            'newPassword': 'brand-new-pass'
        })
        assert response.status_code == 401
        assert response.get_json()['code'] == 'INVALID_PASSWORD'

    def test_change_password_too_short(self, client, cs_headers):
        response = client.put('/api/auth/password', headers=cs_headers, json={
            'currentPassword': 'password123',
            'newPassword': 'short'
        })
        assert response.get_json()['code'] == 'VALIDATION_ERROR'

    def test_logout(self, client, cs_headers):
        response = client.post('/api/auth/logout', headers=cs_headers)
        assert response.status_code == 200
        assert response.get_json()['success'] is True
