"""
Tests for admin account management
"""

import shopadmin


class TestUserList:
    """Test cases for GET /api/users"""

    def test_list_hides_passwords(self, client, super_headers):
        body = client.get('/api/users?limit=50', headers=super_headers).get_json()
        assert body['data']['pagination']['total'] == 11
        assert all('password' not in u for u in body['data']['items'])

    def test_filter_by_status(self, client, super_headers):
        body = client.get('/api/users?status=PENDING', headers=super_headers).get_json()
        assert [u['id'] for u in body['data']['items']] == ['3']

    def test_search_by_email(self, client, super_headers):
        body = client.get('/api/users?search=OPERATION@', headers=super_headers).get_json()
        assert [u['id'] for u in body['data']['items']] == ['1']

    def test_get_unknown_user(self, client, super_headers):
        response = client.get('/api/users/999', headers=super_headers)
        assert response.status_code == 404
        assert response.get_json()['code'] == 'NOT_FOUND'


class TestUserWrites:
    """Test cases for creating, editing and deleting admins"""

    def test_create_user_defaults_to_active(self, client, super_headers):
        response = client.post('/api/users', headers=super_headers, json={
            'name': 'Direct Hire',
            'email': 'direct@shopadmin.dev',
            'password': 'password123',
            'role': 'OPERATION_ADMIN'
        })
        body = response.get_json()
        assert response.status_code == 201
        assert body['data']['status'] == 'ACTIVE'
        assert body['data']['approvedAt'] is not None

    def test_create_user_duplicate_email(self, client, super_headers):
        response = client.post('/api/users', headers=super_headers, json={
            'name': 'Copy',
            'email': 'cs@shopadmin.dev',
            'password': 'password123',
            'role': 'CS_ADMIN'
        })
        assert response.get_json()['code'] == 'DUPLICATE_EMAIL'

    def test_update_basic_info_ignores_role(self, client, super_headers):
        response = client.put('/api/users/2', headers=super_headers, json={'name': 'CS Lead', 'role': 'SUPER_ADMIN'})
        body = response.get_json()
        assert body['data']['name'] == 'CS Lead'
        assert body['data']['role'] == 'CS_ADMIN'

    def test_update_role(self, client, super_headers):
        response = client.patch('/api/users/2/role', headers=super_headers, json={'role': 'OPERATION_ADMIN'})
        assert response.get_json()['data']['role'] == 'OPERATION_ADMIN'

    def test_update_role_rejects_unknown(self, client, super_headers):
        response = client.patch('/api/users/2/role', headers=super_headers, json={'role': 'OWNER'})
        assert response.get_json()['code'] == 'VALIDATION_ERROR'

    def test_update_status(self, client, super_headers):
        response = client.patch('/api/users/2/status', headers=super_headers, json={'status': 'SUSPENDED'})
        assert response.get_json()['data']['status'] == 'SUSPENDED'

    def test_pending_user_status_goes_through_approval(self, client, super_headers):
        response = client.patch('/api/users/3/status', headers=super_headers, json={'status': 'ACTIVE'})
        assert response.get_json()['code'] == 'INVALID_STATUS_CHANGE'
        assert shopadmin.find_by_id(shopadmin.users, '3')['status'] == 'PENDING'

    def test_delete_user(self, client, super_headers):
        assert client.delete('/api/users/9', headers=super_headers).status_code == 200
        assert shopadmin.find_by_id(shopadmin.users, '9') is None
        assert client.delete('/api/users/9', headers=super_headers).status_code == 404


class TestApproval:
    """Test cases for the approve/reject workflow"""

    def test_approve_pending(self, client, super_headers):
        body = client.post('/api/users/3/approve', headers=super_headers).get_json()
        assert body['data']['status'] == 'ACTIVE'
        assert body['data']['approvedAt'] == shopadmin.today_str()

        # and now the account can sign in
        login = client.post('/api/auth/login', json={'email': 'pending@shopadmin.dev', 'password': 'password123'})
        assert login.status_code == 200

    def test_approve_non_pending(self, client, super_headers):
        response = client.post('/api/users/1/approve', headers=super_headers)
        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_STATUS_CHANGE'

    def test_reject_requires_reason(self, client, super_headers):
        response = client.post('/api/users/3/reject', headers=super_headers, json={})
        assert response.get_json()['code'] == 'VALIDATION_ERROR'
        assert shopadmin.find_by_id(shopadmin.users, '3')['status'] == 'PENDING'

    def test_reject_pending(self, client, super_headers):
        body = client.post('/api/users/3/reject', headers=super_headers, json={'rejectionReason': 'Duplicate request'}).get_json()
        assert body['data']['status'] == 'REJECTED'
        assert body['data']['rejectionReason'] == 'Duplicate request'
        assert body['data']['rejectedAt'] == shopadmin.today_str()

    def test_reject_non_pending(self, client, super_headers):
        response = client.post('/api/users/4/reject', headers=super_headers, json={'rejectionReason': 'again'})
        assert response.get_json()['code'] == 'INVALID_STATUS_CHANGE'
