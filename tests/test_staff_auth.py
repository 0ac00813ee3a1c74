from bhishak.extensions import db
from bhishak.models.admin_models import Admin
from bhishak.models.system_models import AuditLog
from conftest import ADMIN_PASSWORD, DOCTOR_PASSWORD, bearer


def test_admin_login(client, super_admin):
    response = client.post('/api/auth/admin/login', json={
        'email': 'ROOT@bhishak.test', 'password': ADMIN_PASSWORD
    })
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['admin']['role'] == 'SUPER_ADMIN'
    assert db.session.get(Admin, super_admin.id).last_login is not None

    # the issued token opens super admin routes
    assert client.get('/api/admin/audit-stats', headers=bearer(data['token'])).status_code == 200
    assert AuditLog.query.filter_by(action='LOGIN', actor_type='ADMIN').count() == 1


def test_admin_login_failures_are_audited(client, admin):
    wrong = client.post('/api/auth/admin/login', json={'email': admin.email, 'password': 'nope-nope'})
    assert wrong.status_code == 401
    unknown = client.post('/api/auth/admin/login', json={'email': 'ghost@bhishak.test', 'password': 'x'})
    assert unknown.status_code == 401

    failures = AuditLog.query.filter_by(action='FAILED_LOGIN').order_by(AuditLog.id).all()
    assert [f.error_message for f in failures] == ['Invalid password', 'Invalid email']
    assert all(f.success is False for f in failures)


def test_login_requires_fields(client):
    assert client.post('/api/auth/admin/login', json={}).status_code == 400
    assert client.post('/api/auth/doctor/login', json={'email': 'a@b.test'}).status_code == 400


def test_doctor_login(client, doctor):
    response = client.post('/api/auth/doctor/login', json={'email': doctor.email, 'password': DOCTOR_PASSWORD})
    assert response.status_code == 200
    token = response.get_json()['data']['token']
    assert client.get('/api/medicines/available', headers=bearer(token)).status_code == 200


def test_unverified_doctor_cannot_login(client, doctor):
    doctor.status = 'PENDING_VERIFICATION'
    db.session.commit()
    response = client.post('/api/auth/doctor/login', json={'email': doctor.email, 'password': DOCTOR_PASSWORD})
    assert response.status_code == 403
    assert response.get_json()['code'] == 'DOCTOR_PENDING_VERIFICATION'

    doctor.status = 'REJECTED'
    doctor.rejection_reason = 'License mismatch'
    db.session.commit()
    response = client.post('/api/auth/doctor/login', json={'email': doctor.email, 'password': DOCTOR_PASSWORD})
    assert response.get_json()['rejectionReason'] == 'License mismatch'


def test_login_rejects_non_string_credentials(client, admin):
    response = client.post('/api/auth/admin/login', json={'email': 123, 'password': ADMIN_PASSWORD})
    assert response.status_code == 400
    assert response.get_json()['message'] == 'email must be a string'

    response = client.post('/api/auth/doctor/login', json={'email': admin.email, 'password': ['x']})
    assert response.status_code == 400
    assert response.get_json()['code'] == 'VALIDATION_ERROR'
