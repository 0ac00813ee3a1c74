import pytest

from bhishak.extensions import db
from bhishak.models.doctor_models import Doctor


@pytest.fixture
def other_doctors(app):
    doctors = [
        Doctor(email='vik@bhishak.test', full_name='Dr. Vikram Shah', specialization='Dermatology',
               status='VERIFIED', is_online=True, password_hash='x'),
        Doctor(email='new@bhishak.test', full_name='Neha Jain', specialization='Cardiology',
               status='PENDING_VERIFICATION', password_hash='x'),
    ]
    db.session.add_all(doctors)
    db.session.commit()
    return doctors


def test_search_only_returns_verified(client, doctor, other_doctors):
    body = client.get('/api/doctors/search').get_json()['data']
    names = [d['fullName'] for d in body['doctors']]
    assert names == ['Dr. Vikram Shah', 'Asha Rao']
    assert body['pagination']['total'] == 2


def test_search_cards(client, doctor):
    card = client.get('/api/doctors/search').get_json()['data']['doctors'][0]
    assert card['displayName'] == 'Dr. Asha Rao'
    assert card['profilePhotoUrl'] == 'http://api.test/uploads/photos/asha.jpg'
    assert card['consultationFee'] == 500.0
    assert 'email' not in card
    assert 'aadhaarNumber' not in card


def test_display_name_prefix_is_idempotent(client, other_doctors):
    card = client.get('/api/doctors/search?q=vikram').get_json()['data']['doctors'][0]
    assert card['displayName'] == 'Dr. Vikram Shah'


def test_search_filters(client, doctor, other_doctors):
    def names(query):
        return [d['fullName'] for d in client.get(f"/api/doctors/search?{query}").get_json()['data']['doctors']]

    assert names('specialization=cardiology') == ['Asha Rao']
    assert names('online=true') == ['Dr. Vikram Shah']
    assert names('q=derma') == ['Dr. Vikram Shah']
    assert client.get('/api/doctors/search?limit=500').get_json()['data']['pagination']['limit'] == 50


def test_specializations(client, doctor, other_doctors):
    body = client.get('/api/doctors/specializations').get_json()
    assert body['data'] == [
        {'name': 'Cardiology', 'doctorCount': 1},
        {'name': 'Dermatology', 'doctorCount': 1},
    ]


def test_public_profile(client, doctor, other_doctors):
    assert client.get(f"/api/doctors/{doctor.id}/public").status_code == 200
    pending = other_doctors[1]
    assert client.get(f"/api/doctors/{pending.id}/public").status_code == 404
    assert client.get('/api/doctors/9999/public').status_code == 404


def test_online_status(client, doctor, doctor_headers):
    response = client.post('/api/doctors/online-status', json={'isOnline': True}, headers=doctor_headers)
    assert response.get_json()['data']['isOnline'] is True
    assert db.session.get(Doctor, doctor.id).last_seen_at is not None

    assert client.post('/api/doctors/online-status', json={'isOnline': 'yes'},
                       headers=doctor_headers).status_code == 400


def test_profile_update_is_whitelisted(client, doctor, doctor_headers):
    response = client.put('/api/doctors/profile', json={
        'bio': 'Interventional cardiologist', 'status': 'SUSPENDED', 'email': 'x@y.test'
    }, headers=doctor_headers)
    data = response.get_json()['data']
    assert data['bio'] == 'Interventional cardiologist'
    assert data['status'] == 'VERIFIED'
    assert data['email'] == 'asha@bhishak.test'

    only_forbidden = client.put('/api/doctors/profile', json={'status': 'VERIFIED'}, headers=doctor_headers)
    assert only_forbidden.status_code == 400
    assert client.put('/api/doctors/profile', json={'consultationFee': -1},
                      headers=doctor_headers).status_code == 400


@pytest.mark.parametrize('payload', [
    {'bio': {'a': 1}},
    {'phone': ['9876543210']},
    {'specialization': 42},
    {'languages': 'Hindi'},
    {'languages': ['Hindi', 3]},
    {'yearsOfExperience': True},
    {'yearsOfExperience': 2.5},
    {'consultationFee': '500'},
    {'consultationFee': False},
])
def test_profile_update_rejects_wrong_types(client, doctor, doctor_headers, payload):
    response = client.put('/api/doctors/profile', json=payload, headers=doctor_headers)
    assert response.status_code == 400
    assert response.get_json()['success'] is False
