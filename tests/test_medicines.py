import pytest

from bhishak.extensions import db
from bhishak.models.medicine_models import Medicine, DoctorMedicine
from bhishak.models.system_models import AuditLog


def _medicine(name, verified=True, banned=False, specializations=None):
    medicine = Medicine(name=name, is_verified=verified, is_banned=banned,
                        specializations=specializations or [])
    db.session.add(medicine)
    db.session.commit()
    return medicine


@pytest.fixture
def catalog(app):
    return {
        'aspirin': _medicine('Aspirin'),
        'atorvastatin': _medicine('Atorvastatin', specializations=['Cardiology']),
        'isotretinoin': _medicine('Isotretinoin', specializations=['Dermatology']),
        'pending': _medicine('Newcillin', verified=False),
        'banned': _medicine('Nimesulide', banned=True),
    }


def test_admin_creates_verified_medicine(client, admin, admin_headers):
    response = client.post('/api/medicines', json={
        'name': 'Paracetamol', 'genericName': 'Acetaminophen', 'category': 'Analgesic'
    }, headers=admin_headers)
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['isVerified'] is True
    assert data['verifiedBy'] == str(admin.id)


def test_duplicate_name_is_case_insensitive(client, admin_headers, catalog):
    response = client.post('/api/medicines', json={'name': 'ASPIRIN'}, headers=admin_headers)
    assert response.status_code == 409


def test_create_requires_name(client, admin_headers):
    assert client.post('/api/medicines', json={}, headers=admin_headers).status_code == 400


def test_doctor_cannot_create(client, doctor_headers):
    response = client.post('/api/medicines', json={'name': 'Paracetamol'}, headers=doctor_headers)
    assert response.status_code == 403


def test_admin_listing_filters(client, admin_headers, catalog):
    def names(query=''):
        body = client.get(f"/api/medicines/admin/all?{query}", headers=admin_headers).get_json()
        return [m['name'] for m in body['data']['medicines']]

    assert len(names()) == 5
    assert names('status=banned') == ['Nimesulide']
    assert names('status=unverified') == ['Newcillin']
    assert names('search=stat') == ['Atorvastatin']
    assert client.get('/api/medicines/admin/all?status=odd', headers=admin_headers).status_code == 400


def test_verify_medicine(client, admin_headers, catalog):
    medicine_id = catalog['pending'].id
    response = client.put(f"/api/medicines/{medicine_id}/verify", headers=admin_headers)
    assert response.get_json()['data']['isVerified'] is True
    assert AuditLog.query.filter_by(action='MEDICINE_VERIFY', resource_id=str(medicine_id)).count() == 1

    assert client.put('/api/medicines/9999/verify', headers=admin_headers).status_code == 404


def test_ban_requires_super_admin_and_reason(client, admin_headers, super_admin_headers, catalog):
    medicine_id = catalog['aspirin'].id

    assert client.put(f"/api/medicines/{medicine_id}/ban", json={'reason': 'Recall'},
                      headers=admin_headers).status_code == 403
    assert client.put(f"/api/medicines/{medicine_id}/ban", json={},
                      headers=super_admin_headers).status_code == 400

    response = client.put(f"/api/medicines/{medicine_id}/ban", json={'reason': 'Recall'},
                          headers=super_admin_headers)
    data = response.get_json()['data']
    assert data['isBanned'] is True
    assert data['banReason'] == 'Recall'

    unbanned = client.put(f"/api/medicines/{medicine_id}/unban", headers=super_admin_headers)
    assert unbanned.get_json()['data']['isBanned'] is False
    assert unbanned.get_json()['data']['banReason'] is None


def test_available_medicines_follow_specialization(client, doctor_headers, catalog):
    body = client.get('/api/medicines/available', headers=doctor_headers).get_json()
    assert [m['name'] for m in body['data']] == ['Aspirin', 'Atorvastatin']


def test_my_medicines(client, doctor, doctor_headers, catalog):
    aspirin_id = catalog['aspirin'].id

    added = client.post('/api/medicines/my-medicines', json={'medicineId': aspirin_id}, headers=doctor_headers)
    assert added.status_code == 201
    again = client.post('/api/medicines/my-medicines', json={'medicineId': aspirin_id}, headers=doctor_headers)
    assert again.status_code == 409

    listed = client.get('/api/medicines/my-medicines', headers=doctor_headers).get_json()['data']
    assert [m['name'] for m in listed] == ['Aspirin']

    removed = client.delete(f"/api/medicines/my-medicines/{aspirin_id}", headers=doctor_headers)
    assert removed.status_code == 200
    assert DoctorMedicine.query.filter_by(doctor_id=doctor.id).count() == 0
    assert client.delete(f"/api/medicines/my-medicines/{aspirin_id}", headers=doctor_headers).status_code == 404


def test_cannot_add_banned_or_unverified(client, doctor_headers, catalog):
    banned = client.post('/api/medicines/my-medicines', json={'medicineId': catalog['banned'].id},
                         headers=doctor_headers)
    assert banned.status_code == 400
    assert banned.get_json()['code'] == 'MEDICINE_BANNED'

    pending = client.post('/api/medicines/my-medicines', json={'medicineId': catalog['pending'].id},
                          headers=doctor_headers)
    assert pending.get_json()['code'] == 'MEDICINE_UNVERIFIED'

    assert client.post('/api/medicines/my-medicines', json={'medicineId': 'x'},
                       headers=doctor_headers).status_code == 400


def test_validate_prescription(client, doctor_headers, catalog):
    response = client.post('/api/medicines/validate', json={
        'medications': [{'name': 'aspirin'}, {'name': 'NIMESULIDE'}, 'Unknown Tonic']
    }, headers=doctor_headers)
    data = response.get_json()['data']
    assert data['valid'] is False
    assert [m['name'] for m in data['bannedMedicines']] == ['Nimesulide']

    clean = client.post('/api/medicines/validate', json={'medications': ['Aspirin']}, headers=doctor_headers)
    assert clean.get_json()['data'] == {'valid': True, 'bannedMedicines': []}

    assert client.post('/api/medicines/validate', json={}, headers=doctor_headers).status_code == 400


def test_non_string_fields_are_rejected(client, admin_headers, super_admin_headers, catalog):
    response = client.post('/api/medicines', json={'name': 42}, headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'name must be a string'
    assert client.post('/api/medicines', json={'name': 'Paracetamol', 'category': ['x']},
                       headers=admin_headers).status_code == 400

    medicine_id = catalog['aspirin'].id
    response = client.put(f"/api/medicines/{medicine_id}/ban", json={'reason': {'why': 'Recall'}},
                          headers=super_admin_headers)
    assert response.status_code == 400
    assert db.session.get(Medicine, medicine_id).is_banned is False
