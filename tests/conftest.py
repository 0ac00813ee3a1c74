import pytest
from flask_jwt_extended import create_access_token

from bhishak import create_app
from bhishak.extensions import db
from bhishak.models.admin_models import Admin
from bhishak.models.doctor_models import Doctor
from bhishak.models.patient_models import Patient
from bhishak.utils.decorators import ACTOR_CLAIM
from bhishak.utils.encryption_util import encryptor

ADMIN_PASSWORD = 'admin-pass-123'
DOCTOR_PASSWORD = 'doctor-pass-123'
PATIENT_PIN = '1234'


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _admin(email, role):
    admin = Admin(email=email, full_name=f"{role.title()} User", role=role)
    admin.set_password(ADMIN_PASSWORD)
    db.session.add(admin)
    db.session.commit()
    return admin


@pytest.fixture
def super_admin(app):
    return _admin('root@bhishak.test', 'SUPER_ADMIN')


@pytest.fixture
def admin(app):
    return _admin('ops@bhishak.test', 'ADMIN')


@pytest.fixture
def doctor(app):
    doctor = Doctor(
        email='asha@bhishak.test',
        full_name='Asha Rao',
        specialization='Cardiology',
        status='VERIFIED',
        profile_photo='uploads/photos/asha.jpg',
        consultation_fee=500,
        languages=['English', 'Kannada'],
        years_of_experience=12,
        aadhaar_number=encryptor.encrypt('123456789012'),
        upi_id=encryptor.encrypt('asha@okbank'),
    )
    doctor.set_password(DOCTOR_PASSWORD)
    db.session.add(doctor)
    db.session.commit()
    return doctor


@pytest.fixture
def patient(app):
    patient = Patient(phone='+919876543210', full_name='Ravi Kumar', age=34,
                      gender='MALE', phone_verified=True)
    patient.set_pin(PATIENT_PIN)
    db.session.add(patient)
    db.session.commit()
    return patient


def bearer(token):
    return {'Authorization': f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin):
    return bearer(create_access_token(
        identity=str(admin.id), additional_claims={ACTOR_CLAIM: 'admin', 'role': admin.role}))


@pytest.fixture
def super_admin_headers(super_admin):
    return bearer(create_access_token(
        identity=str(super_admin.id), additional_claims={ACTOR_CLAIM: 'admin', 'role': super_admin.role}))


@pytest.fixture
def doctor_headers(doctor):
    return bearer(create_access_token(
        identity=str(doctor.id), additional_claims={ACTOR_CLAIM: 'doctor', 'role': 'DOCTOR'}))


@pytest.fixture
def patient_headers(patient):
    return bearer(create_access_token(
        identity=str(patient.id),
        additional_claims={ACTOR_CLAIM: 'patient', 'phone': patient.phone,
                           'fullName': patient.full_name, 'accountType': patient.account_type}))
