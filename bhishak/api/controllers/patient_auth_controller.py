from datetime import datetime
from flask import request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token, create_refresh_token, decode_token,
    get_jwt, get_jwt_identity, verify_jwt_in_request
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import ExpiredSignatureError, InvalidTokenError
from sqlalchemy.exc import IntegrityError

from bhishak.extensions import db
from bhishak.models.patient_models import Patient, Consultation, MedicalRecord
from bhishak.utils.audit_util import record_audit
from bhishak.utils.decorators import ACTOR_CLAIM
from bhishak.utils.encryption_util import mask_phone
from bhishak.utils.error_handlers import (
    AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
)
from bhishak.utils.format_util import resolve_file_url
from bhishak.utils.otp_util import normalize_phone, issue_otp, verify_otp as check_otp, has_verified_otp
from bhishak.utils.pagination import parse_pagination, paginate, pagination_meta
from bhishak.utils.validation_util import string_field

PATIENT_GENDERS = ('MALE', 'FEMALE', 'OTHER')


def _token_claims(patient):
    return {
        ACTOR_CLAIM: 'patient',
        'phone': patient.phone,
        'fullName': patient.full_name,
        'accountType': patient.account_type,
    }


def _issue_tokens(patient):
    """Access + refresh token pair; both carry the patient discriminator."""
    claims = _token_claims(patient)
    access_token = create_access_token(
        identity=str(patient.id), additional_claims=claims,
        expires_delta=current_app.config['PATIENT_ACCESS_TOKEN_EXPIRES'],
    )
    refresh_token = create_refresh_token(
        identity=str(patient.id), additional_claims=claims,
        expires_delta=current_app.config['PATIENT_REFRESH_TOKEN_EXPIRES'],
    )
    return access_token, refresh_token


def _auth_payload(patient):
    access_token, refresh_token = _issue_tokens(patient)
    return {
        'patient': patient.to_dict(),
        'accessToken': access_token,
        'refreshToken': refresh_token,
    }


def _get_patient_or_404(patient_id):
    patient = db.session.get(Patient, patient_id)
    if not patient:
        raise NotFoundError('Patient not found')
    return patient


def _clean_profile_fields(data, require_name=False):
    """Validates the editable profile fields present in `data`."""
    fields = {}
    if 'fullName' in data or require_name:
        full_name = string_field(data, 'fullName') or ''
        if len(full_name) < 2:
            raise ValidationError('Full name is required')
        fields['full_name'] = full_name[:255]

    if data.get('age') is not None:
        age = data['age']
        if isinstance(age, bool) or not isinstance(age, int) or not 0 < age < 150:
            raise ValidationError('Age must be a whole number between 1 and 149')
        fields['age'] = age

    if data.get('gender') is not None:
        gender = str(data['gender']).upper()
        if gender not in PATIENT_GENDERS:
            raise ValidationError(f"Gender must be one of {', '.join(PATIENT_GENDERS)}")
        fields['gender'] = gender
    return fields


# --- Public ---

def send_otp():
    data = request.get_json(silent=True) or {}
    phone = normalize_phone(data.get('phone'))

    if Patient.query.filter_by(phone=phone).first():
        raise ConflictError('Phone number already registered. Please login.', code='PHONE_REGISTERED')

    issue_otp(phone)
    return jsonify({'success': True, 'message': 'OTP sent successfully'}), 200


def verify_otp():
    data = request.get_json(silent=True) or {}
    phone = normalize_phone(data.get('phone'))
    check_otp(phone, data.get('otp'))
    return jsonify({
        'success': True,
        'message': 'Phone number verified',
        'data': {'phone': phone, 'verified': True},
    }), 200


def signup():
    data = request.get_json(silent=True) or {}
    phone = normalize_phone(data.get('phone'))
    profile = _clean_profile_fields(data, require_name=True)

    pin = data.get('pin')
    if not Patient.is_valid_pin(pin):
        raise ValidationError('PIN must be 4 to 6 digits')

    if Patient.query.filter_by(phone=phone).first():
        raise ConflictError('Phone number already registered. Please login.', code='PHONE_REGISTERED')

    if not has_verified_otp(phone):
        raise ValidationError('Please verify your phone number first', code='OTP_NOT_VERIFIED')

    patient = Patient(phone=phone, phone_verified=True, account_type='SELF', **profile)
    patient.set_pin(pin)

    try:
        db.session.add(patient)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Phone number already registered. Please login.', code='PHONE_REGISTERED')

    record_audit('PATIENT', patient.id, 'PATIENT_CREATE', actor_name=patient.full_name,
                 resource_type='PATIENT', resource_id=patient.id,
                 description='Patient self-registered')

    return jsonify({
        'success': True,
        'message': 'Account created successfully',
        'data': _auth_payload(patient),
    }), 201


def login():
    data = request.get_json(silent=True) or {}
    phone = normalize_phone(data.get('phone'))
    pin = data.get('pin')
    if not pin:
        raise ValidationError('Phone number and PIN are required')

    patient = Patient.query.filter_by(phone=phone).first()
    if not patient or not patient.check_pin(str(pin)):
        record_audit('PATIENT', patient.id if patient else 'unknown', 'FAILED_LOGIN',
                     actor_name=patient.full_name if patient else None,
                     description=f"Patient login failed for {mask_phone(phone)}",
                     success=False,
                     error_message='Invalid PIN' if patient else 'Phone not registered')
        raise AuthenticationError('Invalid phone number or PIN', code='INVALID_CREDENTIALS')

    patient.last_login_at = datetime.utcnow()
    db.session.commit()

    record_audit('PATIENT', patient.id, 'LOGIN', actor_name=patient.full_name,
                 description='Patient logged in successfully')

    return jsonify({
        'success': True,
        'message': 'Login successful',
        'data': _auth_payload(patient),
    }), 200


def _decode_refresh_token(token):
    try:
        claims = decode_token(token)
    except ExpiredSignatureError:
        raise AuthenticationError('Refresh token expired. Please login again.', code='TOKEN_EXPIRED')
    except (InvalidTokenError, JWTExtendedException):
        raise AuthenticationError('Invalid refresh token. Please login again.', code='TOKEN_INVALID')

    if claims.get('type') != 'refresh':
        raise AuthenticationError('Invalid refresh token. Please login again.', code='TOKEN_INVALID')
    return claims


def refresh_token():
    """New access token from a refresh token sent in the body or as a bearer token."""
    data = request.get_json(silent=True) or {}
    token = string_field(data, 'refreshToken')

    if token:
        claims = _decode_refresh_token(token)
        patient_id = claims['sub']
    else:
        verify_jwt_in_request(refresh=True)
        claims = get_jwt()
        patient_id = get_jwt_identity()

    if claims.get(ACTOR_CLAIM) != 'patient':
        raise AuthorizationError('Invalid token type', code='INVALID_TOKEN_TYPE')

    patient = db.session.get(Patient, int(patient_id))
    if not patient:
        raise AuthenticationError('Patient not found. Please login again.', code='TOKEN_INVALID')

    access_token = create_access_token(
        identity=str(patient.id), additional_claims=_token_claims(patient),
        expires_delta=current_app.config['PATIENT_ACCESS_TOKEN_EXPIRES'],
    )
    return jsonify({'success': True, 'data': {'accessToken': access_token}}), 200


# --- Authenticated ---

def get_profile(patient):
    record = _get_patient_or_404(patient.id)
    return jsonify({'success': True, 'data': record.to_dict()}), 200


def update_profile(patient):
    data = request.get_json(silent=True) or {}
    changes = _clean_profile_fields(data)
    if not changes:
        raise ValidationError('No updatable fields provided')

    record = _get_patient_or_404(patient.id)
    for column, value in changes.items():
        setattr(record, column, value)
    db.session.commit()

    return jsonify({'success': True, 'data': record.to_dict(), 'message': 'Profile updated successfully'}), 200


def change_pin(patient):
    data = request.get_json(silent=True) or {}
    current_pin, new_pin = data.get('currentPin'), data.get('newPin')
    if not current_pin or not new_pin:
        raise ValidationError('Current and new PIN required')

    record = _get_patient_or_404(patient.id)
    if not record.check_pin(str(current_pin)):
        raise AuthenticationError('Current PIN is incorrect', code='INVALID_CREDENTIALS')
    if str(current_pin) == str(new_pin):
        raise ValidationError('New PIN must be different from the current PIN')

    try:
        record.set_pin(new_pin)
    except ValueError as e:
        raise ValidationError(str(e))
    db.session.commit()

    return jsonify({'success': True, 'message': 'PIN changed successfully'}), 200


def get_my_consultations(patient):
    page, limit = parse_pagination(request.args, default_limit=20)
    query = Consultation.query.filter_by(patient_id=patient.id)
    if request.args.get('status'):
        query = query.filter(Consultation.status == request.args['status'])

    consultations, total = paginate(query.order_by(Consultation.created_at.desc()), page, limit)
    return jsonify({
        'success': True,
        'data': {
            'consultations': [c.to_dict() for c in consultations],
            'pagination': pagination_meta(page, limit, total),
        }
    }), 200


def get_my_medical_records(patient):
    page, limit = parse_pagination(request.args, default_limit=20)
    query = MedicalRecord.query.filter_by(patient_id=patient.id).order_by(MedicalRecord.created_at.desc())
    records, total = paginate(query, page, limit)
    return jsonify({
        'success': True,
        'data': {
            'records': [{**r.to_dict(), 'fileUrl': resolve_file_url(r.file_path)} for r in records],
            'pagination': pagination_meta(page, limit, total),
        }
    }), 200
