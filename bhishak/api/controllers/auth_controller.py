from datetime import datetime
from flask import request, jsonify
from flask_jwt_extended import create_access_token

from bhishak.extensions import db
from bhishak.models.admin_models import Admin
from bhishak.models.doctor_models import Doctor
from bhishak.utils.audit_util import record_audit
from bhishak.utils.decorators import ACTOR_CLAIM
from bhishak.utils.error_handlers import AuthenticationError, AuthorizationError, ValidationError
from bhishak.utils.validation_util import string_field

DOCTOR_STATUS_MESSAGES = {
    'PENDING_VERIFICATION': 'Your account is pending verification. Please wait for admin approval.',
    'REJECTED': 'Your account was rejected.',
    'SUSPENDED': 'Your account has been suspended. Please contact support.',
}


def _credentials():
    data = request.get_json(silent=True) or {}
    email = (string_field(data, 'email') or '').lower()
    password = data.get('password')
    if not email or not password:
        raise ValidationError('Email and password required')
    if not isinstance(password, str):
        raise ValidationError('password must be a string')
    return email, password


def admin_login():
    """Handles admin login; the role travels in the token claims."""
    email, password = _credentials()
    admin = Admin.query.filter_by(email=email).first()

    if not admin or not admin.check_password(password):
        record_audit('ADMIN', admin.id if admin else 'unknown', 'FAILED_LOGIN',
                     actor_email=email, success=False,
                     description='Admin login failed',
                     error_message='Invalid password' if admin else 'Invalid email')
        raise AuthenticationError('Invalid email or password', code='INVALID_CREDENTIALS')

    if not admin.is_active:
        raise AuthorizationError('Account deactivated')

    admin.last_login = datetime.utcnow()
    db.session.commit()

    access_token = create_access_token(
        identity=str(admin.id), additional_claims={ACTOR_CLAIM: 'admin', 'role': admin.role}
    )
    record_audit('ADMIN', admin.id, 'LOGIN', actor_email=admin.email, actor_name=admin.full_name,
                 description='Admin logged in successfully')

    return jsonify({
        'success': True,
        'message': 'Login successful',
        'data': {'token': access_token, 'admin': admin.to_dict()},
    }), 200


def doctor_login():
    """Handles doctor login; only verified doctors receive a token."""
    email, password = _credentials()
    doctor = Doctor.query.filter_by(email=email).first()

    if not doctor or not doctor.check_password(password):
        record_audit('DOCTOR', doctor.id if doctor else 'unknown', 'FAILED_LOGIN',
                     actor_email=email, actor_name=doctor.full_name if doctor else None,
                     success=False,
                     description='Doctor login failed',
                     error_message='Invalid password' if doctor else 'Invalid email')
        raise AuthenticationError('Invalid email or password', code='INVALID_CREDENTIALS')

    if doctor.status in DOCTOR_STATUS_MESSAGES:
        extra = {'status': doctor.status}
        if doctor.status == 'REJECTED':
            extra['rejectionReason'] = doctor.rejection_reason
        raise AuthorizationError(DOCTOR_STATUS_MESSAGES[doctor.status],
                                 code=f"DOCTOR_{doctor.status}", extra=extra)

    access_token = create_access_token(
        identity=str(doctor.id), additional_claims={ACTOR_CLAIM: 'doctor', 'role': 'DOCTOR'}
    )
    record_audit('DOCTOR', doctor.id, 'LOGIN', actor_email=doctor.email, actor_name=doctor.full_name,
                 description='Doctor logged in successfully')

    return jsonify({
        'success': True,
        'message': 'Login successful',
        'data': {'token': access_token, 'doctor': doctor.to_dict()},
    }), 200
