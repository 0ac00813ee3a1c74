"""
Masked identifiers with a short reveal window.

Aadhaar and UPI ids are always shown masked. An admin can ask for the full
value for REVEAL_SECONDS, stating a reason; every reveal is written to the
admin access log before the value leaves the server.
"""
import time
from flask import request, jsonify, current_app

from bhishak.extensions import db
from bhishak.models.doctor_models import Doctor
from bhishak.utils.audit_util import record_admin_access
from bhishak.utils.encryption_util import encryptor, mask_aadhaar, mask_data
from bhishak.utils.error_handlers import ApiError, NotFoundError, ValidationError
from bhishak.utils.validation_util import string_field

REVEAL_SECONDS = 15
VALID_REASONS = [
    'LEGAL_REQUEST', 'DISPUTE_RESOLUTION', 'QUALITY_AUDIT',
    'TECHNICAL_SUPPORT', 'USER_REQUEST', 'VERIFICATION',
]


def _reason():
    data = request.get_json(silent=True) or {}
    reason = data.get('reason')
    if not reason or reason not in VALID_REASONS:
        raise ValidationError('Reason is required', extra={'validReasons': VALID_REASONS})
    return reason, string_field(data, 'reasonDetails')


def _reveal(doctor_id, admin, field, label):
    reason, reason_details = _reason()

    doctor = db.session.get(Doctor, doctor_id)
    if not doctor:
        raise NotFoundError('Doctor not found')

    encrypted = getattr(doctor, field)
    if not encrypted:
        raise NotFoundError(f"Doctor has not set {label}")

    value = encryptor.decrypt(encrypted)
    if value is None:
        raise ApiError(f"Failed to reveal {label}", code='DECRYPTION_FAILED')

    record_admin_access(
        admin,
        access_type='DOCTOR_VIEW',
        resource_type='DOCTOR',
        resource_id=doctor.id,
        reason=reason,
        reason_details=reason_details or f"Revealed {label} for doctor: {doctor.full_name}",
        action='VIEW',
    )
    current_app.logger.info(f"Admin {admin.email} revealed {label} for doctor {doctor.id} - Reason: {reason}")

    return doctor, value


def reveal_aadhaar(doctor_id, admin):
    doctor, value = _reveal(doctor_id, admin, 'aadhaar_number', 'Aadhaar')
    return jsonify({
        'success': True,
        'message': f"Aadhaar revealed for {REVEAL_SECONDS} seconds",
        'data': {
            'doctorId': doctor.id,
            'doctorName': doctor.full_name,
            'aadhaarNumber': value,
            'expiresAt': int(time.time() * 1000) + REVEAL_SECONDS * 1000,
            'validFor': REVEAL_SECONDS,
        }
    }), 200


def reveal_upi_id(doctor_id, admin):
    doctor, value = _reveal(doctor_id, admin, 'upi_id', 'UPI ID')
    return jsonify({
        'success': True,
        'message': f"UPI ID revealed for {REVEAL_SECONDS} seconds",
        'data': {
            'doctorId': doctor.id,
            'doctorName': doctor.full_name,
            'upiId': value,
            'expiresAt': int(time.time() * 1000) + REVEAL_SECONDS * 1000,
            'validFor': REVEAL_SECONDS,
        }
    }), 200


def get_masked_identifiers(doctor_id):
    """Masked Aadhaar / UPI for admin review screens."""
    doctor = db.session.get(Doctor, doctor_id)
    if not doctor:
        raise NotFoundError('Doctor not found')

    aadhaar = encryptor.decrypt(doctor.aadhaar_number) if doctor.aadhaar_number else None
    upi = encryptor.decrypt(doctor.upi_id) if doctor.upi_id else None
    return jsonify({
        'success': True,
        'data': {
            'doctorId': doctor.id,
            'aadhaarNumber': mask_aadhaar(aadhaar) if aadhaar else None,
            'upiId': mask_data(upi, 4) if upi else None,
        }
    }), 200
