import math
from datetime import datetime
from flask import request, jsonify
from sqlalchemy import func, or_

from bhishak.extensions import db
from bhishak.models.doctor_models import Doctor
from bhishak.utils.error_handlers import NotFoundError, ValidationError
from bhishak.utils.format_util import format_doctor_name, resolve_file_url
from bhishak.utils.pagination import parse_pagination, paginate, pagination_meta
from bhishak.utils.validation_util import string_field

# Fields a doctor may change on their public profile
EDITABLE_PROFILE_FIELDS = {
    'bio': 'bio',
    'specialization': 'specialization',
    'consultationFee': 'consultation_fee',
    'languages': 'languages',
    'yearsOfExperience': 'years_of_experience',
    'phone': 'phone',
}
TEXT_PROFILE_COLUMNS = ('bio', 'specialization', 'phone')


def _public_card(doctor):
    """Doctor data safe to show to anyone; no contact details or identifiers."""
    return {
        'id': doctor.id,
        'fullName': doctor.full_name,
        'displayName': format_doctor_name(doctor.full_name),
        'specialization': doctor.specialization,
        'bio': doctor.bio,
        'profilePhotoUrl': resolve_file_url(doctor.profile_photo),
        'consultationFee': float(doctor.consultation_fee) if doctor.consultation_fee is not None else None,
        'languages': doctor.languages or [],
        'yearsOfExperience': doctor.years_of_experience,
        'isOnline': bool(doctor.is_online),
        'lastSeenAt': doctor.last_seen_at.isoformat() if doctor.last_seen_at else None,
    }


def search_doctors():
    page, limit = parse_pagination(request.args, default_limit=20, max_limit=50)
    args = request.args

    query = Doctor.query.filter(Doctor.status == 'VERIFIED')
    q = (args.get('q') or '').strip()
    if q:
        pattern = f"%{q}%"
        query = query.filter(or_(Doctor.full_name.ilike(pattern), Doctor.specialization.ilike(pattern)))

    specialization = (args.get('specialization') or '').strip()
    if specialization:
        query = query.filter(func.lower(Doctor.specialization) == specialization.lower())

    if args.get('online') == 'true':
        query = query.filter(Doctor.is_online.is_(True))

    doctors, total = paginate(query.order_by(Doctor.is_online.desc(), Doctor.full_name.asc()), page, limit)
    return jsonify({
        'success': True,
        'data': {
            'doctors': [_public_card(d) for d in doctors],
            'pagination': pagination_meta(page, limit, total),
        }
    }), 200


def get_specializations():
    rows = (db.session.query(Doctor.specialization, func.count(Doctor.id))
            .filter(Doctor.status == 'VERIFIED', Doctor.specialization.isnot(None))
            .group_by(Doctor.specialization)
            .order_by(Doctor.specialization.asc())
            .all())
    return jsonify({
        'success': True,
        'data': [{'name': name, 'doctorCount': count} for name, count in rows]
    }), 200


def get_doctor_public_profile(doctor_id):
    doctor = db.session.get(Doctor, doctor_id)
    if not doctor or not doctor.is_verified:
        raise NotFoundError('Doctor not found')
    return jsonify({'success': True, 'data': _public_card(doctor)}), 200


def update_online_status(doctor):
    data = request.get_json(silent=True) or {}
    is_online = data.get('isOnline')
    if not isinstance(is_online, bool):
        raise ValidationError('isOnline must be true or false')

    record = db.session.get(Doctor, doctor.id)
    record.is_online = is_online
    record.last_seen_at = datetime.utcnow()
    db.session.commit()
    return jsonify({'success': True, 'data': {'isOnline': record.is_online}}), 200


def update_doctor_profile(doctor):
    data = request.get_json(silent=True) or {}
    changes = {column: data[field] for field, column in EDITABLE_PROFILE_FIELDS.items() if field in data}
    if not changes:
        raise ValidationError('No updatable fields provided',
                              extra={'allowedFields': list(EDITABLE_PROFILE_FIELDS)})

    for field, column in EDITABLE_PROFILE_FIELDS.items():
        if column in TEXT_PROFILE_COLUMNS and column in changes:
            changes[column] = string_field(data, field)

    if 'languages' in changes and (not isinstance(changes['languages'], list)
                                   or not all(isinstance(lang, str) for lang in changes['languages'])):
        raise ValidationError('languages must be a list of strings')
    if 'consultation_fee' in changes and changes['consultation_fee'] is not None:
        fee = changes['consultation_fee']
        if isinstance(fee, bool) or not isinstance(fee, (int, float)) or not math.isfinite(fee):
            raise ValidationError('consultationFee must be a number')
        if fee < 0:
            raise ValidationError('consultationFee cannot be negative')
    if 'years_of_experience' in changes and changes['years_of_experience'] is not None:
        years = changes['years_of_experience']
        if isinstance(years, bool) or not isinstance(years, int) or years < 0:
            raise ValidationError('yearsOfExperience must be a non-negative integer')

    record = db.session.get(Doctor, doctor.id)
    for column, value in changes.items():
        setattr(record, column, value)
    db.session.commit()
    return jsonify({'success': True, 'data': record.to_dict(), 'message': 'Profile updated successfully'}), 200
