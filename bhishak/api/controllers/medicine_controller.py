from datetime import datetime
from flask import request, jsonify, current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from bhishak.extensions import db
from bhishak.models.medicine_models import Medicine, DoctorMedicine
from bhishak.utils.error_handlers import ConflictError, NotFoundError, ValidationError
from bhishak.utils.pagination import parse_pagination, paginate, pagination_meta
from bhishak.utils.validation_util import string_field

MEDICINE_STATUS_FILTERS = ('verified', 'unverified', 'banned')


def _get_medicine_or_404(medicine_id):
    medicine = db.session.get(Medicine, medicine_id)
    if not medicine:
        raise NotFoundError('Medicine not found')
    return medicine


def _find_by_name(name):
    return Medicine.query.filter(func.lower(Medicine.name) == name.strip().lower()).first()


# --- Admin ---

def create_medicine(admin):
    data = request.get_json(silent=True) or {}
    name = string_field(data, 'name', 'Medicine name is required')

    specializations = data.get('specializations') or []
    if not isinstance(specializations, list) or not all(isinstance(s, str) for s in specializations):
        raise ValidationError('specializations must be a list of strings')

    if _find_by_name(name):
        raise ConflictError('A medicine with this name already exists')

    medicine = Medicine(
        name=name,
        generic_name=string_field(data, 'genericName'),
        manufacturer=string_field(data, 'manufacturer'),
        category=string_field(data, 'category'),
        specializations=specializations,
        created_by=str(admin.id),
    )
    # Medicines added by an admin are trusted from the start
    if data.get('verified', True):
        medicine.is_verified = True
        medicine.verified_by = str(admin.id)
        medicine.verified_at = datetime.utcnow()

    db.session.add(medicine)
    db.session.commit()
    return jsonify({'success': True, 'data': medicine.to_dict(), 'message': 'Medicine created successfully'}), 201


def get_all_medicines():
    page, limit = parse_pagination(request.args)
    args = request.args

    query = Medicine.query
    search = args.get('search')
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Medicine.name.ilike(pattern),
            Medicine.generic_name.ilike(pattern),
            Medicine.manufacturer.ilike(pattern),
        ))
    if args.get('category'):
        query = query.filter(Medicine.category == args['category'])

    status = args.get('status')
    if status:
        if status not in MEDICINE_STATUS_FILTERS:
            raise ValidationError(f"status must be one of {', '.join(MEDICINE_STATUS_FILTERS)}")
        if status == 'banned':
            query = query.filter(Medicine.is_banned.is_(True))
        elif status == 'verified':
            query = query.filter(Medicine.is_verified.is_(True), Medicine.is_banned.is_(False))
        else:
            query = query.filter(Medicine.is_verified.is_(False))

    medicines, total = paginate(query.order_by(Medicine.name.asc()), page, limit)
    return jsonify({
        'success': True,
        'data': {
            'medicines': [m.to_dict() for m in medicines],
            'pagination': pagination_meta(page, limit, total),
        }
    }), 200


def verify_medicine(medicine_id, admin):
    medicine = _get_medicine_or_404(medicine_id)
    medicine.is_verified = True
    medicine.verified_by = str(admin.id)
    medicine.verified_at = datetime.utcnow()
    db.session.commit()
    return jsonify({'success': True, 'data': medicine.to_dict(), 'message': 'Medicine verified'}), 200


def ban_medicine(medicine_id, admin):
    data = request.get_json(silent=True) or {}
    reason = string_field(data, 'reason', 'A reason is required to ban a medicine')

    medicine = _get_medicine_or_404(medicine_id)
    medicine.is_banned = True
    medicine.banned_by = str(admin.id)
    medicine.banned_at = datetime.utcnow()
    medicine.ban_reason = reason
    db.session.commit()

    current_app.logger.warning(f"Medicine {medicine.name} banned by admin {admin.id}: {reason}")
    return jsonify({'success': True, 'data': medicine.to_dict(), 'message': 'Medicine banned platform-wide'}), 200


def unban_medicine(medicine_id, admin):
    medicine = _get_medicine_or_404(medicine_id)
    medicine.is_banned = False
    medicine.banned_by = None
    medicine.banned_at = None
    medicine.ban_reason = None
    db.session.commit()
    return jsonify({'success': True, 'data': medicine.to_dict(), 'message': 'Medicine unbanned'}), 200


# --- Doctor ---

def get_available_medicines(doctor):
    """Verified, unbanned medicines that apply to the doctor's specialization."""
    query = Medicine.query.filter(Medicine.is_verified.is_(True), Medicine.is_banned.is_(False))
    search = request.args.get('search')
    if search:
        query = query.filter(Medicine.name.ilike(f"%{search}%"))

    medicines = [m for m in query.order_by(Medicine.name.asc()).all()
                 if m.available_for(doctor.specialization)]
    return jsonify({'success': True, 'data': [m.to_dict() for m in medicines]}), 200


def get_my_medicines(doctor):
    entries = (DoctorMedicine.query
               .filter_by(doctor_id=doctor.id)
               .order_by(DoctorMedicine.added_at.desc())
               .all())
    return jsonify({
        'success': True,
        'data': [{**e.medicine.to_dict(), 'addedAt': e.added_at.isoformat()} for e in entries]
    }), 200


def add_to_my_medicines(doctor):
    data = request.get_json(silent=True) or {}
    medicine_id = data.get('medicineId')
    if not isinstance(medicine_id, int):
        raise ValidationError('medicineId is required')

    medicine = _get_medicine_or_404(medicine_id)
    if medicine.is_banned:
        raise ValidationError('This medicine has been banned and cannot be added', code='MEDICINE_BANNED')
    if not medicine.is_verified:
        raise ValidationError('This medicine has not been verified yet', code='MEDICINE_UNVERIFIED')

    if DoctorMedicine.query.filter_by(doctor_id=doctor.id, medicine_id=medicine.id).first():
        raise ConflictError('Medicine already in your list')

    entry = DoctorMedicine(doctor_id=doctor.id, medicine_id=medicine.id)
    try:
        db.session.add(entry)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Medicine already in your list')

    return jsonify({'success': True, 'data': medicine.to_dict(), 'message': 'Medicine added to your list'}), 201


def remove_from_my_medicines(medicine_id, doctor):
    entry = DoctorMedicine.query.filter_by(doctor_id=doctor.id, medicine_id=medicine_id).first()
    if not entry:
        raise NotFoundError('Medicine not in your list')

    db.session.delete(entry)
    db.session.commit()
    return jsonify({'success': True, 'message': 'Medicine removed from your list'}), 200


def validate_prescription_medications(doctor):
    """Flags any prescribed medication whose name matches a banned catalog entry."""
    data = request.get_json(silent=True) or {}
    medications = data.get('medications')
    if not isinstance(medications, list):
        raise ValidationError('medications must be a list')

    names = []
    for item in medications:
        name = item.get('name') if isinstance(item, dict) else item
        if isinstance(name, str) and name.strip():
            names.append(name.strip())

    banned = []
    if names:
        lowered = {n.lower() for n in names}
        banned = (Medicine.query
                  .filter(Medicine.is_banned.is_(True), func.lower(Medicine.name).in_(lowered))
                  .all())

    return jsonify({
        'success': True,
        'data': {
            'valid': not banned,
            'bannedMedicines': [{'id': m.id, 'name': m.name, 'banReason': m.ban_reason} for m in banned],
        }
    }), 200
