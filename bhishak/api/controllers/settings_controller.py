import os
from flask import request, jsonify, current_app
from sqlalchemy.exc import IntegrityError

from bhishak.extensions import db
from bhishak.models.system_models import SystemSetting
from bhishak.utils.error_handlers import ApiError, ConflictError, NotFoundError, ValidationError
from bhishak.utils.settings_util import coerce_setting_value, normalize_setting_value
from bhishak.utils.validation_util import string_field


def get_settings():
    """All settings ordered by category and key, or one setting via ?key=."""
    key = request.args.get('key')
    if key:
        setting = SystemSetting.query.filter_by(key=key).first()
        if not setting:
            raise NotFoundError('Setting not found')
        return jsonify({'success': True, 'data': setting.to_dict()}), 200

    settings = SystemSetting.query.order_by(SystemSetting.category.asc(), SystemSetting.key.asc()).all()
    return jsonify({'success': True, 'data': [s.to_dict() for s in settings]}), 200


def get_public_setting_value(key):
    """Typed value of one setting for unauthenticated clients (feature flags)."""
    setting = SystemSetting.query.filter_by(key=key).first()

    if not setting:
        return jsonify({
            'success': True,
            'data': {'value': os.environ.get(key) or 'false', 'source': 'environment'}
        }), 200

    try:
        value = coerce_setting_value(setting.value, setting.type)
    except ValueError as e:
        current_app.logger.error(f"Stored setting '{key}' does not match its type {setting.type}: {e}")
        raise ApiError('Failed to get setting value', code='SETTING_CORRUPT')

    return jsonify({'success': True, 'data': {'value': value, 'source': 'database'}}), 200


def create_setting(admin):
    data = request.get_json(silent=True) or {}
    key, label = string_field(data, 'key'), string_field(data, 'label')
    value = data.get('value')

    if not key or value is None or value == '' or not label:
        raise ValidationError('Key, value, and label are required')

    setting_type = data.get('type') or 'STRING'
    stored_value = normalize_setting_value(value, setting_type)

    if SystemSetting.query.filter_by(key=key).first():
        raise ValidationError('Setting with this key already exists', code='DUPLICATE_KEY')

    setting = SystemSetting(
        key=key,
        value=stored_value,
        type=setting_type,
        label=label,
        description=string_field(data, 'description'),
        category=string_field(data, 'category') or 'GENERAL',
        updated_by=str(admin.id),
    )
    try:
        db.session.add(setting)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Setting with this key already exists')

    current_app.logger.info(f"Admin {admin.id} created setting {key}")
    return jsonify({'success': True, 'data': setting.to_dict(), 'message': 'Setting created successfully'}), 201


def update_setting(key, admin):
    data = request.get_json(silent=True) or {}
    if 'value' not in data:
        raise ValidationError('Value is required')

    setting = SystemSetting.query.filter_by(key=key).first()
    if not setting:
        raise NotFoundError('Setting not found')

    # Validate before touching the row so a rejected value leaves it unchanged
    setting.value = normalize_setting_value(data['value'], setting.type)
    setting.updated_by = str(admin.id)
    db.session.commit()

    current_app.logger.info(f"Admin {admin.id} updated setting {key} to {setting.value}")
    return jsonify({'success': True, 'data': setting.to_dict(), 'message': 'Setting updated successfully'}), 200


def delete_setting(key, admin):
    setting = SystemSetting.query.filter_by(key=key).first()
    if not setting:
        raise NotFoundError('Setting not found')

    db.session.delete(setting)
    db.session.commit()

    current_app.logger.info(f"Admin {admin.id} deleted setting {key}")
    return jsonify({'success': True, 'message': 'Setting deleted successfully'}), 200
