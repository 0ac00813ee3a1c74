# /bhishak/utils/otp_util.py
import re
import secrets
from datetime import datetime

from flask import current_app

from bhishak.extensions import db, bcrypt
from bhishak.models.patient_models import PatientOtp
from bhishak.utils.error_handlers import ApiError, RateLimitError, ValidationError
from bhishak.utils.sms_util import send_otp_sms

PHONE_PATTERN = re.compile(r'^\+?\d{10,15}$')


def normalize_phone(raw):
    """Strips spaces and dashes; requires 10 to 15 digits with an optional leading +."""
    if not raw or not isinstance(raw, str):
        raise ValidationError('Phone number is required')
    phone = re.sub(r'[\s\-()]', '', raw)
    if not PHONE_PATTERN.match(phone):
        raise ValidationError('Invalid phone number')
    return phone


def generate_otp(length=6):
    return ''.join(secrets.choice('0123456789') for _ in range(length))


def issue_otp(phone):
    """Creates and sends a new OTP, enforcing the hourly limit and the attempt lock."""
    config = current_app.config
    now = datetime.utcnow()

    recent = (PatientOtp.query
              .filter(PatientOtp.phone == phone,
                      PatientOtp.created_at >= now - config['OTP_RATE_WINDOW'])
              .order_by(PatientOtp.created_at.desc())
              .all())

    if recent and recent[0].attempts >= config['OTP_MAX_ATTEMPTS']:
        locked_until = recent[0].created_at + config['OTP_LOCK_DURATION']
        if locked_until > now:
            raise RateLimitError(
                f"Too many attempts. Please try again after {locked_until.strftime('%H:%M')} UTC",
                code='OTP_LOCKED',
                extra={'lockedUntil': locked_until.isoformat()},
            )

    if len(recent) >= config['OTP_RATE_LIMIT']:
        raise RateLimitError(
            f"Maximum {config['OTP_RATE_LIMIT']} OTP requests per hour. Please try again later.",
            code='OTP_RATE_LIMITED',
        )

    otp = generate_otp(config['OTP_LENGTH'])
    record = PatientOtp(
        phone=phone,
        otp_hash=bcrypt.generate_password_hash(otp).decode('utf-8'),
        expires_at=now + config['OTP_EXPIRY'],
        verified=False,
        attempts=0,
        created_at=now,
    )
    db.session.add(record)

    if not send_otp_sms(phone, otp):
        db.session.rollback()
        raise ApiError('Failed to send OTP. Please try again later.', code='SMS_FAILED', status_code=502)

    db.session.commit()
    return record


def verify_otp(phone, otp):
    """Checks `otp` against the newest live code for `phone` and marks it verified."""
    if not otp or not str(otp).isdigit():
        raise ValidationError('OTP is required')

    now = datetime.utcnow()
    record = (PatientOtp.query
              .filter(PatientOtp.phone == phone,
                      PatientOtp.expires_at >= now,
                      PatientOtp.verified.is_(False))
              .order_by(PatientOtp.created_at.desc())
              .first())

    if record is None:
        raise ValidationError('OTP expired or not found. Please request a new OTP.', code='OTP_EXPIRED')

    if record.attempts >= current_app.config['OTP_MAX_ATTEMPTS']:
        raise ValidationError('Too many incorrect attempts. Please request a new OTP.', code='OTP_LOCKED')

    if not bcrypt.check_password_hash(record.otp_hash, str(otp)):
        record.attempts += 1
        db.session.commit()
        remaining = current_app.config['OTP_MAX_ATTEMPTS'] - record.attempts
        raise ValidationError(f"Invalid OTP. {remaining} attempts remaining.", code='OTP_INVALID')

    record.verified = True
    db.session.commit()
    return record


def has_verified_otp(phone):
    """True when the phone verified an OTP within the signup window."""
    since = datetime.utcnow() - current_app.config['OTP_SIGNUP_WINDOW']
    return db.session.query(
        PatientOtp.query
        .filter(PatientOtp.phone == phone,
                PatientOtp.verified.is_(True),
                PatientOtp.created_at >= since)
        .exists()
    ).scalar()
