from functools import wraps
from typing import NamedTuple

from flask import make_response
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from bhishak.extensions import db
from bhishak.models.admin_models import Admin
from bhishak.models.doctor_models import Doctor
from bhishak.utils.audit_util import record_audit
from bhishak.utils.error_handlers import AuthorizationError

ACTOR_CLAIM = 'actor'


class PatientIdentity(NamedTuple):
    id: int
    phone: str
    full_name: str
    account_type: str


class DoctorIdentity(NamedTuple):
    id: int
    email: str
    full_name: str
    specialization: str


class AdminIdentity(NamedTuple):
    id: int
    email: str
    full_name: str
    role: str

    @property
    def is_super_admin(self):
        return self.role == 'SUPER_ADMIN'


def _verify_actor(expected):
    """Verifies the bearer token and that it was issued to the expected kind of actor."""
    verify_jwt_in_request()
    claims = get_jwt()
    if claims.get(ACTOR_CLAIM) != expected:
        raise AuthorizationError('Invalid token type', code='INVALID_TOKEN_TYPE')
    return claims


def patient_required(f):
    """Passes the verified patient to the view as `patient`."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        claims = _verify_actor('patient')
        kwargs['patient'] = PatientIdentity(
            id=int(get_jwt_identity()),
            phone=claims.get('phone'),
            full_name=claims.get('fullName'),
            account_type=claims.get('accountType'),
        )
        return f(*args, **kwargs)
    return decorated_function


def doctor_required(f):
    """Passes the verified, active doctor to the view as `doctor`."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        _verify_actor('doctor')
        doctor = db.session.get(Doctor, int(get_jwt_identity()))
        if not doctor or not doctor.is_verified:
            raise AuthorizationError('Doctor not found or not verified')

        kwargs['doctor'] = DoctorIdentity(
            id=doctor.id,
            email=doctor.email,
            full_name=doctor.full_name,
            specialization=doctor.specialization,
        )
        return f(*args, **kwargs)
    return decorated_function


def _load_admin():
    _verify_actor('admin')
    admin = db.session.get(Admin, int(get_jwt_identity()))
    if not admin or not admin.is_active:
        raise AuthorizationError('Admin not found or inactive')
    return admin


def _admin_identity(admin):
    return AdminIdentity(id=admin.id, email=admin.email, full_name=admin.full_name, role=admin.role)


def admin_required(f):
    """Any active admin (ADMIN or SUPER_ADMIN); passed to the view as `admin`."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        kwargs['admin'] = _admin_identity(_load_admin())
        return f(*args, **kwargs)
    return decorated_function


def super_admin_required(f):
    """Only SUPER_ADMIN; ADMIN is rejected before the view runs."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        admin = _load_admin()
        if not admin.is_super_admin:
            raise AuthorizationError('Access denied. Super admin privileges required.')
        kwargs['admin'] = _admin_identity(admin)
        return f(*args, **kwargs)
    return decorated_function


_ACTOR_KWARGS = (('admin', 'ADMIN'), ('doctor', 'DOCTOR'), ('patient', 'PATIENT'))


def audit_action(action, resource_type=None, resource_id_arg=None):
    """Records the outcome of the wrapped view in the audit log.

    Must sit below one of the *_required decorators so the actor is known.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            actor_type, actor = 'SYSTEM', None
            for kwarg, kind in _ACTOR_KWARGS:
                if kwargs.get(kwarg) is not None:
                    actor_type, actor = kind, kwargs[kwarg]
                    break

            resource_id = kwargs.get(resource_id_arg) if resource_id_arg else None
            audit_kwargs = dict(
                actor_email=getattr(actor, 'email', None),
                actor_name=getattr(actor, 'full_name', None),
                resource_type=resource_type,
                resource_id=resource_id,
            )
            actor_id = actor.id if actor is not None else 'system'

            try:
                response = make_response(f(*args, **kwargs))
            except Exception as e:
                db.session.rollback()
                record_audit(actor_type, actor_id, action, success=False,
                             error_message=str(e), **audit_kwargs)
                raise

            success = response.status_code < 400
            record_audit(
                actor_type, actor_id, action, success=success,
                description=f"Request completed. Status: {response.status_code}",
                **audit_kwargs
            )
            return response
        return decorated_function
    return decorator
