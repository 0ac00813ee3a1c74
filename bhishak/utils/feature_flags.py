# /bhishak/utils/feature_flags.py
import os
from functools import wraps

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from bhishak.extensions import db
from bhishak.models.system_models import SystemSetting
from bhishak.utils.error_handlers import FeatureDisabledError

PATIENT_SIGNUP_FLAG = 'ENABLE_PATIENT_SIGNUP'
PATIENT_SIGNUP_DISABLED_MESSAGE = (
    'Patient registration is coming soon. '
    'For early access, please contact your doctor for an invite link.'
)


def env_flag(key) -> bool:
    return os.environ.get(key) == 'true'


def is_feature_enabled(key) -> bool:
    """Database row wins when present; otherwise the environment variable decides.

    Never raises: a failing lookup is treated the same as a missing row.
    """
    try:
        setting = SystemSetting.query.filter_by(key=key).first()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning(f"Feature flag '{key}' lookup failed, using environment: {e}")
        return env_flag(key)

    if setting is None:
        return env_flag(key)
    return setting.value == 'true'


def require_feature(key, message, code):
    """Short-circuits the view with a 403 and a stable code when `key` is off."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not is_feature_enabled(key):
                raise FeatureDisabledError(message, code=code)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


require_patient_signup = require_feature(
    PATIENT_SIGNUP_FLAG, PATIENT_SIGNUP_DISABLED_MESSAGE, 'PATIENT_SIGNUP_DISABLED'
)
