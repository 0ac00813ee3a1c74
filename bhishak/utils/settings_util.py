# /bhishak/utils/settings_util.py
import json
import math
import re

from bhishak.models.system_models import SETTING_TYPES
from bhishak.utils.error_handlers import ValidationError

NUMBER_PATTERN = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def coerce_setting_value(raw, setting_type):
    """Turns a stored string into the typed value its tag declares.

    Unknown tags fall through to the raw string.
    """
    if setting_type == 'BOOLEAN':
        return raw == 'true'
    if setting_type == 'NUMBER':
        return float(raw)
    if setting_type == 'JSON':
        return json.loads(raw)
    return raw


def normalize_setting_value(value, setting_type):
    """Validates an incoming value against a type tag and returns the string to store.

    Raises ValidationError when the value does not fit the type, before anything
    is written.
    """
    if setting_type not in SETTING_TYPES:
        raise ValidationError(f"Invalid setting type '{setting_type}'",
                              extra={'validTypes': list(SETTING_TYPES)})

    if setting_type == 'BOOLEAN':
        return 'true' if value is True or value == 'true' else 'false'

    if setting_type == 'NUMBER':
        if isinstance(value, bool):
            raise ValidationError('Invalid number value')
        if isinstance(value, str):
            value = value.strip()
            if not NUMBER_PATTERN.fullmatch(value):
                raise ValidationError('Invalid number value')
        elif not isinstance(value, (int, float)):
            raise ValidationError('Invalid number value')
        # Finite only; NaN and Infinity have no JSON form
        try:
            finite = math.isfinite(float(value))
        except OverflowError:
            finite = False
        if not finite:
            raise ValidationError('Invalid number value')
        return str(value)

    if setting_type == 'JSON':
        if isinstance(value, str):
            try:
                json.loads(value)
            except ValueError:
                raise ValidationError('Invalid JSON value')
            return value
        try:
            return json.dumps(value)
        except (TypeError, ValueError):
            raise ValidationError('Invalid JSON value')

    return str(value)
