from bhishak.utils.error_handlers import ValidationError


def string_field(data, field, required_message=None):
    """Stripped string value of `data[field]`, or None when the field is absent.

    Non-string values are rejected. With `required_message` a missing or blank
    value is rejected too.
    """
    value = data.get(field)
    if value is None:
        if required_message:
            raise ValidationError(required_message)
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")

    value = value.strip()
    if required_message and not value:
        raise ValidationError(required_message)
    return value
