from flask import current_app


def format_doctor_name(name):
    """Adds the "Dr." prefix unless the name already carries it."""
    if not name:
        return ''
    trimmed = name.strip()
    if trimmed.lower().startswith(('dr.', 'dr ')):
        return trimmed
    return f"Dr. {trimmed}"


def resolve_file_url(path):
    """Turns a stored relative upload path into an absolute URL under API_BASE_URL."""
    if not path:
        return None
    if path.startswith(('http://', 'https://')):
        return path
    base = current_app.config.get('API_BASE_URL', '').rstrip('/')
    relative = path.replace('\\', '/').lstrip('/')
    return f"{base}/{relative}"
