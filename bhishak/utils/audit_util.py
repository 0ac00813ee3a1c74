# /bhishak/utils/audit_util.py
from flask import request, current_app, has_request_context
from sqlalchemy.exc import SQLAlchemyError

from bhishak.extensions import db
from bhishak.models.system_models import AuditLog, AdminAccessLog


def client_ip():
    """First hop of X-Forwarded-For, else the socket address."""
    if not has_request_context():
        return 'unknown'
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        first = forwarded.split(',')[0].strip()
        if first:
            return first
    return request.remote_addr or 'unknown'


def _user_agent():
    if not has_request_context():
        return 'unknown'
    return (request.headers.get('User-Agent') or 'unknown')[:255]


def record_audit(actor_type, actor_id, action, actor_email=None, actor_name=None,
                 resource_type=None, resource_id=None, description=None,
                 metadata=None, success=True, error_message=None):
    """Writes an AuditLog row. A failed write is logged and never fails the request."""
    entry = AuditLog(
        actor_type=actor_type,
        actor_id=str(actor_id) if actor_id is not None else 'unknown',
        actor_email=actor_email,
        actor_name=actor_name,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        description=description,
        ip_address=client_ip(),
        user_agent=_user_agent(),
        metadata_json=metadata,
        success=success,
        error_message=error_message,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError as db_error:
        db.session.rollback()
        current_app.audit_logger.error(f"Failed to write audit entry due to DB error: {db_error}")
        return None

    current_app.audit_logger.info(
        f"Actor='{actor_type}:{entry.actor_id}', Action='{action}', "
        f"Resource='{resource_type}:{resource_id}', Success='{success}'"
    )
    return entry


def record_admin_access(admin, access_type, resource_type, resource_id, reason,
                        action='VIEW', reason_details=None):
    """Writes an AdminAccessLog row for a view of sensitive data."""
    entry = AdminAccessLog(
        admin_id=str(admin.id),
        admin_email=admin.email,
        admin_name=admin.full_name,
        access_type=access_type,
        resource_type=resource_type,
        resource_id=str(resource_id),
        reason=reason,
        reason_details=reason_details,
        action=action,
        ip_address=client_ip(),
        user_agent=_user_agent(),
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError as db_error:
        db.session.rollback()
        current_app.audit_logger.error(f"Failed to write admin access entry due to DB error: {db_error}")
        return None

    current_app.audit_logger.info(
        f"AdminAccess Admin='{admin.email}', Resource='{resource_type}:{resource_id}', Reason='{reason}'"
    )
    return entry
