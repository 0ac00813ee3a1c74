from datetime import datetime, timedelta
from flask import request, jsonify, current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from bhishak.extensions import db
from bhishak.models.admin_models import Admin
from bhishak.models.system_models import AuditLog, AdminAccessLog
from bhishak.utils.error_handlers import ValidationError
from bhishak.utils.pagination import parse_pagination, paginate, pagination_meta, parse_iso_datetime

MAX_STATS_DAYS = 3650


def _page_args():
    return parse_pagination(
        request.args,
        default_limit=current_app.config['AUDIT_DEFAULT_PAGE_SIZE'],
        max_limit=current_app.config['AUDIT_MAX_PAGE_SIZE'],
    )


def _admin_roles(actor_ids):
    """Best-effort lookup of current admin roles keyed by actor id string.

    A failing lookup returns an empty map so every admin row falls back to "ADMIN".
    """
    admin_ids = {int(a) for a in actor_ids if a and a.isdigit()}
    if not admin_ids:
        return {}
    try:
        rows = db.session.query(Admin.id, Admin.role).filter(Admin.id.in_(admin_ids)).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning(f"Admin role enrichment failed: {e}")
        return {}
    return {str(admin_id): role for admin_id, role in rows}


def _with_actor_role(logs):
    roles = _admin_roles({log.actor_id for log in logs if log.actor_type == 'ADMIN'})
    enriched = []
    for log in logs:
        data = log.to_dict()
        if log.actor_type == 'ADMIN':
            data['actorRole'] = roles.get(log.actor_id, 'ADMIN')
        else:
            data['actorRole'] = log.actor_type
        enriched.append(data)
    return enriched


def get_audit_logs():
    """Paginated audit logs, newest first, with optional filters."""
    page, limit = _page_args()
    args = request.args

    query = AuditLog.query
    if args.get('actorType'):
        query = query.filter(AuditLog.actor_type == args['actorType'])
    if args.get('action'):
        query = query.filter(AuditLog.action == args['action'])

    start_date = parse_iso_datetime(args.get('startDate'), 'startDate')
    end_date = parse_iso_datetime(args.get('endDate'), 'endDate')
    if start_date:
        query = query.filter(AuditLog.created_at >= start_date)
    if end_date:
        query = query.filter(AuditLog.created_at <= end_date)

    search = args.get('search')
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            AuditLog.actor_email.ilike(pattern),
            AuditLog.actor_name.ilike(pattern),
            AuditLog.ip_address.like(pattern),
        ))

    logs, total = paginate(query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()), page, limit)

    return jsonify({
        'success': True,
        'data': {
            'logs': _with_actor_role(logs),
            'pagination': pagination_meta(page, limit, total),
        }
    }), 200


def get_admin_access_logs():
    """Paginated admin access logs (sensitive data reveals), newest first."""
    page, limit = _page_args()
    args = request.args

    query = AdminAccessLog.query
    if args.get('accessType'):
        query = query.filter(AdminAccessLog.access_type == args['accessType'])
    if args.get('resourceType'):
        query = query.filter(AdminAccessLog.resource_type == args['resourceType'])
    if args.get('reason'):
        query = query.filter(AdminAccessLog.reason == args['reason'])

    start_date = parse_iso_datetime(args.get('startDate'), 'startDate')
    end_date = parse_iso_datetime(args.get('endDate'), 'endDate')
    if start_date:
        query = query.filter(AdminAccessLog.accessed_at >= start_date)
    if end_date:
        query = query.filter(AdminAccessLog.accessed_at <= end_date)

    search = args.get('search')
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            AdminAccessLog.admin_email.ilike(pattern),
            AdminAccessLog.admin_name.ilike(pattern),
            AdminAccessLog.ip_address.like(pattern),
            AdminAccessLog.reason_details.ilike(pattern),
        ))

    logs, total = paginate(
        query.order_by(AdminAccessLog.accessed_at.desc(), AdminAccessLog.id.desc()), page, limit
    )

    return jsonify({
        'success': True,
        'data': {
            'logs': [log.to_dict() for log in logs],
            'pagination': pagination_meta(page, limit, total),
        }
    }), 200


def get_audit_stats():
    """Security counters over the trailing `days` window."""
    try:
        days = int(request.args.get('days', 30))
    except ValueError:
        raise ValidationError('days must be an integer')
    if days < 1 or days > MAX_STATS_DAYS:
        raise ValidationError(f"days must be between 1 and {MAX_STATS_DAYS}")

    start_date = datetime.utcnow() - timedelta(days=days)
    recent = AuditLog.query.filter(AuditLog.created_at >= start_date)
    recent_access = AdminAccessLog.query.filter(AdminAccessLog.accessed_at >= start_date)

    stats = {
        'totalLogs': recent.count(),
        'totalAdminAccessLogs': recent_access.count(),
        'failedLogins': recent.filter(AuditLog.action == 'FAILED_LOGIN').count(),
        'successfulLogins': recent.filter(AuditLog.action == 'LOGIN', AuditLog.success.is_(True)).count(),
        'prescriptionsCreated': recent.filter(AuditLog.action == 'PRESCRIPTION_CREATE').count(),
        'paymentsConfirmed': recent.filter(AuditLog.action == 'PAYMENT_CONFIRM').count(),
        'aadhaarReveals': recent_access.filter(AdminAccessLog.resource_type == 'DOCTOR').count(),
    }

    failed = (recent.filter(AuditLog.action == 'FAILED_LOGIN')
              .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
              .limit(10)
              .all())

    return jsonify({
        'success': True,
        'data': {
            'stats': stats,
            'recentFailedLogins': [{
                'actorEmail': log.actor_email,
                'ipAddress': log.ip_address,
                'createdAt': log.created_at.isoformat() if log.created_at else None,
                'errorMessage': log.error_message,
            } for log in failed],
            'period': f"Last {days} days",
        }
    }), 200
