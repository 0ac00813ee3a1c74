# /bhishak/models/system_models.py
from datetime import datetime
from bhishak.extensions import db

SETTING_TYPES = ('STRING', 'BOOLEAN', 'NUMBER', 'JSON')


class AuditLog(db.Model):
    """Append-only record of who did what, and whether it worked."""
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    actor_type = db.Column(db.String(20), nullable=False, index=True)  # DOCTOR, ADMIN, PATIENT, SYSTEM
    actor_id = db.Column(db.String(64), nullable=False)
    actor_email = db.Column(db.String(255))
    actor_name = db.Column(db.String(255))
    action = db.Column(db.String(100), nullable=False, index=True)
    resource_type = db.Column(db.String(50))
    resource_id = db.Column(db.String(64))
    description = db.Column(db.Text)
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.String(255))
    metadata_json = db.Column('metadata', db.JSON)
    success = db.Column(db.Boolean, default=True, nullable=False)
    error_message = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'actorType': self.actor_type,
            'actorId': self.actor_id,
            'actorEmail': self.actor_email,
            'actorName': self.actor_name,
            'action': self.action,
            'resourceType': self.resource_type,
            'resourceId': self.resource_id,
            'description': self.description,
            'ipAddress': self.ip_address,
            'userAgent': self.user_agent,
            'metadata': self.metadata_json,
            'success': self.success,
            'errorMessage': self.error_message,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


class AdminAccessLog(db.Model):
    """Admin access to sensitive data, always with a stated reason"""
    __tablename__ = 'admin_access_logs'

    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.String(64), nullable=False, index=True)
    admin_email = db.Column(db.String(255))
    admin_name = db.Column(db.String(255))
    access_type = db.Column(db.String(50), nullable=False)
    resource_type = db.Column(db.String(50), nullable=False)
    resource_id = db.Column(db.String(64), nullable=False)
    reason = db.Column(db.String(50), nullable=False)
    reason_details = db.Column(db.Text)
    action = db.Column(db.String(20), nullable=False)  # VIEW, EDIT, DELETE, EXPORT
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.String(255))
    accessed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'adminId': self.admin_id,
            'adminEmail': self.admin_email,
            'adminName': self.admin_name,
            'accessType': self.access_type,
            'resourceType': self.resource_type,
            'resourceId': self.resource_id,
            'reason': self.reason,
            'reasonDetails': self.reason_details,
            'action': self.action,
            'ipAddress': self.ip_address,
            'userAgent': self.user_agent,
            'accessedAt': self.accessed_at.isoformat() if self.accessed_at else None,
        }


class SystemSetting(db.Model):
    """Typed key/value setting; feature flags live here."""
    __tablename__ = 'system_settings'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), nullable=False, default='STRING')
    category = db.Column(db.String(50), nullable=False, default='GENERAL')
    label = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    updated_by = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'key': self.key,
            'value': self.value,
            'type': self.type,
            'category': self.category,
            'label': self.label,
            'description': self.description,
            'updatedBy': self.updated_by,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
