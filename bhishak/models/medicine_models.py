from datetime import datetime
from bhishak.extensions import db


class Medicine(db.Model):
    """Platform medicine catalog entry, moderated by admins."""
    __tablename__ = 'medicines'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    generic_name = db.Column(db.String(255))
    manufacturer = db.Column(db.String(255))
    category = db.Column(db.String(100), index=True)
    # Empty list means the medicine is available to every specialization
    specializations = db.Column(db.JSON, default=list)

    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    verified_by = db.Column(db.String(64))
    verified_at = db.Column(db.DateTime)

    is_banned = db.Column(db.Boolean, default=False, nullable=False)
    banned_by = db.Column(db.String(64))
    banned_at = db.Column(db.DateTime)
    ban_reason = db.Column(db.Text)

    created_by = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def available_for(self, specialization) -> bool:
        if not self.is_verified or self.is_banned:
            return False
        if not self.specializations:
            return True
        wanted = (specialization or '').strip().lower()
        return any(s.strip().lower() == wanted for s in self.specializations)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'genericName': self.generic_name,
            'manufacturer': self.manufacturer,
            'category': self.category,
            'specializations': self.specializations or [],
            'isVerified': self.is_verified,
            'verifiedBy': self.verified_by,
            'verifiedAt': self.verified_at.isoformat() if self.verified_at else None,
            'isBanned': self.is_banned,
            'bannedBy': self.banned_by,
            'bannedAt': self.banned_at.isoformat() if self.banned_at else None,
            'banReason': self.ban_reason,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


class DoctorMedicine(db.Model):
    """A doctor's personal shortlist of catalog medicines."""
    __tablename__ = 'doctor_medicines'
    __table_args__ = (db.UniqueConstraint('doctor_id', 'medicine_id', name='uq_doctor_medicine'),)

    id = db.Column(db.Integer, primary_key=True)
    doctor_id = db.Column(db.Integer, db.ForeignKey('doctors.id'), nullable=False, index=True)
    medicine_id = db.Column(db.Integer, db.ForeignKey('medicines.id'), nullable=False)
    added_at = db.Column(db.DateTime, default=datetime.utcnow)

    doctor = db.relationship('Doctor', back_populates='my_medicines')
    medicine = db.relationship('Medicine')
