from datetime import datetime
from bhishak.extensions import db, bcrypt

DOCTOR_STATUSES = ('PENDING_VERIFICATION', 'VERIFIED', 'REJECTED', 'SUSPENDED')


class Doctor(db.Model):
    """Doctor account. Aadhaar and UPI identifiers are stored Fernet-encrypted."""
    __tablename__ = 'doctors'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20))
    specialization = db.Column(db.String(100), index=True)
    bio = db.Column(db.Text)
    profile_photo = db.Column(db.String(512))  # relative upload path
    consultation_fee = db.Column(db.Numeric(10, 2))
    languages = db.Column(db.JSON, default=list)
    years_of_experience = db.Column(db.Integer)
    status = db.Column(db.String(30), nullable=False, default='PENDING_VERIFICATION', index=True)
    rejection_reason = db.Column(db.Text)
    is_online = db.Column(db.Boolean, default=False)
    last_seen_at = db.Column(db.DateTime)

    # --- Encrypted identifiers ---
    aadhaar_number = db.Column(db.String(512))
    upi_id = db.Column(db.String(512))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    consultations = db.relationship('Consultation', back_populates='doctor', lazy='dynamic')
    my_medicines = db.relationship('DoctorMedicine', back_populates='doctor', lazy='dynamic',
                                   cascade='all, delete-orphan')

    @property
    def is_verified(self) -> bool:
        return self.status == 'VERIFIED'

    def set_password(self, password: str) -> None:
        if not password or len(password) < 8:
            raise ValueError("Password must be at least 8 characters")
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password: str) -> bool:
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'fullName': self.full_name,
            'phone': self.phone,
            'specialization': self.specialization,
            'bio': self.bio,
            'profilePhoto': self.profile_photo,
            'consultationFee': float(self.consultation_fee) if self.consultation_fee is not None else None,
            'languages': self.languages or [],
            'yearsOfExperience': self.years_of_experience,
            'status': self.status,
            'isOnline': bool(self.is_online),
            'lastSeenAt': self.last_seen_at.isoformat() if self.last_seen_at else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
