from datetime import datetime
from bhishak.extensions import db, bcrypt


class Patient(db.Model):
    """Self-registered patient, identified by phone number and a numeric PIN."""
    __tablename__ = 'patients'

    id = db.Column(db.Integer, primary_key=True)
    phone = db.Column(db.String(20), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(255), nullable=False)
    age = db.Column(db.Integer)
    gender = db.Column(db.String(20))
    account_type = db.Column(db.String(20), nullable=False, default='SELF')
    pin_hash = db.Column(db.String(255), nullable=False)
    phone_verified = db.Column(db.Boolean, default=False)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    consultations = db.relationship('Consultation', back_populates='patient', lazy='dynamic')
    medical_records = db.relationship('MedicalRecord', back_populates='patient', lazy='dynamic')

    def set_pin(self, pin: str) -> None:
        """Hashes and sets the PIN; 4 to 6 digits."""
        if not self.is_valid_pin(pin):
            raise ValueError("PIN must be 4 to 6 digits")
        self.pin_hash = bcrypt.generate_password_hash(pin).decode('utf-8')

    def check_pin(self, pin: str) -> bool:
        if not pin:
            return False
        return bcrypt.check_password_hash(self.pin_hash, str(pin))

    @staticmethod
    def is_valid_pin(pin) -> bool:
        return isinstance(pin, str) and pin.isdigit() and 4 <= len(pin) <= 6

    def to_dict(self):
        return {
            'id': self.id,
            'phone': self.phone,
            'fullName': self.full_name,
            'age': self.age,
            'gender': self.gender,
            'accountType': self.account_type,
            'phoneVerified': bool(self.phone_verified),
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


class PatientOtp(db.Model):
    """One-time code sent to a phone number. Only the bcrypt hash is kept."""
    __tablename__ = 'patient_otps'

    id = db.Column(db.Integer, primary_key=True)
    phone = db.Column(db.String(20), nullable=False, index=True)
    otp_hash = db.Column(db.String(255), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    verified = db.Column(db.Boolean, default=False, nullable=False)
    attempts = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class Consultation(db.Model):
    __tablename__ = 'consultations'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.Integer, db.ForeignKey('patients.id'), nullable=False, index=True)
    doctor_id = db.Column(db.Integer, db.ForeignKey('doctors.id'), nullable=False, index=True)
    status = db.Column(db.String(30), nullable=False, default='PENDING')
    chief_complaint = db.Column(db.Text)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime)

    patient = db.relationship('Patient', back_populates='consultations')
    doctor = db.relationship('Doctor', back_populates='consultations')

    def to_dict(self):
        return {
            'id': self.id,
            'status': self.status,
            'chiefComplaint': self.chief_complaint,
            'notes': self.notes,
            'doctor': {
                'id': self.doctor.id,
                'fullName': self.doctor.full_name,
                'specialization': self.doctor.specialization,
            } if self.doctor else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'completedAt': self.completed_at.isoformat() if self.completed_at else None,
        }


class MedicalRecord(db.Model):
    __tablename__ = 'medical_records'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.Integer, db.ForeignKey('patients.id'), nullable=False, index=True)
    doctor_id = db.Column(db.Integer, db.ForeignKey('doctors.id'))
    title = db.Column(db.String(255), nullable=False)
    record_type = db.Column(db.String(50), nullable=False, default='DOCUMENT')
    file_path = db.Column(db.String(512))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    patient = db.relationship('Patient', back_populates='medical_records')
    doctor = db.relationship('Doctor')

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'recordType': self.record_type,
            'filePath': self.file_path,
            'doctorName': self.doctor.full_name if self.doctor else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
