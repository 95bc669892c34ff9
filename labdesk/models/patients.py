"""
Patient model for registration details
"""
from datetime import datetime
from labdesk import db

class Patient(db.Model):
    """Patient registered at the lab reception"""
    __tablename__ = 'patients'

    id = db.Column(db.Integer, primary_key=True)
    patient_no = db.Column(db.String(20), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    age = db.Column(db.Integer)
    gender = db.Column(db.String(10))  # male, female, other
    contact = db.Column(db.String(20), index=True)
    email = db.Column(db.String(120))
    address = db.Column(db.Text)
    cnic = db.Column(db.String(20), index=True)  # national identity card number
    blood_group = db.Column(db.String(5))
    allergies = db.Column(db.Text)
    medical_history = db.Column(db.Text)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, **kwargs):
        super(Patient, self).__init__(**kwargs)
        if not self.patient_no:
            self.patient_no = self.generate_patient_no()

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'patient_no': self.patient_no,
            'name': self.name,
            'age': self.age,
            'gender': self.gender,
            'contact': self.contact,
            'email': self.email,
            'address': self.address,
            'cnic': self.cnic,
            'blood_group': self.blood_group,
            'allergies': self.allergies,
            'medical_history': self.medical_history,
            'created_by_id': self.created_by_id,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<Patient {self.patient_no}: {self.name}>'

    @classmethod
    def generate_patient_no(cls):
        """Generate a unique patient number"""
        import random
        import string

        while True:
            # Format: PAT-YYYYMMDD-XXXXX
            date_str = datetime.now().strftime('%Y%m%d')
            digits = ''.join(random.choices(string.digits, k=5))
            patient_no = f"PAT-{date_str}-{digits}"

            if db.session.execute(
                db.select(cls.id).filter_by(patient_no=patient_no)
            ).first() is None:
                return patient_no
