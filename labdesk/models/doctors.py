"""
Referring doctor model
"""
from datetime import datetime
from labdesk import db

class Doctor(db.Model):
    """Doctor who refers patients to the lab"""
    __tablename__ = 'doctors'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    specialty = db.Column(db.String(100))
    contact = db.Column(db.String(20))
    email = db.Column(db.String(120))
    hospital = db.Column(db.String(200))
    commission_percent = db.Column(db.Float, default=0)
    cnic = db.Column(db.String(20))
    address = db.Column(db.Text)
    active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'name': self.name,
            'specialty': self.specialty,
            'contact': self.contact,
            'email': self.email,
            'hospital': self.hospital,
            'commission_percent': self.commission_percent,
            'cnic': self.cnic,
            'address': self.address,
            'active': self.active,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<Doctor {self.name}>'
