"""
Test catalog model
"""
from datetime import datetime
from labdesk import db

class LabTest(db.Model):
    """A test the lab offers, with its list price"""
    __tablename__ = 'lab_tests'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    category = db.Column(db.String(100), nullable=False, index=True)
    price = db.Column(db.Float, nullable=False, default=0)
    sample_type = db.Column(db.String(50))
    reference_range = db.Column(db.String(100))
    unit = db.Column(db.String(20))
    active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'price': self.price,
            'sample_type': self.sample_type,
            'reference_range': self.reference_range,
            'unit': self.unit,
            'active': self.active,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<LabTest {self.name}: {self.price}>'

    @classmethod
    def get_categories(cls):
        """Get distinct test categories"""
        return db.session.execute(
            db.select(cls.category).distinct().order_by(cls.category)
        ).scalars().all()
