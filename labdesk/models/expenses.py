"""
Expense model for lab running costs
"""
from datetime import datetime
from labdesk import db

class Expense(db.Model):
    """Expense booked against the lab"""
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(50), nullable=False, index=True)
    amount = db.Column(db.Float, nullable=False)
    description = db.Column(db.Text)
    payment_method = db.Column(db.String(50), default='cash')
    date = db.Column(db.Date, nullable=False, default=lambda: datetime.utcnow().date(), index=True)
    is_recurring = db.Column(db.Boolean, default=False, nullable=False)
    tags = db.Column(db.JSON)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'category': self.category,
            'amount': self.amount,
            'description': self.description,
            'payment_method': self.payment_method,
            'date': self.date.isoformat() if self.date else None,
            'is_recurring': self.is_recurring,
            'tags': self.tags or [],
            'created_by_id': self.created_by_id,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<Expense {self.category}: {self.amount}>'
