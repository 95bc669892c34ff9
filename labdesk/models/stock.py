"""
Stock model for reagents and consumables
"""
from datetime import datetime
from labdesk import db

class StockItem(db.Model):
    """Inventory item with a reorder threshold"""
    __tablename__ = 'stock_items'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    category = db.Column(db.String(50), index=True)
    current_stock = db.Column(db.Float, default=0, nullable=False)
    reorder_level = db.Column(db.Float, default=0, nullable=False)
    unit = db.Column(db.String(20))
    cost_per_unit = db.Column(db.Float, default=0)
    vendor = db.Column(db.String(200))
    batch_number = db.Column(db.String(50))
    expiry_date = db.Column(db.Date)
    active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def is_low_stock(self):
        """Check if stock is at or below the reorder level"""
        return self.current_stock <= self.reorder_level

    @property
    def is_expired(self):
        return self.expiry_date is not None and self.expiry_date < datetime.now().date()

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'current_stock': self.current_stock,
            'reorder_level': self.reorder_level,
            'unit': self.unit,
            'cost_per_unit': self.cost_per_unit,
            'vendor': self.vendor,
            'batch_number': self.batch_number,
            'expiry_date': self.expiry_date.isoformat() if self.expiry_date else None,
            'active': self.active,
            'is_low_stock': self.is_low_stock,
            'is_expired': self.is_expired,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<StockItem {self.name}: {self.current_stock} {self.unit or ""}>'

    @classmethod
    def get_low_stock(cls):
        """Get active items at or below their reorder level"""
        return db.session.execute(
            db.select(cls).where(
                cls.active == True,
                cls.current_stock <= cls.reorder_level
            ).order_by(cls.name)
        ).scalars().all()
