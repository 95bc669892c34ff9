"""
Billing models for invoices and their line items
"""
from datetime import datetime
from labdesk import db
from labdesk.billing import compute_invoice_totals, compute_line_total

class Invoice(db.Model):
    """Invoice for the tests ordered on one visit"""
    __tablename__ = 'invoices'

    id = db.Column(db.Integer, primary_key=True)
    # Derived from the invoice count, so not unique once invoices are deleted
    invoice_no = db.Column(db.String(20), nullable=False, index=True)
    # Loose references: a deleted patient or doctor leaves the invoice in place
    patient_id = db.Column(db.Integer, index=True)
    doctor_id = db.Column(db.Integer, index=True)
    discount = db.Column(db.Float, default=0, nullable=False)
    total_amount = db.Column(db.Float, default=0, nullable=False)
    final_amount = db.Column(db.Float, default=0, nullable=False)
    status = db.Column(db.String(20), default='draft', nullable=False, index=True)  # draft, finalized, paid, cancelled
    notes = db.Column(db.Text)
    payment_method = db.Column(db.String(50), default='cash')
    is_locked = db.Column(db.Boolean, default=False, nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    # Relationships
    items = db.relationship('InvoiceItem', backref='invoice', cascade='all, delete-orphan',
                            order_by='InvoiceItem.id')
    patient = db.relationship('Patient', primaryjoin='foreign(Invoice.patient_id) == Patient.id',
                              viewonly=True)
    doctor = db.relationship('Doctor', primaryjoin='foreign(Invoice.doctor_id) == Doctor.id',
                             viewonly=True)
    created_by = db.relationship('User')

    def __init__(self, **kwargs):
        super(Invoice, self).__init__(**kwargs)
        if self.discount is None:
            self.discount = 0
        if self.status is None:
            self.status = 'draft'
        if self.is_locked is None:
            self.is_locked = False

    def set_items(self, items):
        """Replace line items from (test_id, test_name, price, quantity) mappings"""
        self.items = [
            InvoiceItem(
                test_id=item.get('test_id'),
                test_name=item.get('test_name'),
                price=item['price'],
                quantity=item['quantity']
            )
            for item in items
        ]

    def calculate_totals(self):
        """Calculate invoice totals"""
        totals = compute_invoice_totals(self.items, self.discount)
        self.total_amount = totals['subtotal']
        self.final_amount = totals['final_amount']

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'invoice_no': self.invoice_no,
            'patient_id': self.patient_id,
            'patient_name': self.patient.name if self.patient else None,
            'doctor_id': self.doctor_id,
            'doctor_name': self.doctor.name if self.doctor else None,
            'items': [item.to_dict() for item in self.items],
            'discount': self.discount,
            'total_amount': self.total_amount,
            'final_amount': self.final_amount,
            'status': self.status,
            'notes': self.notes,
            'payment_method': self.payment_method,
            'is_locked': self.is_locked,
            'created_by_id': self.created_by_id,
            'created_by_name': self.created_by.name if self.created_by else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'version': self.version
        }

    def __repr__(self):
        return f'<Invoice {self.invoice_no}: {self.final_amount} ({self.status})>'

class InvoiceItem(db.Model):
    """Invoice line item: one priced, quantified test"""
    __tablename__ = 'invoice_items'

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.id'), nullable=False, index=True)
    test_id = db.Column(db.Integer, index=True)
    test_name = db.Column(db.String(200))
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, default=1, nullable=False)

    @property
    def line_total(self):
        return compute_line_total(self)

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'test_id': self.test_id,
            'test_name': self.test_name,
            'price': self.price,
            'quantity': self.quantity,
            'line_total': self.line_total
        }

    def __repr__(self):
        return f'<InvoiceItem {self.test_name}: {self.quantity} x {self.price}>'
