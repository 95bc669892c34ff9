"""
Lab report models
"""
from datetime import datetime
from labdesk import db

class Report(db.Model):
    """Results for the tests of one invoice"""
    __tablename__ = 'reports'

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, index=True, nullable=False)
    patient_id = db.Column(db.Integer, index=True)
    doctor_id = db.Column(db.Integer, index=True)
    status = db.Column(db.String(20), default='pending', nullable=False, index=True)  # pending, in_progress, completed, verified, locked
    interpretation = db.Column(db.Text)
    # Set by the reporting user; never derived from the per-result abnormal flags
    critical_values = db.Column(db.Boolean, default=False, nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    verified_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    verified_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    # Relationships
    results = db.relationship('ReportResult', backref='report', cascade='all, delete-orphan',
                              order_by='ReportResult.id')
    invoice = db.relationship('Invoice', primaryjoin='foreign(Report.invoice_id) == Invoice.id',
                              viewonly=True)
    patient = db.relationship('Patient', primaryjoin='foreign(Report.patient_id) == Patient.id',
                              viewonly=True)
    doctor = db.relationship('Doctor', primaryjoin='foreign(Report.doctor_id) == Doctor.id',
                             viewonly=True)
    created_by = db.relationship('User', foreign_keys=[created_by_id])
    verified_by = db.relationship('User', foreign_keys=[verified_by_id])

    def __init__(self, **kwargs):
        super(Report, self).__init__(**kwargs)
        if self.status is None:
            self.status = 'pending'
        if self.critical_values is None:
            self.critical_values = False

    @property
    def is_locked(self):
        return self.status == 'locked'

    @property
    def abnormal_count(self):
        return sum(1 for result in self.results if result.is_abnormal)

    def set_results(self, results):
        """Replace results from API mappings"""
        self.results = [
            ReportResult(
                test_id=result.get('test_id'),
                test_name=result.get('test_name'),
                result=result.get('result'),
                normal_range=result.get('normal_range'),
                unit=result.get('unit'),
                is_abnormal=bool(result.get('is_abnormal', False))
            )
            for result in results
        ]

    def verify(self, user):
        """Mark the report verified by user"""
        self.status = 'verified'
        self.verified_by_id = user.id
        self.verified_at = datetime.utcnow()

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'invoice_id': self.invoice_id,
            'invoice_no': self.invoice.invoice_no if self.invoice else None,
            'patient_id': self.patient_id,
            'patient_name': self.patient.name if self.patient else None,
            'doctor_id': self.doctor_id,
            'doctor_name': self.doctor.name if self.doctor else None,
            'results': [result.to_dict() for result in self.results],
            'status': self.status,
            'interpretation': self.interpretation,
            'critical_values': self.critical_values,
            'abnormal_count': self.abnormal_count,
            'created_by_id': self.created_by_id,
            'verified_by_id': self.verified_by_id,
            'verified_by_name': self.verified_by.name if self.verified_by else None,
            'verified_at': self.verified_at.isoformat() if self.verified_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'version': self.version
        }

    def __repr__(self):
        return f'<Report {self.id}: invoice {self.invoice_id} ({self.status})>'

class ReportResult(db.Model):
    """Result of one test within a report"""
    __tablename__ = 'report_results'

    id = db.Column(db.Integer, primary_key=True)
    report_id = db.Column(db.Integer, db.ForeignKey('reports.id'), nullable=False, index=True)
    test_id = db.Column(db.Integer, index=True)
    test_name = db.Column(db.String(200))
    result = db.Column(db.String(100))
    normal_range = db.Column(db.String(100))
    unit = db.Column(db.String(20))
    is_abnormal = db.Column(db.Boolean, default=False, nullable=False)

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'test_id': self.test_id,
            'test_name': self.test_name,
            'result': self.result,
            'normal_range': self.normal_range,
            'unit': self.unit,
            'is_abnormal': self.is_abnormal
        }

    def __repr__(self):
        return f'<ReportResult {self.test_name}: {self.result}>'
