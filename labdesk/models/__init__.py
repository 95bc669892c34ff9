"""
Database models package
"""
from labdesk.models.staff import User
from labdesk.models.patients import Patient
from labdesk.models.doctors import Doctor
from labdesk.models.catalog import LabTest
from labdesk.models.billing import Invoice, InvoiceItem
from labdesk.models.reports import Report, ReportResult
from labdesk.models.expenses import Expense
from labdesk.models.stock import StockItem
from labdesk.models.common import AuditLog

__all__ = [
    'User', 'Patient', 'Doctor', 'LabTest',
    'Invoice', 'InvoiceItem', 'Report', 'ReportResult',
    'Expense', 'StockItem', 'AuditLog'
]
