"""
Repository over SQLAlchemy models

Routes go through a Repository instead of touching the session directly, and
hand the records they load to the pure billing and analytics functions.
"""
from flask import abort

from labdesk.extensions import db


class Repository:
    """CRUD operations for one model class"""

    def __init__(self, model, session=None):
        self.model = model
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def get(self, record_id):
        return self.session.get(self.model, record_id)

    def get_or_404(self, record_id):
        record = self.get(record_id)
        if record is None:
            abort(404, description=f"{self.model.__name__} {record_id} not found")
        return record

    def query(self, *criteria, order_by=None, limit=None, **filters):
        stmt = db.select(self.model).filter_by(**filters)
        if criteria:
            stmt = stmt.where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    def list(self, *criteria, order_by=None, limit=None, **filters):
        return self.session.execute(
            self.query(*criteria, order_by=order_by, limit=limit, **filters)
        ).scalars().all()

    def first(self, *criteria, **filters):
        return self.session.execute(
            self.query(*criteria, **filters).limit(1)
        ).scalars().first()

    def count(self, *criteria, **filters):
        subquery = self.query(*criteria, **filters).subquery()
        return self.session.execute(
            db.select(db.func.count()).select_from(subquery)
        ).scalar_one()

    def add(self, record, commit=True):
        self.session.add(record)
        if commit:
            self.session.commit()
        return record

    def update(self, record, commit=True, **changes):
        for key, value in changes.items():
            setattr(record, key, value)
        if commit:
            self.session.commit()
        return record

    def delete(self, record, commit=True):
        self.session.delete(record)
        if commit:
            self.session.commit()

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
