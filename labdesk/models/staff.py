"""
User model for staff authentication and role management
"""
from datetime import datetime
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from labdesk import db

class User(db.Model, UserMixin):
    """Staff account: a role plus optional custom grants layered on top"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False, index=True)
    custom_permissions = db.Column(db.JSON, default=list)
    active = db.Column(db.Boolean, default=True, nullable=False)
    hashed_pw = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    def __init__(self, password=None, **kwargs):
        super(User, self).__init__(**kwargs)
        if self.active is None:
            self.active = True
        if self.custom_permissions is None:
            self.custom_permissions = []
        if password is not None:
            self.set_password(password)

    def set_password(self, password):
        """Set password hash"""
        self.hashed_pw = generate_password_hash(password)

    def check_password(self, password):
        """Check password against hash"""
        return check_password_hash(self.hashed_pw, password)

    @property
    def is_active(self):
        return self.active

    @property
    def permissions(self):
        """Effective grants: role defaults plus custom grants, derived on every access"""
        from labdesk.security import effective_permissions
        return effective_permissions(self.role, self.custom_permissions)

    def has_permission(self, module, action):
        from labdesk.security import has_permission
        return has_permission(self, module, action)

    def get_permissions(self):
        from labdesk.security import get_user_permissions
        return get_user_permissions(self)

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'active': self.active,
            'custom_permissions': self.custom_permissions or [],
            'permissions': self.get_permissions(),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'last_login': self.last_login.isoformat() if self.last_login else None
        }

    def __repr__(self):
        return f'<User {self.username}: {self.role}>'

    @classmethod
    def find_by_username(cls, username):
        """Find user by username"""
        return db.session.execute(
            db.select(cls).filter_by(username=username)
        ).scalar_one_or_none()
