from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from sqlalchemy.orm import validates
from backoffice.extensions import db


ROLES = ('admin', 'manager', 'staff', 'customer')
ACCOUNT_STATUSES = ('active', 'locked', 'suspended')


class User(UserMixin, db.Model):
    """Back-office account: administrators, managers, staff and customers.

    Inherits from:
        UserMixin: Provides default implementations for Flask-Login interface
        db.Model: SQLAlchemy model base class
    """
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    full_name = db.Column(db.String(120))
    password_hash = db.Column(db.String(256))
    role = db.Column(
        db.String(20),
        nullable=False,
        default='customer'
    )  # admin, manager, staff, customer
    account_status = db.Column(db.String(20), nullable=False, default='active')
    created_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow
    )
    last_login = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    branch_id = db.Column(db.Integer, db.ForeignKey('location.id'))
    package_id = db.Column(db.Integer, db.ForeignKey('package.id'))

    branch = db.relationship('Location')
    package = db.relationship('Package')

    @validates('role')
    def validate_role(self, key, value):
        if value not in ROLES:
            raise ValueError(f"Invalid role: {value}")
        return value

    @validates('account_status')
    def validate_account_status(self, key, value):
        if value not in ACCOUNT_STATUSES:
            raise ValueError(f"Invalid account status: {value}")
        return value

    def set_password(self, password):
        """Set user's password hash from plain text password.

        Args:
            password: Plain text password to hash
        """
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if plain text password matches hash.

        Args:
            password: Plain text password to verify

        Returns:
            bool: True if password matches, False otherwise
        """
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def has_role(self, *roles):
        return self.role in roles

    def is_manager(self):
        """Managers and admins run inventory and reports."""
        return self.role in ('admin', 'manager')

    def is_staff_member(self):
        """Anyone working for the space (not a customer)."""
        return self.role in ('admin', 'manager', 'staff')

    def is_locked(self):
        return self.account_status in ('locked', 'suspended')

    def update_last_login(self):
        """Update user's last login timestamp to current time."""
        self.last_login = datetime.utcnow()
        db.session.commit()

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'fullName': self.full_name,
            'role': self.role,
            'accountStatus': self.account_status,
            'branchId': self.branch_id,
            'packageId': self.package_id,
        }

    def __repr__(self):
        return f'<User {self.username}>'
