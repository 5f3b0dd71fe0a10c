from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Employee(db.Model):
    """
    Register employee.

    WHY: Every sale, return and rental is attributed to the employee who
    rang it up. Role drives authorization (Admin vs Cashier).

    SECURITY NOTES:
    - password_hash is bcrypt (see auth_service.hash_password)
    - inactive employees cannot log in and their sessions stop validating
    """
    __tablename__ = "employees"
    __table_args__ = (
        db.CheckConstraint("role IN ('Admin', 'Cashier')", name="role_known"),
        {"sqlite_autoincrement": True},
    )

    ADMIN = "Admin"
    CASHIER = "Cashier"
    ROLES = (ADMIN, CASHIER)

    id = db.Column(db.Integer, primary_key=True)
    role = db.Column(db.String(16), nullable=False, default=CASHIER)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    contact_number = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(255), nullable=True, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "id": self.id,
            "role": self.role,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "contact_number": self.contact_number,
            "email": self.email,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class SessionToken(db.Model):
    """
    Bearer session for an employee.

    SECURITY NOTES:
    - Only the SHA-256 of the token is stored
    - Absolute expiry, no idle extension
    - Revoked on logout
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_employee_active", "employee_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime, nullable=True)

    employee = db.relationship("Employee")
