# Overview: Employee authentication; bcrypt password hashing and credential checks.

"""
Authentication Service

WHY: Every sale, return and rental is attributed to an employee, so the
register must know who is logged in. Pipelines only ever see the
authenticated employee id.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 6 characters
- Unknown employee, inactive employee and wrong password all fail with the
  same InvalidCredentials error
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

from dataclasses import dataclass

import bcrypt

from ..errors import InvalidCredentials, PasswordValidationError, ValidationError
from ..extensions import db
from ..models import Employee

MIN_PASSWORD_LENGTH = 6
BCRYPT_ROUNDS = 12


@dataclass(frozen=True)
class Principal:
    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Employee.ADMIN


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash password using bcrypt.

    Validates password strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw() is timing-safe."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def authenticate(employee_id, password: str) -> Principal:
    """
    Check credentials and return the employee's Principal.

    Raises InvalidCredentials.
    """
    try:
        employee_id = int(employee_id)
    except (TypeError, ValueError):
        raise InvalidCredentials("Invalid credentials")

    employee = db.session.get(Employee, employee_id)
    if employee is None or not employee.is_active:
        raise InvalidCredentials("Invalid credentials")
    if not verify_password(password, employee.password_hash):
        raise InvalidCredentials("Invalid credentials")
    return Principal(employee.id, employee.role)


def create_employee(
    *,
    first_name: str,
    last_name: str,
    password: str,
    role: str = Employee.CASHIER,
    email: str | None = None,
    contact_number: str | None = None,
    employee_id: int | None = None,
    rounds: int = BCRYPT_ROUNDS,
) -> Employee:
    """Create an employee with a bcrypt password hash."""
    if role not in Employee.ROLES:
        raise ValidationError(f"role must be one of {', '.join(Employee.ROLES)}", {"role": role})
    if not (first_name or "").strip() or not (last_name or "").strip():
        raise ValidationError("first_name and last_name are required")

    employee = Employee(
        id=employee_id,
        role=role,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=(email or "").strip() or None,
        contact_number=(contact_number or "").strip() or None,
        password_hash=hash_password(password, rounds=rounds),
        is_active=True,
    )
    db.session.add(employee)
    db.session.commit()
    return employee
