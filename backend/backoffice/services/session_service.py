# Overview: Bearer session tokens for logged-in employees.

"""
Session Token Management Service

WHY: The register authenticates once and then sends a bearer token with
every request. Tokens are random, stored hashed, time-limited and
revocable.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute timeout from SESSION_TTL_HOURS (default 8)
- Revoked on logout; deactivating an employee invalidates their sessions
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Employee, SessionToken
from ..time_utils import utcnow


@dataclass
class SessionContext:
    employee: Employee
    session: SessionToken


def generate_token() -> str:
    """64-character hex string; the plaintext is sent to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 for storage.

    WHY SHA-256 not bcrypt: tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(employee_id: int) -> tuple[SessionToken, str]:
    """
    Create a session for an authenticated employee.

    Returns (session_record, plaintext_token).
    """
    now = utcnow()
    ttl = timedelta(hours=current_app.config["SESSION_TTL_HOURS"])
    token = generate_token()

    session = SessionToken(
        employee_id=employee_id,
        token_hash=hash_token(token),
        created_at=now,
        expires_at=now + ttl,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Returns None if the token is unknown, expired, revoked, or belongs to an
    inactive employee.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if session is None or session.is_revoked:
        return None
    if utcnow() >= session.expires_at:
        return None

    employee = session.employee
    if employee is None or not employee.is_active:
        return None
    return SessionContext(employee=employee, session=session)


def revoke_session(token: str) -> bool:
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if session is None or session.is_revoked:
        return False
    session.is_revoked = True
    session.revoked_at = utcnow()
    db.session.commit()
    return True
