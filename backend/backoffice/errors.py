# Overview: Error taxonomy shared by services and routes.

"""
Back Office Errors

Every failure a pipeline can report is a BackofficeError subclass grouped
into four kinds:

- ValidationError: the request itself is malformed (400). Raised before any
  state is read or written.
- NotFoundError: a referenced entity does not exist (404).
- ConflictError: the request is well-formed but current state forbids it
  (409): not enough stock, coupon exhausted, return too large.
- PersistenceError: the atomic write failed and was rolled back (503).
  Nothing was written; the caller may retry.

Each error carries a `details` dict with machine-readable context (ids,
requested vs available quantities) that routes return verbatim.
"""

from __future__ import annotations


class BackofficeError(Exception):
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind, "details": self.details}


class ValidationError(BackofficeError, ValueError):
    status_code = 400


class NotFoundError(BackofficeError):
    status_code = 404


class ConflictError(BackofficeError):
    status_code = 409


class PersistenceError(BackofficeError):
    status_code = 503


class AuthError(BackofficeError):
    status_code = 401


# =============================================================================
# VALIDATION
# =============================================================================

class EmptyCart(ValidationError):
    pass


class InvalidQuantity(ValidationError):
    pass


class InvalidPhoneNumber(ValidationError):
    pass


class EmptyRentalRequest(ValidationError):
    pass


# =============================================================================
# NOT FOUND
# =============================================================================

class ItemNotFound(NotFoundError):
    pass


class RentalNotFound(NotFoundError):
    pass


class SaleNotFound(NotFoundError):
    pass


class LineItemNotFound(NotFoundError):
    pass


class CouponNotFound(NotFoundError):
    pass


class NoOutstandingRentals(NotFoundError):
    pass


# =============================================================================
# CONFLICT
# =============================================================================

class InsufficientStock(ConflictError):
    pass


class RentalUnavailable(ConflictError):
    pass


class CouponInactive(ConflictError):
    pass


class CouponExpired(ConflictError):
    pass


class CouponExhausted(ConflictError):
    pass


class MinimumPurchaseNotMet(ConflictError):
    pass


class ExcessiveReturnQuantity(ConflictError):
    pass


# =============================================================================
# AUTH
# =============================================================================

class InvalidCredentials(AuthError):
    pass


class PasswordValidationError(ValidationError):
    """Raised when a password doesn't meet strength requirements."""
