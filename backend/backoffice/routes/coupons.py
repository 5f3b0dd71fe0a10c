# Overview: Flask API routes for coupon lookup at the register.

from flask import Blueprint, request, jsonify, current_app

from ..errors import BackofficeError, ValidationError
from ..models import Employee
from ..services.coupon_service import CouponValidator
from ..services.storage import SqlStorage
from ..validation import optional_money
from ..decorators import require_auth, require_role


coupons_bp = Blueprint("coupons", __name__, url_prefix="/api/coupons")


@coupons_bp.get("/active")
@require_auth
@require_role(Employee.ADMIN, Employee.CASHIER)
def list_active_route():
    coupons = CouponValidator(SqlStorage()).list_active_coupons()
    return jsonify({"coupons": [c.to_dict() for c in coupons]}), 200


@coupons_bp.post("/validate")
@require_auth
@require_role(Employee.ADMIN, Employee.CASHIER)
def validate_route():
    """
    Preview a coupon against a subtotal without using it.

    Request body:
    {
        "coupon_code": "SAVE10",
        "subtotal": "20.00"
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        subtotal = optional_money(data.get("subtotal"), "subtotal")
        if subtotal is None:
            raise ValidationError("subtotal required", {"field": "subtotal"})
        application = CouponValidator(SqlStorage()).validate(data.get("coupon_code"), subtotal)
        return jsonify({"valid": True, "coupon": application.to_dict()}), 200
    except BackofficeError as e:
        return jsonify({**e.to_dict(), "valid": False}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to validate coupon")
        return jsonify({"error": "Internal server error"}), 500
