# Overview: Flask API routes for equipment rentals.

from flask import Blueprint, request, jsonify, current_app

from ..errors import BackofficeError
from ..extensions import db
from ..models import Employee, RentalAsset
from ..services import rental_service
from ..services.rental_service import RentalPipeline
from ..decorators import require_auth, require_role


rentals_bp = Blueprint("rentals", __name__, url_prefix="/api/rentals")

RENTAL_ROLES = (Employee.ADMIN, Employee.CASHIER)


@rentals_bp.get("/assets")
@require_auth
@require_role(*RENTAL_ROLES)
def list_assets_route():
    assets = (
        db.session.query(RentalAsset)
        .filter(RentalAsset.is_active.is_(True))
        .order_by(RentalAsset.name.asc())
        .all()
    )
    return jsonify({"assets": [a.to_dict() for a in assets]}), 200


@rentals_bp.post("/checkout")
@require_auth
@require_role(*RENTAL_ROLES)
def checkout_route():
    """
    Request body:
    {
        "customer_phone": "5551234567",
        "rental_items": [{"rental_id": 2001, "quantity": 1}]
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        receipt = RentalPipeline().checkout_rental(data.get("customer_phone"), data.get("rental_items"))
        return jsonify({"rental": receipt.to_dict()}), 201
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to check out rental")
        return jsonify({"error": "Internal server error"}), 500


@rentals_bp.post("/return")
@require_auth
@require_role(*RENTAL_ROLES)
def return_route():
    """Request body: {"customer_phone": "5551234567"}"""
    data = request.get_json(silent=True) or {}
    try:
        receipt = RentalPipeline().return_rental(data.get("customer_phone"))
        return jsonify({"return": receipt.to_dict()}), 200
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to return rental")
        return jsonify({"error": "Internal server error"}), 500


@rentals_bp.get("/outstanding")
@require_auth
@require_role(*RENTAL_ROLES)
def outstanding_route():
    try:
        checkouts = rental_service.list_outstanding_rentals(request.args.get("phone"))
        return jsonify({"rentals": [c.to_dict() for c in checkouts]}), 200
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code
