# Overview: Flask API routes for sales and returns; parses input and returns JSON responses.

"""
Sales API Routes

DESIGN:
- POST /api/sales/ rings up a whole cart in one call (no draft state)
- GET /api/sales/<id> returns the receipt
- POST /api/sales/<id>/returns returns units of one line
- Cashiers and admins may sell and process returns
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import BackofficeError
from ..models import Employee
from ..services import return_service, sales_service
from ..services.sales_service import SalePipeline
from ..time_utils import parse_iso_datetime
from ..decorators import require_auth, require_role


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

SELLING_ROLES = (Employee.ADMIN, Employee.CASHIER)


@sales_bp.post("/")
@require_auth
@require_role(*SELLING_ROLES)
def create_sale_route():
    """
    Request body:
    {
        "cart_items": [{"item_id": 1001, "quantity": 2}],
        "coupon_code": "SAVE10"  (optional)
    }

    Returns:
        201: Sale receipt (coupon_rejection set when a coupon was not applied)
        400: Invalid cart
        404: Unknown item
        409: Insufficient stock
    """
    data = request.get_json(silent=True) or {}
    try:
        receipt = SalePipeline().process_sale(
            g.principal.id,
            data.get("cart_items"),
            data.get("coupon_code"),
        )
        return jsonify({"sale": receipt.to_dict()}), 201
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/")
@require_auth
@require_role(*SELLING_ROLES)
def list_sales_route():
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601"}), 400

    limit = request.args.get("limit", default=100, type=int)
    employee_id = request.args.get("employee_id", type=int)
    if g.principal.role == Employee.CASHIER:
        # Cashiers only see their own sales
        employee_id = g.principal.id

    try:
        sales = sales_service.list_sales(start, end, employee_id=employee_id, limit=limit)
        return jsonify({"sales": [s.to_dict(include_lines=False) for s in sales]}), 200
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_role(*SELLING_ROLES)
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
        return jsonify({"sale": sale.to_dict()}), 200
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code


# =============================================================================
# RETURNS
# =============================================================================

@sales_bp.post("/<int:sale_id>/returns")
@require_auth
@require_role(*SELLING_ROLES)
def create_return_route(sale_id: int):
    """
    Request body:
    {
        "item_id": 1001,
        "quantity": 1,
        "reason": "Damaged"  (optional)
    }

    Returns:
        201: Return record with refund_amount
        404: Unknown sale or item not on the sale
        409: Quantity exceeds what is still returnable
    """
    data = request.get_json(silent=True) or {}
    try:
        record = return_service.process_return(
            sale_id,
            data.get("item_id"),
            data.get("quantity"),
            data.get("reason"),
            g.principal.id,
        )
        return jsonify({"return": record.to_dict()}), 201
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process return")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>/returns")
@require_auth
@require_role(*SELLING_ROLES)
def list_returns_route(sale_id: int):
    try:
        records = return_service.list_returns_for_sale(sale_id)
        return jsonify({"returns": [r.to_dict() for r in records]}), 200
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code
