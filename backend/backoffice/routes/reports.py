# Overview: Flask API routes for reports; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import BackofficeError
from ..models import Employee
from ..services import reporting_service
from ..decorators import require_auth, require_role


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _report(fn, **kwargs):
    try:
        return jsonify(fn(**kwargs)), 200
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to generate report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/sales")
@require_auth
@require_role(Employee.ADMIN)
def sales_report_route():
    return _report(
        reporting_service.sales_report,
        start=request.args.get("start"),
        end=request.args.get("end"),
    )


@reports_bp.get("/top-selling")
@require_auth
@require_role(Employee.ADMIN)
def top_selling_route():
    return _report(
        lambda **kw: {"items": reporting_service.top_selling_items(**kw)},
        limit=request.args.get("limit", default=10, type=int),
        start=request.args.get("start"),
        end=request.args.get("end"),
    )


@reports_bp.get("/employee-performance")
@require_auth
@require_role(Employee.ADMIN)
def employee_performance_route():
    return _report(
        lambda **kw: {"employees": reporting_service.employee_performance(**kw)},
        start=request.args.get("start"),
        end=request.args.get("end"),
    )


@reports_bp.get("/inventory")
@require_auth
@require_role(Employee.ADMIN, Employee.CASHIER)
def inventory_report_route():
    return _report(
        reporting_service.inventory_report,
        low_threshold=request.args.get("low_threshold", type=int),
        critical_threshold=request.args.get("critical_threshold", type=int),
    )


@reports_bp.get("/rentals")
@require_auth
@require_role(Employee.ADMIN)
def rental_report_route():
    return _report(reporting_service.rental_report, as_of=request.args.get("as_of"))
