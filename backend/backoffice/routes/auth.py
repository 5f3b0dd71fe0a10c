# Overview: Flask API routes for employee login/logout.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import BackofficeError
from ..services import auth_service, session_service
from ..decorators import require_auth
from ..time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Request body:
    {
        "employee_id": 7,
        "password": "secret1"
    }

    Returns:
        200: {"token": "...", "employee": {...}, "expires_at": "..."}
        401: Invalid credentials
    """
    data = request.get_json(silent=True) or {}
    employee_id = data.get("employee_id")
    password = data.get("password")

    if employee_id is None or not password:
        return jsonify({"error": "employee_id and password required"}), 400

    try:
        principal = auth_service.authenticate(employee_id, password)
        session, token = session_service.create_session(principal.id)
        current_app.logger.info("Employee %s logged in", principal.id)
        return jsonify({
            "token": token,
            "employee": session.employee.to_dict(),
            "expires_at": to_utc_z(session.expires_at),
        }), 200
    except BackofficeError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    token = request.headers["Authorization"].split(" ", 1)[1]
    session_service.revoke_session(token)
    return jsonify({"status": "logged_out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"employee": g.current_employee.to_dict()}), 200
