# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service
from .services.auth_service import Principal


def require_auth(f):
    """
    Require a valid bearer token.

    Sets:
    - g.current_employee: the authenticated Employee
    - g.principal: Principal(id, role) passed on to the pipelines
    - g.session_context: the full SessionContext
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_employee = context.employee
        g.principal = Principal(context.employee.id, context.employee.role)
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the authenticated employee to hold one of `roles`.

    Must be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                return jsonify({"error": "Authentication required"}), 401
            if principal.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "details": {"required_roles": list(roles), "role": principal.role},
                }), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator
