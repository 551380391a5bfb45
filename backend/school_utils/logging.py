from flask import request, jsonify, current_app
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
import logging


def configure_logging(app):
    """Set the app logger level from LOG_LEVEL and give it a plain stream handler."""
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    app.logger.setLevel(level)
    if not any(isinstance(h, logging.StreamHandler) for h in app.logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s"))
        app.logger.addHandler(handler)


def log_rate_limit_violation(request_limit):
    from school_admin.models import AuditLog
    from school_admin.extensions import db

    try:
        verify_jwt_in_request(optional=True)
        user_id = get_jwt_identity()
    except (JWTExtendedException, PyJWTError):
        user_id = None

    log = AuditLog(
        user_id=int(user_id) if user_id else None,
        action=f"RATE_LIMIT_EXCEEDED: {request.method} {request.path}",
        ip_address=request.remote_addr,
    )
    db.session.add(log)
    db.session.commit()
    current_app.logger.warning("Rate limit exceeded (%s) for %s %s", request_limit.limit, request.method, request.path)

    response = jsonify({
        "success": False,
        "message": "Rate limit exceeded. Please slow down."
    })
    response.status_code = 429
    return response
