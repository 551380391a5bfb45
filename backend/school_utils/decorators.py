from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from .errors import ApiError


def load_current_user():
    """Resolve the user behind the bearer token and keep it on `g`."""
    from school_admin.extensions import db
    from school_admin.models import User, UserStatusEnum

    if getattr(g, "current_user", None) is not None:
        return g.current_user

    user_id = get_jwt_identity()
    if not user_id:
        raise ApiError.unauthorized("Missing or invalid token")

    user = db.session.get(User, int(user_id))
    if not user:
        raise ApiError.unauthorized("User not found")
    if user.status != UserStatusEnum.active:
        raise ApiError.unauthorized("Inactive user")

    g.current_user = user
    return user


def login_required(fn):
    """Require a valid bearer token belonging to an active user."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        load_current_user()
        return fn(*args, **kwargs)
    return wrapper


def role_required(*allowed_roles):
    """
    Restrict access to users with specific roles.
    Usage: @role_required("admin", "teacher")
    """
    allowed_roles = set(role.lower() for role in allowed_roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = load_current_user()

            user_role_name = user.role.value if user.role else ""
            if user_role_name not in allowed_roles:
                raise ApiError.forbidden("Access forbidden: insufficient permissions")

            return fn(*args, **kwargs)
        return wrapper
    return decorator
