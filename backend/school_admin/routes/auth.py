from datetime import datetime, timezone
from flask import Blueprint, request, jsonify
from flask_jwt_extended import create_access_token, jwt_required, get_jwt
from school_admin.models import User, Staff, TokenBlocklist, UserStatusEnum, RoleEnum
from school_admin.schemas import RegisterSchema, LoginSchema, UpdatePasswordSchema
from school_admin.extensions import db, limiter
from school_utils.audit import log_event
from school_utils.decorators import login_required, load_current_user
from school_utils.errors import ApiError
from school_utils.validation import parse_body

auth_bp = Blueprint('auth', __name__)


def issue_token(user):
    return create_access_token(
        identity=str(user.id),
        additional_claims={"role": user.role.value}
    )


def ensure_unique_identity(dni, email, exclude_id=None):
    query = User.query.filter((User.dni == dni) | (User.email == email))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    existing = query.first()
    if existing:
        field = "DNI" if existing.dni == dni else "email"
        raise ApiError.bad_request(f"A user with this {field} already exists")


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def register():
    data = parse_body(RegisterSchema)
    ensure_unique_identity(data.dni, data.email)

    user = User(**data.model_dump(exclude={"password"}))
    if data.password:
        user.set_password(data.password)

    db.session.add(user)
    db.session.commit()

    log_event("USER_CREATED", user_id=user.id, ip=request.remote_addr, description=f"Self registration for DNI {user.dni}")

    body = {"success": True, "data": user.to_dict()}
    if user.password_hash:
        body["token"] = issue_token(user)
    return jsonify(body), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def login():
    data = parse_body(LoginSchema)
    ip = request.remote_addr

    user = User.query.filter_by(dni=data.dni).first()

    if not user or not user.password_hash:
        log_event("LOGIN_FAILED", ip=ip, description=f"Unknown DNI or no password set: {data.dni}", level="WARNING")
        raise ApiError.unauthorized("Invalid credentials")

    if not user.check_password(data.password):
        log_event("LOGIN_FAILED", user_id=user.id, ip=ip, description="Wrong password", level="WARNING")
        raise ApiError.unauthorized("Invalid credentials")

    if user.status != UserStatusEnum.active:
        log_event("LOGIN_FAILED", user_id=user.id, ip=ip, description="Inactive user", level="WARNING")
        raise ApiError.unauthorized("User account is inactive")

    log_event("LOGIN_SUCCESS", user_id=user.id, ip=ip, description=f"{user.dni} logged in")
    return jsonify({
        "success": True,
        "token": issue_token(user),
        "data": user.to_dict(),
    }), 200


@auth_bp.route('/me', methods=['GET'])
@login_required
def get_current_user():
    user = load_current_user()
    data = user.to_dict()

    staff = None
    if user.role in (RoleEnum.admin, RoleEnum.teacher):
        staff = Staff.query.filter_by(user_id=user.id).first()
    data["staff"] = staff.to_dict(include_user=False) if staff else None

    return jsonify({"success": True, "data": data}), 200


@auth_bp.route('/update-password', methods=['PUT'])
@login_required
def update_password():
    user = load_current_user()
    data = parse_body(UpdatePasswordSchema)

    if not user.check_password(data.current_password):
        raise ApiError.unauthorized("Current password is incorrect")

    user.set_password(data.new_password)
    db.session.commit()

    log_event("PASSWORD_CHANGED", user_id=user.id, ip=request.remote_addr)
    return jsonify({
        "success": True,
        "message": "Password updated",
        "token": issue_token(user),
    }), 200


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    claims = get_jwt()
    user_id = claims.get("sub")
    expires = datetime.fromtimestamp(claims["exp"], tz=timezone.utc).replace(tzinfo=None)

    token_block = TokenBlocklist(jti=claims["jti"], token_type=claims.get("type", "access"),
                                 user_id=int(user_id) if user_id else None, expires_at=expires)
    db.session.add(token_block)
    db.session.commit()

    log_event("LOGOUT", user_id=user_id, ip=request.remote_addr)
    return jsonify({"success": True, "data": {}, "message": "Successfully logged out"}), 200
