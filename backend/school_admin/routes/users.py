from flask import Blueprint, request, jsonify
from school_admin.models import (
    User, Staff, Enrollment, Incident, AttendanceDetail, RoleEnum, UserStatusEnum, GenderEnum,
)
from school_admin.schemas import RegisterSchema, UserUpdateSchema, ChangePasswordSchema
from school_admin.extensions import db, limiter
from school_admin.routes.auth import ensure_unique_identity
from school_utils.audit import log_event
from school_utils.decorators import role_required, load_current_user
from school_utils.errors import ApiError
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.uploads import read_spreadsheet, cell, parse_date_cell
from school_utils.validation import parse_body, parse_enum_arg, get_or_404

users_bp = Blueprint('users', __name__)

BULK_COLUMNS = ["first_name", "last_name", "dni", "email", "role", "password", "gender", "birthdate"]


@users_bp.route('', methods=['GET'])
@role_required('admin')
def list_users():
    page, limit = get_page_args()
    query = User.query

    role = parse_enum_arg('role', RoleEnum)
    if role:
        query = query.filter(User.role == role)
    status = parse_enum_arg('status', UserStatusEnum)
    if status:
        query = query.filter(User.status == status)

    paginated = apply_pagination_and_search(
        query.order_by(User.last_name, User.first_name),
        User,
        request.args.get('search', type=str),
        search_columns=["first_name", "last_name", "dni", "email"],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda u: u.to_dict())), 200


@users_bp.route('/<int:user_id>', methods=['GET'])
@role_required('admin')
def get_user(user_id):
    user = get_or_404(User, user_id, "User")
    return jsonify({"success": True, "data": user.to_dict()}), 200


@users_bp.route('', methods=['POST'])
@role_required('admin')
def create_user():
    data = parse_body(RegisterSchema)
    ensure_unique_identity(data.dni, data.email)

    user = User(**data.model_dump(exclude={"password"}))
    if data.password:
        user.set_password(data.password)
    db.session.add(user)
    db.session.commit()

    log_event("USER_CREATED", user_id=load_current_user().id, ip=request.remote_addr,
              description=f"Created user {user.id} ({user.role.value})")
    return jsonify({"success": True, "data": user.to_dict()}), 201


@users_bp.route('/<int:user_id>', methods=['PUT'])
@role_required('admin')
def update_user(user_id):
    user = get_or_404(User, user_id, "User")
    data = parse_body(UserUpdateSchema).model_dump(exclude_unset=True)

    if "dni" in data or "email" in data:
        ensure_unique_identity(data.get("dni", user.dni), data.get("email", user.email), exclude_id=user.id)

    for key, value in data.items():
        setattr(user, key, value)
    db.session.commit()
    return jsonify({"success": True, "data": user.to_dict()}), 200


@users_bp.route('/<int:user_id>', methods=['DELETE'])
@role_required('admin')
def delete_user(user_id):
    user = get_or_404(User, user_id, "User")

    if Staff.query.filter_by(user_id=user.id).first():
        raise ApiError.bad_request("Cannot delete user: linked to a staff record")
    if Enrollment.query.filter_by(student_id=user.id).first():
        raise ApiError.bad_request("Cannot delete user: has enrollments")
    if AttendanceDetail.query.filter_by(student_id=user.id).first():
        raise ApiError.bad_request("Cannot delete user: has attendance records")
    if Incident.query.filter(
        (Incident.victim_id == user.id) | (Incident.aggressor_id == user.id) | (Incident.registered_by == user.id)
    ).first():
        raise ApiError.bad_request("Cannot delete user: referenced by incidents")

    db.session.delete(user)
    db.session.commit()

    log_event("USER_DELETED", user_id=load_current_user().id, ip=request.remote_addr, description=f"Deleted user {user_id}")
    return jsonify({"success": True, "data": {}, "message": "User deleted"}), 200


@users_bp.route('/<int:user_id>/change-password', methods=['PUT'])
@role_required('admin')
def change_password(user_id):
    user = get_or_404(User, user_id, "User")
    data = parse_body(ChangePasswordSchema)

    user.set_password(data.new_password)
    db.session.commit()

    log_event("PASSWORD_CHANGED", user_id=load_current_user().id, ip=request.remote_addr,
              description=f"Password reset for user {user.id}")
    return jsonify({"success": True, "message": "Password updated"}), 200


@users_bp.route('/bulk-register', methods=['POST'])
@role_required('admin')
@limiter.limit("10 per minute", override_defaults=False)
def bulk_register():
    file = request.files.get('file')
    if not file:
        raise ApiError.bad_request("No file uploaded")

    df = read_spreadsheet(file)
    missing = [c for c in ("first_name", "last_name", "dni", "email") if c not in df.columns]
    if missing:
        raise ApiError.bad_request(f"Missing required columns: {', '.join(missing)}")

    seen_dni, seen_email = set(), set()
    success_count = 0
    errors = []

    for idx, raw in df.iterrows():
        row = {key: cell(raw, key) for key in BULK_COLUMNS}
        row_number = int(idx) + 2
        dni, email = row["dni"], row["email"].lower()

        if not dni or not row["first_name"] or not row["last_name"] or not email:
            errors.append({"row": row_number, "dni": dni or None, "message": "Missing required fields"})
            continue
        if dni in seen_dni or User.query.filter_by(dni=dni).first():
            errors.append({"row": row_number, "dni": dni, "message": "Duplicate DNI"})
            continue
        if email in seen_email or User.query.filter_by(email=email).first():
            errors.append({"row": row_number, "dni": dni, "message": "Duplicate email"})
            continue

        try:
            role = RoleEnum(row["role"].lower()) if row["role"] else RoleEnum.student
        except ValueError:
            errors.append({"row": row_number, "dni": dni, "message": f"Invalid role '{row['role']}'"})
            continue

        gender = row["gender"].upper()[:1]
        user = User(
            first_name=row["first_name"],
            last_name=row["last_name"],
            dni=dni,
            email=email,
            role=role,
            gender=GenderEnum(gender) if gender in GenderEnum.__members__ else None,
            birthdate=parse_date_cell(row["birthdate"]),
        )
        password = row["password"] or dni
        if len(password) < 6:
            errors.append({"row": row_number, "dni": dni, "message": "Password must be at least 6 characters"})
            continue
        user.set_password(password)
        db.session.add(user)

        seen_dni.add(dni)
        seen_email.add(email)
        success_count += 1

    db.session.commit()
    log_event("BULK_USER_REGISTER", user_id=load_current_user().id, ip=request.remote_addr,
              description=f"{success_count} users created, {len(errors)} rows rejected")

    return jsonify({
        "success": True,
        "data": {
            "processed": len(df.index),
            "success_count": success_count,
            "error_count": len(errors),
            "errors": errors,
        }
    }), 201
