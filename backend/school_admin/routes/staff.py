from flask import Blueprint, request, jsonify
from school_admin.models import (
    Staff, User, Section, CourseSchedule, StaffRoleEnum, StaffLevelEnum, StatusEnum,
)
from school_admin.schemas import StaffSchema, StaffUpdateSchema
from school_admin.extensions import db
from school_utils.decorators import role_required, login_required
from school_utils.errors import ApiError
from school_utils.formSchema import generate_schema_from_model
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.validation import parse_body, parse_enum_arg, get_or_404

staff_bp = Blueprint('staff', __name__)


def check_staff_uniqueness(dni, email, exclude_id=None):
    query = Staff.query.filter((Staff.dni == dni) | (Staff.email == email))
    if exclude_id is not None:
        query = query.filter(Staff.id != exclude_id)
    existing = query.first()
    if existing:
        field = "DNI" if existing.dni == dni else "email"
        raise ApiError.bad_request(f"A staff member with this {field} already exists")


@staff_bp.route('', methods=['GET'])
@role_required('admin')
def list_staff():
    page, limit = get_page_args()
    query = Staff.query

    role = parse_enum_arg('role', StaffRoleEnum)
    if role:
        query = query.filter(Staff.role == role)
    level = parse_enum_arg('level', StaffLevelEnum)
    if level:
        query = query.filter(Staff.level == level)
    status = parse_enum_arg('status', StatusEnum)
    if status:
        query = query.filter(Staff.status == status)

    paginated = apply_pagination_and_search(
        query.order_by(Staff.last_name, Staff.first_name),
        Staff,
        request.args.get('search', type=str),
        search_columns=["first_name", "last_name", "dni", "email"],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda s: s.to_dict())), 200


@staff_bp.route('/form-schema', methods=['GET'])
@login_required
def form_schema():
    return jsonify({"success": True, "data": generate_schema_from_model(Staff, "Staff")}), 200


@staff_bp.route('/<int:staff_id>', methods=['GET'])
@role_required('admin')
def get_staff(staff_id):
    staff = get_or_404(Staff, staff_id, "Staff member")
    return jsonify({"success": True, "data": staff.to_dict()}), 200


@staff_bp.route('', methods=['POST'])
@role_required('admin')
def create_staff():
    data = parse_body(StaffSchema)
    check_staff_uniqueness(data.dni, data.email)
    if data.user_id is not None:
        get_or_404(User, data.user_id, "User")

    staff = Staff(**data.model_dump())
    db.session.add(staff)
    db.session.commit()
    return jsonify({"success": True, "data": staff.to_dict()}), 201


@staff_bp.route('/<int:staff_id>', methods=['PUT'])
@role_required('admin')
def update_staff(staff_id):
    staff = get_or_404(Staff, staff_id, "Staff member")
    data = parse_body(StaffUpdateSchema).model_dump(exclude_unset=True)

    if "dni" in data or "email" in data:
        check_staff_uniqueness(data.get("dni", staff.dni), data.get("email", staff.email), exclude_id=staff.id)
    if data.get("user_id") is not None:
        get_or_404(User, data["user_id"], "User")

    for key, value in data.items():
        setattr(staff, key, value)
    db.session.commit()
    return jsonify({"success": True, "data": staff.to_dict()}), 200


@staff_bp.route('/<int:staff_id>', methods=['DELETE'])
@role_required('admin')
def delete_staff(staff_id):
    staff = get_or_404(Staff, staff_id, "Staff member")

    if CourseSchedule.query.filter_by(teacher_id=staff.id).first():
        raise ApiError.bad_request("Cannot delete staff member: assigned to course schedules")
    if Section.query.filter_by(teacher_id=staff.id).first():
        raise ApiError.bad_request("Cannot delete staff member: tutor of a section")

    db.session.delete(staff)
    db.session.commit()
    return jsonify({"success": True, "data": {}, "message": "Staff member deleted"}), 200
