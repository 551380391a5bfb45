from datetime import date
from flask import Blueprint, request, jsonify
from school_admin.models import SchoolYear, Section, Enrollment, SchoolYearStatusEnum
from school_admin.schemas import SchoolYearSchema, SchoolYearUpdateSchema
from school_admin.extensions import db
from school_utils.decorators import role_required, login_required
from school_utils.errors import ApiError
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.validation import parse_body, parse_enum_arg, get_or_404

school_years_bp = Blueprint('school_years', __name__)


def check_name_available(name, exclude_id=None):
    query = SchoolYear.query.filter(SchoolYear.name == name)
    if exclude_id is not None:
        query = query.filter(SchoolYear.id != exclude_id)
    if query.first():
        raise ApiError.bad_request("A school year with this name already exists")


@school_years_bp.route('', methods=['GET'])
@login_required
def list_school_years():
    page, limit = get_page_args()
    query = SchoolYear.query

    status = parse_enum_arg('status', SchoolYearStatusEnum)
    if status:
        query = query.filter(SchoolYear.status == status)

    paginated = apply_pagination_and_search(
        query.order_by(SchoolYear.start_date.desc()),
        SchoolYear,
        request.args.get('search', type=str),
        search_columns=["name"],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda y: y.to_dict())), 200


@school_years_bp.route('/current', methods=['GET'])
@login_required
def current_school_year():
    today = date.today()
    year = SchoolYear.query.filter(
        SchoolYear.status == SchoolYearStatusEnum.active,
        SchoolYear.start_date <= today,
        SchoolYear.end_date >= today,
    ).order_by(SchoolYear.start_date.desc()).first()
    if not year:
        raise ApiError.not_found("No active school year for the current date")
    return jsonify({"success": True, "data": year.to_dict()}), 200


@school_years_bp.route('/<int:year_id>', methods=['GET'])
@login_required
def get_school_year(year_id):
    year = get_or_404(SchoolYear, year_id, "School year")
    return jsonify({"success": True, "data": year.to_dict()}), 200


@school_years_bp.route('', methods=['POST'])
@role_required('admin')
def create_school_year():
    data = parse_body(SchoolYearSchema)
    check_name_available(data.name)

    year = SchoolYear(**data.model_dump())
    db.session.add(year)
    db.session.commit()
    return jsonify({"success": True, "data": year.to_dict()}), 201


@school_years_bp.route('/<int:year_id>', methods=['PUT'])
@role_required('admin')
def update_school_year(year_id):
    year = get_or_404(SchoolYear, year_id, "School year")
    data = parse_body(SchoolYearUpdateSchema).model_dump(exclude_unset=True)

    if data.get("name"):
        check_name_available(data["name"], exclude_id=year.id)

    for key, value in data.items():
        setattr(year, key, value)
    db.session.commit()
    return jsonify({"success": True, "data": year.to_dict()}), 200


@school_years_bp.route('/<int:year_id>', methods=['DELETE'])
@role_required('admin')
def delete_school_year(year_id):
    year = get_or_404(SchoolYear, year_id, "School year")

    if Section.query.filter_by(school_year_id=year.id).first():
        raise ApiError.bad_request("Cannot delete school year: it has sections")
    if Enrollment.query.filter_by(school_year_id=year.id).first():
        raise ApiError.bad_request("Cannot delete school year: it has enrollments")

    db.session.delete(year)
    db.session.commit()
    return jsonify({"success": True, "data": {}, "message": "School year deleted"}), 200
