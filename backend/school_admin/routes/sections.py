from flask import Blueprint, request, jsonify
from school_admin.models import (
    Section, SchoolYear, Staff, Enrollment, CourseSchedule, LevelEnum, StatusEnum,
)
from school_admin.schemas import SectionSchema, SectionUpdateSchema
from school_admin.extensions import db
from school_utils.decorators import role_required, login_required
from school_utils.errors import ApiError
from school_utils.formSchema import generate_schema_from_model
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.validation import parse_body, parse_enum_arg, get_or_404

sections_bp = Blueprint('sections', __name__)


def filter_sections(query):
    level = parse_enum_arg('level', LevelEnum)
    if level:
        query = query.filter(Section.level == level)
    grade = request.args.get('grade', type=int)
    if grade:
        query = query.filter(Section.grade == grade)
    status = parse_enum_arg('status', StatusEnum)
    if status:
        query = query.filter(Section.status == status)
    return query


def check_duplicate(values, exclude_id=None):
    query = Section.query.filter_by(
        name=values["name"],
        grade=values["grade"],
        level=values["level"],
        section=values["section"].strip().upper(),
        school_year_id=values["school_year_id"],
    )
    if exclude_id is not None:
        query = query.filter(Section.id != exclude_id)
    if query.first():
        raise ApiError.bad_request("A section with these details already exists in the selected school year")


def check_references(values):
    if not db.session.get(SchoolYear, values["school_year_id"]):
        raise ApiError.bad_request("School year does not exist")
    if values.get("teacher_id") is not None and not db.session.get(Staff, values["teacher_id"]):
        raise ApiError.bad_request("Teacher does not exist")


@sections_bp.route('', methods=['GET'])
@login_required
def list_sections():
    page, limit = get_page_args()
    query = filter_sections(Section.query)

    school_year_id = request.args.get('school_year_id', type=int)
    if school_year_id:
        query = query.filter(Section.school_year_id == school_year_id)

    paginated = apply_pagination_and_search(
        query.order_by(Section.level, Section.grade, Section.section),
        Section,
        request.args.get('search', type=str),
        search_columns=["name", "section"],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda s: s.to_dict())), 200


@sections_bp.route('/school-year/<int:year_id>', methods=['GET'])
@login_required
def sections_by_school_year(year_id):
    get_or_404(SchoolYear, year_id, "School year")
    sections = filter_sections(Section.query.filter_by(school_year_id=year_id)) \
        .order_by(Section.grade, Section.section).all()
    return jsonify({
        "success": True,
        "count": len(sections),
        "data": [s.to_dict() for s in sections],
    }), 200


@sections_bp.route('/form-schema', methods=['GET'])
@login_required
def form_schema():
    return jsonify({"success": True, "data": generate_schema_from_model(Section, "Section")}), 200


@sections_bp.route('/<int:section_id>', methods=['GET'])
@login_required
def get_section(section_id):
    section = get_or_404(Section, section_id, "Section")
    return jsonify({"success": True, "data": section.to_dict()}), 200


@sections_bp.route('', methods=['POST'])
@role_required('admin')
def create_section():
    values = parse_body(SectionSchema).model_dump()
    check_references(values)
    check_duplicate(values)

    section = Section(**values)
    db.session.add(section)
    db.session.commit()
    return jsonify({"success": True, "data": section.to_dict()}), 201


@sections_bp.route('/<int:section_id>', methods=['PUT'])
@role_required('admin')
def update_section(section_id):
    section = get_or_404(Section, section_id, "Section")
    data = parse_body(SectionUpdateSchema).model_dump(exclude_unset=True)

    merged = {
        "name": section.name, "grade": section.grade, "level": section.level,
        "section": section.section, "school_year_id": section.school_year_id,
        "teacher_id": section.teacher_id,
    }
    merged.update(data)
    check_references(merged)
    check_duplicate(merged, exclude_id=section.id)

    if "max_students" in data and data["max_students"] < section.current_students:
        raise ApiError.bad_request("Capacity cannot be lower than the current number of students")

    for key, value in data.items():
        setattr(section, key, value)
    db.session.commit()
    return jsonify({"success": True, "data": section.to_dict()}), 200


@sections_bp.route('/<int:section_id>', methods=['DELETE'])
@role_required('admin')
def delete_section(section_id):
    section = get_or_404(Section, section_id, "Section")

    if Enrollment.query.filter_by(section_id=section.id).first():
        raise ApiError.bad_request("Cannot delete section: it has enrolled students")
    if CourseSchedule.query.filter_by(section_id=section.id).first():
        raise ApiError.bad_request("Cannot delete section: it has course schedules")

    db.session.delete(section)
    db.session.commit()
    return jsonify({"success": True, "data": {}, "message": "Section deleted"}), 200
