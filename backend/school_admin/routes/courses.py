from flask import Blueprint, request, jsonify
from school_admin.models import Course, CourseSchedule, LevelEnum, StatusEnum
from school_admin.schemas import CourseSchema, CourseUpdateSchema
from school_admin.extensions import db
from school_utils.decorators import role_required, login_required
from school_utils.errors import ApiError
from school_utils.formSchema import generate_schema_from_model
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.validation import parse_body, parse_enum_arg, get_or_404

courses_bp = Blueprint('courses', __name__)


def check_code_available(code, exclude_id=None):
    query = Course.query.filter(Course.code == code.strip().upper())
    if exclude_id is not None:
        query = query.filter(Course.id != exclude_id)
    if query.first():
        raise ApiError.bad_request("A course with this code already exists")


@courses_bp.route('', methods=['GET'])
@login_required
def list_courses():
    page, limit = get_page_args()
    query = Course.query

    level = parse_enum_arg('level', LevelEnum)
    if level:
        query = query.filter(Course.level == level)
    grade = request.args.get('grade', type=int)
    if grade:
        query = query.filter(Course.grade == grade)
    status = parse_enum_arg('status', StatusEnum)
    if status:
        query = query.filter(Course.status == status)

    paginated = apply_pagination_and_search(
        query.order_by(Course.name),
        Course,
        request.args.get('search', type=str),
        search_columns=["name", "description"],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda c: c.to_dict())), 200


@courses_bp.route('/level/<level>', methods=['GET'])
@login_required
def courses_by_level(level):
    query = Course.query.filter(Course.status == StatusEnum.active)
    if level != "all":
        try:
            query = query.filter(Course.level == LevelEnum(level))
        except ValueError:
            raise ApiError.bad_request("Invalid level. Allowed values: initial, primary, secondary, all")

    courses = query.order_by(Course.grade, Course.name).all()
    return jsonify({
        "success": True,
        "count": len(courses),
        "data": [c.to_dict() for c in courses],
    }), 200


@courses_bp.route('/form-schema', methods=['GET'])
@login_required
def form_schema():
    return jsonify({"success": True, "data": generate_schema_from_model(Course, "Course")}), 200


@courses_bp.route('/<int:course_id>', methods=['GET'])
@login_required
def get_course(course_id):
    course = get_or_404(Course, course_id, "Course")
    return jsonify({"success": True, "data": course.to_dict()}), 200


@courses_bp.route('', methods=['POST'])
@role_required('admin')
def create_course():
    data = parse_body(CourseSchema)
    check_code_available(data.code)

    course = Course(**data.model_dump())
    db.session.add(course)
    db.session.commit()
    return jsonify({"success": True, "data": course.to_dict()}), 201


@courses_bp.route('/<int:course_id>', methods=['PUT'])
@role_required('admin')
def update_course(course_id):
    course = get_or_404(Course, course_id, "Course")
    data = parse_body(CourseUpdateSchema).model_dump(exclude_unset=True)

    if data.get("code"):
        check_code_available(data["code"], exclude_id=course.id)

    for key, value in data.items():
        setattr(course, key, value)
    db.session.commit()
    return jsonify({"success": True, "data": course.to_dict()}), 200


@courses_bp.route('/<int:course_id>', methods=['DELETE'])
@role_required('admin')
def delete_course(course_id):
    course = get_or_404(Course, course_id, "Course")

    if CourseSchedule.query.filter_by(course_id=course.id).first():
        raise ApiError.bad_request("Cannot delete course: it is used in course schedules")

    db.session.delete(course)
    db.session.commit()
    return jsonify({"success": True, "data": {}, "message": "Course deleted"}), 200
