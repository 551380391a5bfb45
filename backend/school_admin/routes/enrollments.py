from flask import Blueprint, request, jsonify
from school_admin.models import Enrollment, Section, SchoolYear, EnrollmentStatusEnum
from school_admin.schemas import EnrollmentSchema
from school_admin.extensions import limiter
from school_admin.services.enrollment import (
    enroll_student, delete_enrollment, bulk_enroll, TEMPLATE_COLUMNS, TEMPLATE_FIRST_ROW,
)
from school_utils.audit import log_event
from school_utils.decorators import role_required, login_required, load_current_user
from school_utils.errors import ApiError
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.uploads import read_spreadsheet, is_excel, allowed_file
from school_utils.validation import parse_body, parse_enum_arg, get_or_404

enrollments_bp = Blueprint('enrollments', __name__)


@enrollments_bp.route('', methods=['GET'])
@role_required('admin', 'teacher')
def list_enrollments():
    page, limit = get_page_args()
    query = Enrollment.query

    for field in ("section_id", "school_year_id", "student_id"):
        value = request.args.get(field, type=int)
        if value:
            query = query.filter(getattr(Enrollment, field) == value)
    status = parse_enum_arg('status', EnrollmentStatusEnum)
    if status:
        query = query.filter(Enrollment.status == status)

    paginated = apply_pagination_and_search(
        query.order_by(Enrollment.enrollment_date.desc()),
        Enrollment,
        None,
        search_columns=[],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda e: e.to_dict())), 200


@enrollments_bp.route('', methods=['POST'])
@role_required('admin')
def create_enrollment():
    data = parse_body(EnrollmentSchema)
    enrollment = enroll_student(
        data.student_id, data.section_id, data.school_year_id, level=data.level, status=data.status
    )
    return jsonify({"success": True, "data": enrollment.to_dict()}), 201


@enrollments_bp.route('/bulk', methods=['POST'])
@role_required('admin')
@limiter.limit("10 per minute", override_defaults=False)
def bulk_enrollment():
    file = request.files.get('file')
    if not file:
        raise ApiError.bad_request("No file uploaded")
    if not allowed_file(file):
        raise ApiError.bad_request("Unsupported file format. Use CSV or Excel.")

    school_year_name = (request.form.get('school_year_name') or "").strip()
    section_name = (request.form.get('section_name') or "").strip()
    if not school_year_name:
        raise ApiError.bad_request("School year name is required")
    if not section_name:
        raise ApiError.bad_request("Section name is required")

    school_year = SchoolYear.query.filter_by(name=school_year_name).first()
    if not school_year:
        raise ApiError.not_found(f"School year '{school_year_name}' not found")
    section = Section.query.filter_by(name=section_name, school_year_id=school_year.id).first()
    if not section:
        raise ApiError.not_found(f"Section '{section_name}' not found")

    if is_excel(file):
        df = read_spreadsheet(file, excel_skiprows=TEMPLATE_FIRST_ROW - 1, header=None)
        df = df.rename(columns=dict(enumerate(TEMPLATE_COLUMNS)))
        first_row = TEMPLATE_FIRST_ROW
    else:
        df = read_spreadsheet(file)
        first_row = 2

    summary = bulk_enroll(df, section, school_year, first_row=first_row)

    log_event("BULK_ENROLLMENT", user_id=load_current_user().id, ip=request.remote_addr,
              description=f"Section {section.id}: {summary['enrolled']} enrolled, {summary['failed']} failed")
    return jsonify({"success": True, "data": summary}), 201


@enrollments_bp.route('/section/<int:section_id>/students', methods=['GET'])
@login_required
def students_in_section(section_id):
    get_or_404(Section, section_id, "Section")
    enrollments = Enrollment.query.filter_by(
        section_id=section_id, status=EnrollmentStatusEnum.active
    ).all()
    students = sorted((e.student for e in enrollments), key=lambda u: (u.last_name, u.first_name))
    return jsonify({
        "success": True,
        "count": len(students),
        "data": [s.to_dict() for s in students],
    }), 200


@enrollments_bp.route('/<int:enrollment_id>', methods=['DELETE'])
@role_required('admin')
def remove_enrollment(enrollment_id):
    enrollment = get_or_404(Enrollment, enrollment_id, "Enrollment")
    delete_enrollment(enrollment)
    return jsonify({"success": True, "data": {}, "message": "Enrollment deleted"}), 200


@enrollments_bp.route('/<int:enrollment_id>', methods=['GET'])
@role_required('admin', 'teacher')
def get_enrollment(enrollment_id):
    enrollment = get_or_404(Enrollment, enrollment_id, "Enrollment")
    return jsonify({"success": True, "data": enrollment.to_dict()}), 200
