from flask import Blueprint, request, jsonify
from school_admin.models import (
    Attendance, AttendanceDetail, CourseSchedule, Section, AttendanceStatusEnum,
)
from school_admin.schemas import AttendanceSchema, AttendanceUpdateSchema, BulkAttendanceSchema
from school_admin.extensions import db
from school_admin.services.attendance import (
    bulk_upsert_attendance, monthly_report, attendance_stats, active_student_ids,
)
from school_utils.decorators import role_required
from school_utils.errors import ApiError
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.validation import parse_body, parse_date_arg, parse_enum_arg, get_or_404

attendance_bp = Blueprint('attendance', __name__)


def replace_details(attendance, details):
    enrolled = active_student_ids(attendance.section_id)
    unknown = [d.student_id for d in details if d.student_id not in enrolled]
    if unknown:
        raise ApiError.bad_request(
            "Some students are not enrolled in this section",
            [{"field": "details", "message": f"Student {sid} is not enrolled"} for sid in unknown]
        )

    by_student = {d.student_id: d for d in details}
    for existing in list(attendance.details):
        if existing.student_id not in by_student:
            attendance.details.remove(existing)
    for student_id, item in by_student.items():
        detail = attendance.detail_for(student_id)
        if detail:
            detail.status = item.status
            detail.notes = item.notes
        else:
            attendance.details.append(AttendanceDetail(student_id=student_id, status=item.status, notes=item.notes))


@attendance_bp.route('', methods=['GET'])
@role_required('admin', 'teacher')
def list_attendance():
    page, limit = get_page_args()
    query = Attendance.query

    for field in ("course_schedule_id", "section_id"):
        value = request.args.get(field, type=int)
        if value:
            query = query.filter(getattr(Attendance, field) == value)
    status = parse_enum_arg('status', AttendanceStatusEnum)
    if status:
        query = query.filter(Attendance.status == status)

    on_date = parse_date_arg('date')
    if on_date:
        query = query.filter(Attendance.date == on_date)
    start_date = parse_date_arg('start_date')
    if start_date:
        query = query.filter(Attendance.date >= start_date)
    end_date = parse_date_arg('end_date')
    if end_date:
        query = query.filter(Attendance.date <= end_date)

    student_id = request.args.get('student_id', type=int)
    if student_id:
        query = query.filter(Attendance.details.any(AttendanceDetail.student_id == student_id))

    paginated = apply_pagination_and_search(
        query.order_by(Attendance.date.desc(), Attendance.id.desc()),
        Attendance,
        None,
        search_columns=[],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda a: a.to_dict())), 200


@attendance_bp.route('/report/monthly', methods=['GET'])
@role_required('admin', 'teacher')
def monthly_attendance_report():
    section_id = request.args.get('section_id', type=int)
    month = request.args.get('month', type=int)
    year = request.args.get('year', type=int)
    if not section_id or not month or not year:
        raise ApiError.bad_request("section_id, month and year are required")

    return jsonify({"success": True, "data": monthly_report(section_id, month, year)}), 200


@attendance_bp.route('/stats', methods=['GET'])
@role_required('admin', 'teacher')
def stats():
    data = attendance_stats(
        start_date=parse_date_arg('start_date'),
        end_date=parse_date_arg('end_date'),
        section_id=request.args.get('section_id', type=int),
    )
    return jsonify({"success": True, "data": data}), 200


@attendance_bp.route('/bulk', methods=['POST'])
@role_required('admin', 'teacher')
def bulk_attendance():
    payload = parse_body(BulkAttendanceSchema)
    return jsonify({"success": True, "data": bulk_upsert_attendance(payload)}), 200


@attendance_bp.route('/<int:attendance_id>', methods=['GET'])
@role_required('admin', 'teacher')
def get_attendance(attendance_id):
    attendance = get_or_404(Attendance, attendance_id, "Attendance")
    return jsonify({"success": True, "data": attendance.to_dict()}), 200


@attendance_bp.route('', methods=['POST'])
@role_required('admin', 'teacher')
def create_attendance():
    data = parse_body(AttendanceSchema)

    get_or_404(Section, data.section_id, "Section")
    schedule = get_or_404(CourseSchedule, data.course_schedule_id, "Course schedule")
    if schedule.section_id != data.section_id:
        raise ApiError.bad_request("Course schedule does not belong to this section")

    if Attendance.query.filter_by(course_schedule_id=schedule.id, date=data.date).first():
        raise ApiError.bad_request("Attendance for this course schedule and date already exists")

    attendance = Attendance(
        date=data.date,
        section_id=data.section_id,
        course_schedule_id=schedule.id,
        teacher_id=data.teacher_id or schedule.teacher_id,
        status=data.status,
        notes=data.notes,
    )
    db.session.add(attendance)
    replace_details(attendance, data.details)
    db.session.commit()
    return jsonify({"success": True, "data": attendance.to_dict()}), 201


@attendance_bp.route('/<int:attendance_id>', methods=['PUT'])
@role_required('admin', 'teacher')
def update_attendance(attendance_id):
    attendance = get_or_404(Attendance, attendance_id, "Attendance")
    data = parse_body(AttendanceUpdateSchema)

    if data.status is not None:
        attendance.status = data.status
    if "notes" in data.model_fields_set:
        attendance.notes = data.notes
    if data.details is not None:
        replace_details(attendance, data.details)

    db.session.commit()
    return jsonify({"success": True, "data": attendance.to_dict()}), 200


@attendance_bp.route('/<int:attendance_id>', methods=['DELETE'])
@role_required('admin')
def delete_attendance(attendance_id):
    attendance = get_or_404(Attendance, attendance_id, "Attendance")
    db.session.delete(attendance)
    db.session.commit()
    return jsonify({"success": True, "data": {}, "message": "Attendance deleted"}), 200
