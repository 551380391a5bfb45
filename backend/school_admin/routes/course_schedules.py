from flask import Blueprint, request, jsonify
from school_admin.models import (
    CourseSchedule, Course, Section, Staff, TimeSlot, SchoolYear, Attendance,
    DayOfWeekEnum, StatusEnum, find_schedule_conflict,
)
from school_admin.schemas import CourseScheduleSchema, CourseScheduleUpdateSchema
from school_admin.extensions import db
from school_utils.decorators import role_required, login_required
from school_utils.errors import ApiError
from school_utils.formSchema import generate_schema_from_model
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.validation import parse_body, parse_enum_arg, get_or_404

course_schedules_bp = Blueprint('course_schedules', __name__)

REFERENCES = (
    ("course_id", Course, "Course"),
    ("section_id", Section, "Section"),
    ("teacher_id", Staff, "Teacher"),
    ("time_slot_id", TimeSlot, "Time slot"),
    ("school_year_id", SchoolYear, "School year"),
)


def validate_schedule(values, exclude_id=None):
    """Check references exist and that neither the section nor the teacher is double-booked."""
    for field, model, label in REFERENCES:
        if not db.session.get(model, values[field]):
            raise ApiError.bad_request(f"{label} does not exist")

    if values.get("status", StatusEnum.active) != StatusEnum.active:
        return

    time_slot = db.session.get(TimeSlot, values["time_slot_id"])
    scope = (values["day_of_week"], values["school_year_id"], time_slot)

    if find_schedule_conflict("section_id", values["section_id"], *scope, exclude_id=exclude_id):
        raise ApiError.bad_request("The section already has a course scheduled at this time on this day")
    if find_schedule_conflict("teacher_id", values["teacher_id"], *scope, exclude_id=exclude_id):
        raise ApiError.bad_request("The teacher already has a course scheduled at this time on this day")


def ordered_by_day_and_time(query):
    schedules = query.join(TimeSlot, CourseSchedule.time_slot_id == TimeSlot.id).all()
    days = list(DayOfWeekEnum)
    return sorted(schedules, key=lambda s: (days.index(s.day_of_week), s.time_slot.start_time))


@course_schedules_bp.route('', methods=['GET'])
@login_required
def list_course_schedules():
    page, limit = get_page_args()
    query = CourseSchedule.query

    for field in ("course_id", "section_id", "teacher_id", "time_slot_id", "school_year_id"):
        value = request.args.get(field, type=int)
        if value:
            query = query.filter(getattr(CourseSchedule, field) == value)
    day = parse_enum_arg('day_of_week', DayOfWeekEnum)
    if day:
        query = query.filter(CourseSchedule.day_of_week == day)
    status = parse_enum_arg('status', StatusEnum)
    if status:
        query = query.filter(CourseSchedule.status == status)

    paginated = apply_pagination_and_search(
        query.order_by(CourseSchedule.id),
        CourseSchedule,
        request.args.get('search', type=str),
        search_columns=["classroom"],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda s: s.to_dict())), 200


@course_schedules_bp.route('/section/<int:section_id>', methods=['GET'])
@login_required
def schedules_by_section(section_id):
    get_or_404(Section, section_id, "Section")
    schedules = ordered_by_day_and_time(
        CourseSchedule.query.filter_by(section_id=section_id, status=StatusEnum.active)
    )
    return jsonify({"success": True, "count": len(schedules), "data": [s.to_dict() for s in schedules]}), 200


@course_schedules_bp.route('/teacher/<int:teacher_id>', methods=['GET'])
@login_required
def schedules_by_teacher(teacher_id):
    get_or_404(Staff, teacher_id, "Teacher")
    schedules = ordered_by_day_and_time(
        CourseSchedule.query.filter_by(teacher_id=teacher_id, status=StatusEnum.active)
    )
    return jsonify({"success": True, "count": len(schedules), "data": [s.to_dict() for s in schedules]}), 200


@course_schedules_bp.route('/form-schema', methods=['GET'])
@login_required
def form_schema():
    return jsonify({
        "success": True,
        "data": generate_schema_from_model(CourseSchedule, "CourseSchedule"),
    }), 200


@course_schedules_bp.route('/<int:schedule_id>', methods=['GET'])
@login_required
def get_course_schedule(schedule_id):
    schedule = get_or_404(CourseSchedule, schedule_id, "Course schedule")
    return jsonify({"success": True, "data": schedule.to_dict()}), 200


@course_schedules_bp.route('', methods=['POST'])
@role_required('admin')
def create_course_schedule():
    values = parse_body(CourseScheduleSchema).model_dump()
    validate_schedule(values)

    schedule = CourseSchedule(**values)
    db.session.add(schedule)
    db.session.commit()
    return jsonify({"success": True, "data": schedule.to_dict()}), 201


@course_schedules_bp.route('/<int:schedule_id>', methods=['PUT'])
@role_required('admin')
def update_course_schedule(schedule_id):
    schedule = get_or_404(CourseSchedule, schedule_id, "Course schedule")
    data = parse_body(CourseScheduleUpdateSchema).model_dump(exclude_unset=True)

    merged = {field: getattr(schedule, field) for field, _, _ in REFERENCES}
    merged.update(day_of_week=schedule.day_of_week, status=schedule.status)
    merged.update(data)
    validate_schedule(merged, exclude_id=schedule.id)

    for key, value in data.items():
        setattr(schedule, key, value)
    db.session.commit()
    return jsonify({"success": True, "data": schedule.to_dict()}), 200


@course_schedules_bp.route('/<int:schedule_id>', methods=['DELETE'])
@role_required('admin')
def delete_course_schedule(schedule_id):
    schedule = get_or_404(CourseSchedule, schedule_id, "Course schedule")

    if Attendance.query.filter_by(course_schedule_id=schedule.id).first():
        raise ApiError.bad_request("Cannot delete course schedule: it has attendance records")

    db.session.delete(schedule)
    db.session.commit()
    return jsonify({"success": True, "data": {}, "message": "Course schedule deleted"}), 200
