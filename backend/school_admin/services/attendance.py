import calendar
from datetime import date, MINYEAR, MAXYEAR
from flask import current_app
from sqlalchemy import func
from school_admin.extensions import db
from school_admin.models import (
    Attendance, AttendanceDetail, CourseSchedule, Enrollment, Section, TimeSlot, User,
    AttendanceStatusEnum, AttendanceDetailStatusEnum, DayOfWeekEnum, EnrollmentStatusEnum, StatusEnum,
)
from school_utils.errors import ApiError
from school_utils.serialization import summary

DETAIL_STATUSES = [s.value for s in AttendanceDetailStatusEnum]


def default_schedule_for(section_id, on_date):
    """First active schedule of the section on that weekday, by start time."""
    day = DayOfWeekEnum.from_date(on_date)
    if day is None:
        return None
    return (
        CourseSchedule.query
        .join(TimeSlot, CourseSchedule.time_slot_id == TimeSlot.id)
        .filter(
            CourseSchedule.section_id == section_id,
            CourseSchedule.day_of_week == day,
            CourseSchedule.status == StatusEnum.active,
        )
        .order_by(TimeSlot.start_time)
        .first()
    )


def active_student_ids(section_id):
    rows = db.session.query(Enrollment.student_id).filter(
        Enrollment.section_id == section_id,
        Enrollment.status == EnrollmentStatusEnum.active,
    )
    return {student_id for (student_id,) in rows}


def bulk_upsert_attendance(payload):
    """
    Record one status per student for a section on a day.

    Each record lands in the Attendance of (course schedule, date), created on first use.
    A student already present in that Attendance has their detail updated in place.
    Records that cannot be placed are reported per item; the rest are committed together.
    """
    section = db.session.get(Section, payload.section_id)
    if not section:
        raise ApiError.not_found("Section not found")

    if payload.course_schedule_id is not None:
        schedule = db.session.get(CourseSchedule, payload.course_schedule_id)
        if not schedule:
            raise ApiError.not_found("Course schedule not found")
        if schedule.section_id != section.id:
            raise ApiError.bad_request("Course schedule does not belong to this section")
    else:
        schedule = default_schedule_for(section.id, payload.date)

    enrolled = active_student_ids(section.id)
    attendance = None
    results = []
    created = updated = failed = 0

    for record in payload.records:
        if record.student_id not in enrolled:
            failed += 1
            results.append({"student_id": record.student_id, "success": False,
                            "message": "Student is not enrolled in this section"})
            continue

        if schedule is None:
            failed += 1
            results.append({"student_id": record.student_id, "success": False,
                            "message": f"No course schedule found for this section on {payload.date.isoformat()}"})
            continue

        if attendance is None:
            attendance = Attendance.query.filter_by(
                course_schedule_id=schedule.id, date=payload.date
            ).first()
            if attendance is None:
                attendance = Attendance(
                    date=payload.date,
                    section_id=section.id,
                    course_schedule_id=schedule.id,
                    teacher_id=schedule.teacher_id,
                    status=AttendanceStatusEnum.taken,
                )
                db.session.add(attendance)
                db.session.flush()

        detail = attendance.detail_for(record.student_id)
        if detail:
            detail.status = record.status
            if record.notes is not None:
                detail.notes = record.notes
            updated += 1
            action = "updated"
        else:
            attendance.details.append(AttendanceDetail(
                student_id=record.student_id, status=record.status, notes=record.notes
            ))
            created += 1
            action = "created"

        results.append({"student_id": record.student_id, "success": True,
                        "action": action, "attendance_id": attendance.id})

    db.session.commit()
    current_app.logger.info(
        "Bulk attendance for section %s on %s: %s created, %s updated, %s failed",
        section.id, payload.date, created, updated, failed
    )
    return {
        "processed": len(payload.records),
        "created": created,
        "updated": updated,
        "failed": failed,
        "results": results,
    }


def _empty_counts():
    return {status: 0 for status in DETAIL_STATUSES}


def monthly_report(section_id, month, year):
    section = db.session.get(Section, section_id)
    if not section:
        raise ApiError.not_found("Section not found")
    if not 1 <= month <= 12:
        raise ApiError.bad_request("Month must be between 1 and 12")
    if not MINYEAR <= year <= MAXYEAR:
        raise ApiError.bad_request(f"Year must be between {MINYEAR} and {MAXYEAR}")

    first_day = date(year, month, 1)
    last_day = date(year, month, calendar.monthrange(year, month)[1])

    in_month = (
        Attendance.section_id == section_id,
        Attendance.date >= first_day,
        Attendance.date <= last_day,
    )

    day_rows = (
        db.session.query(Attendance.date, AttendanceDetail.status, func.count(AttendanceDetail.id))
        .join(AttendanceDetail, AttendanceDetail.attendance_id == Attendance.id)
        .filter(*in_month)
        .group_by(Attendance.date, AttendanceDetail.status)
        .order_by(Attendance.date)
        .all()
    )

    days = {}
    totals = _empty_counts()
    for day, status, count in day_rows:
        entry = days.setdefault(day.isoformat(), {"date": day.isoformat(), **_empty_counts(), "total": 0})
        entry[status.value] += count
        entry["total"] += count
        totals[status.value] += count

    detail_rows = (
        db.session.query(AttendanceDetail, Attendance.date, Attendance.course_schedule_id)
        .join(Attendance, AttendanceDetail.attendance_id == Attendance.id)
        .filter(*in_month)
        .order_by(Attendance.date)
        .all()
    )

    student_ids = active_student_ids(section_id) | {d.student_id for d, _, _ in detail_rows}
    users = {u.id: u for u in User.query.filter(User.id.in_(student_ids)).all()} if student_ids else {}

    students = {}
    for user in sorted(users.values(), key=lambda u: (u.last_name, u.first_name)):
        students[user.id] = {
            "student": summary(user, "first_name", "last_name", "dni"),
            "records": [],
            "totals": _empty_counts(),
        }

    for detail, day, schedule_id in detail_rows:
        # details can outlive the student row when foreign keys are not enforced
        entry = students.setdefault(detail.student_id, {
            "student": None,
            "records": [],
            "totals": _empty_counts(),
        })
        entry["records"].append({
            "date": day.isoformat(),
            "status": detail.status.value,
            "course_schedule_id": schedule_id,
        })
        entry["totals"][detail.status.value] += 1

    return {
        "section": summary(section, "name", "grade", "section", "level"),
        "month": month,
        "year": year,
        "days": list(days.values()),
        "students": list(students.values()),
        "totals": totals,
    }


def detail_counts(start_date=None, end_date=None, section_id=None):
    query = (
        db.session.query(AttendanceDetail.status, func.count(AttendanceDetail.id))
        .join(Attendance, AttendanceDetail.attendance_id == Attendance.id)
    )
    if start_date:
        query = query.filter(Attendance.date >= start_date)
    if end_date:
        query = query.filter(Attendance.date <= end_date)
    if section_id:
        query = query.filter(Attendance.section_id == section_id)

    counts = _empty_counts()
    for status, count in query.group_by(AttendanceDetail.status).all():
        counts[status.value] = count
    return counts


def attendance_stats(start_date=None, end_date=None, section_id=None):
    counts = detail_counts(start_date, end_date, section_id)
    total = sum(counts.values())
    return {
        "total": total,
        "by_status": [
            {
                "status": status,
                "count": count,
                "percentage": round(count * 100 / total, 2) if total else 0,
            }
            for status, count in counts.items()
        ],
    }


def present_rate(start_date=None, end_date=None):
    counts = detail_counts(start_date, end_date)
    total = sum(counts.values())
    return round(counts["present"] * 100 / total, 2) if total else 0
