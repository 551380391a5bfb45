from school_admin.extensions import db
from school_utils.serialization import to_dict as model_to_dict, summary
from .base import TimestampMixin, DayOfWeekEnum, StatusEnum, enum_column
from .TimeSlot import TimeSlot


class CourseSchedule(db.Model, TimestampMixin):
    __tablename__ = 'course_schedules'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=False, index=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('staff.id'), nullable=False, index=True)
    time_slot_id = db.Column(db.Integer, db.ForeignKey('time_slots.id'), nullable=False)
    school_year_id = db.Column(db.Integer, db.ForeignKey('school_years.id'), nullable=False)
    day_of_week = enum_column(DayOfWeekEnum, nullable=False, index=True)
    classroom = db.Column(db.String(50), nullable=False)
    status = enum_column(StatusEnum, nullable=False, default=StatusEnum.active)

    course = db.relationship('Course', back_populates='course_schedules')
    section = db.relationship('Section', back_populates='course_schedules')
    teacher = db.relationship('Staff', back_populates='course_schedules')
    time_slot = db.relationship('TimeSlot', back_populates='course_schedules')
    school_year = db.relationship('SchoolYear')
    attendances = db.relationship('Attendance', back_populates='course_schedule', lazy=True)

    def to_dict(self):
        data = model_to_dict(self)
        data["course"] = summary(self.course, "name", "code")
        data["section"] = summary(self.section, "name", "grade", "section", "level")
        data["teacher"] = summary(self.teacher, "first_name", "last_name")
        data["time_slot"] = summary(self.time_slot, "name", "start_time", "end_time")
        data["school_year"] = summary(self.school_year, "name")
        return data


def find_schedule_conflict(field, value, day_of_week, school_year_id, time_slot, exclude_id=None):
    """
    Return the first active schedule sharing `field` (section_id or teacher_id),
    day and school year whose time slot intersects `time_slot`, or None.
    """
    query = (
        CourseSchedule.query
        .join(TimeSlot, CourseSchedule.time_slot_id == TimeSlot.id)
        .filter(
            getattr(CourseSchedule, field) == value,
            CourseSchedule.day_of_week == day_of_week,
            CourseSchedule.school_year_id == school_year_id,
            CourseSchedule.status == StatusEnum.active,
            TimeSlot.start_time < time_slot.end_time,
            TimeSlot.end_time > time_slot.start_time,
        )
    )
    if exclude_id is not None:
        query = query.filter(CourseSchedule.id != exclude_id)
    return query.first()
