from school_admin.extensions import db
from school_utils.serialization import to_dict as model_to_dict, summary
from .base import TimestampMixin, AttendanceStatusEnum, AttendanceDetailStatusEnum, enum_column


class Attendance(db.Model, TimestampMixin):
    __tablename__ = 'attendances'

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=False, index=True)
    course_schedule_id = db.Column(db.Integer, db.ForeignKey('course_schedules.id'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('staff.id'), nullable=False)
    status = enum_column(AttendanceStatusEnum, nullable=False, default=AttendanceStatusEnum.pending)
    notes = db.Column(db.Text, nullable=True)

    section = db.relationship('Section')
    course_schedule = db.relationship('CourseSchedule', back_populates='attendances')
    teacher = db.relationship('Staff')
    details = db.relationship(
        'AttendanceDetail', back_populates='attendance',
        cascade="all, delete-orphan", order_by='AttendanceDetail.id'
    )

    __table_args__ = (
        db.UniqueConstraint('course_schedule_id', 'date', name='uq_attendance_schedule_date'),
    )

    def detail_for(self, student_id):
        return next((d for d in self.details if d.student_id == student_id), None)

    def to_dict(self, include_details=True):
        data = model_to_dict(self)
        data["section"] = summary(self.section, "name", "grade", "section")
        data["teacher"] = summary(self.teacher, "first_name", "last_name")
        data["course_schedule"] = summary(self.course_schedule, "day_of_week", "classroom", "course_id", "time_slot_id")
        data["present_count"] = sum(1 for d in self.details if d.status == AttendanceDetailStatusEnum.present)
        data["absent_count"] = sum(1 for d in self.details if d.status == AttendanceDetailStatusEnum.absent)
        if include_details:
            data["details"] = [d.to_dict() for d in self.details]
        return data


class AttendanceDetail(db.Model, TimestampMixin):
    __tablename__ = 'attendance_details'

    id = db.Column(db.Integer, primary_key=True)
    attendance_id = db.Column(db.Integer, db.ForeignKey('attendances.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = enum_column(AttendanceDetailStatusEnum, nullable=False, default=AttendanceDetailStatusEnum.present)
    notes = db.Column(db.Text, nullable=True)

    attendance = db.relationship('Attendance', back_populates='details')
    student = db.relationship('User')

    __table_args__ = (
        db.UniqueConstraint('attendance_id', 'student_id', name='uq_attendance_detail_student'),
    )

    def to_dict(self):
        data = model_to_dict(self, only={"id", "student_id", "status", "notes"})
        data["student"] = summary(self.student, "first_name", "last_name", "dni")
        return data
