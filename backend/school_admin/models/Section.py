from sqlalchemy import event
from sqlalchemy.orm import validates
from school_admin.extensions import db
from school_utils.errors import ModelValidationError
from school_utils.serialization import to_dict as model_to_dict, summary
from .base import TimestampMixin, LevelEnum, StatusEnum, enum_column


class Section(db.Model, TimestampMixin):
    __tablename__ = 'sections'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    level = enum_column(LevelEnum, nullable=False, index=True)
    grade = db.Column(db.Integer, nullable=False)
    section = db.Column(db.String(5), nullable=False)
    max_students = db.Column(db.Integer, nullable=False)
    current_students = db.Column(db.Integer, nullable=False, default=0)
    school_year_id = db.Column(db.Integer, db.ForeignKey('school_years.id'), nullable=False, index=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('staff.id'), nullable=True)
    status = enum_column(StatusEnum, nullable=False, default=StatusEnum.active)

    school_year = db.relationship('SchoolYear', back_populates='sections')
    teacher = db.relationship('Staff', back_populates='sections')
    enrollments = db.relationship('Enrollment', back_populates='section', lazy=True)
    course_schedules = db.relationship('CourseSchedule', back_populates='section', lazy=True)

    @validates('section')
    def upper_letter(self, key, value):
        return value.strip().upper() if value else value

    @property
    def available_spots(self):
        return max((self.max_students or 0) - (self.current_students or 0), 0)

    def to_dict(self):
        data = model_to_dict(self)
        data["available_spots"] = self.available_spots
        data["school_year"] = summary(self.school_year, "name", "status")
        data["teacher"] = summary(self.teacher, "first_name", "last_name")
        return data


@event.listens_for(Section, 'before_insert')
@event.listens_for(Section, 'before_update')
def check_section(mapper, connection, target):
    if target.grade is None or not 1 <= target.grade <= 6:
        raise ModelValidationError("grade", "Grade must be between 1 and 6")
    if target.max_students is None or target.max_students < 1:
        raise ModelValidationError("max_students", "There must be room for at least 1 student")
