from sqlalchemy import event
from sqlalchemy.orm import validates
from school_admin.extensions import db
from school_utils.errors import ModelValidationError
from school_utils.serialization import to_dict as model_to_dict
from .base import TimestampMixin, LevelEnum, StatusEnum, enum_column


class Course(db.Model, TimestampMixin):
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    code = db.Column(db.String(30), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=False)
    level = enum_column(LevelEnum, nullable=False, index=True)
    grade = db.Column(db.Integer, nullable=False)
    credits = db.Column(db.Integer, nullable=False)
    status = enum_column(StatusEnum, nullable=False, default=StatusEnum.active)

    course_schedules = db.relationship('CourseSchedule', back_populates='course', lazy=True)

    @validates('code')
    def upper_code(self, key, value):
        return value.strip().upper() if value else value

    def to_dict(self):
        return model_to_dict(self)


@event.listens_for(Course, 'before_insert')
@event.listens_for(Course, 'before_update')
def check_course(mapper, connection, target):
    if target.grade is None or not 1 <= target.grade <= 6:
        raise ModelValidationError("grade", "Grade must be between 1 and 6")
    if target.credits is None or target.credits < 1:
        raise ModelValidationError("credits", "Credits must be at least 1")
