from sqlalchemy.orm import validates
from school_admin.extensions import db
from school_utils.serialization import to_dict as model_to_dict, summary
from .base import TimestampMixin, StaffRoleEnum, StaffLevelEnum, StatusEnum, enum_column


class Staff(db.Model, TimestampMixin):
    __tablename__ = 'staff'

    id = db.Column(db.Integer, primary_key=True)
    dni = db.Column(db.String(20), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    role = enum_column(StaffRoleEnum, nullable=False, index=True)
    level = enum_column(StaffLevelEnum, nullable=False)
    status = enum_column(StatusEnum, nullable=False, default=StatusEnum.active)
    phone = db.Column(db.String(30), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    user = db.relationship('User', back_populates='staff_profile')
    sections = db.relationship('Section', back_populates='teacher', lazy=True)
    course_schedules = db.relationship('CourseSchedule', back_populates='teacher', lazy=True)

    @validates('email')
    def normalize_email(self, key, value):
        return value.strip().lower() if value else value

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self, include_user=True):
        data = model_to_dict(self)
        data["full_name"] = self.full_name
        if include_user:
            data["user"] = summary(self.user, "first_name", "last_name", "email", "role")
        return data
