from sqlalchemy import event
from school_admin.extensions import db
from school_utils.errors import ModelValidationError
from school_utils.serialization import to_dict as model_to_dict
from .base import TimestampMixin, SchoolYearStatusEnum, enum_column


class SchoolYear(db.Model, TimestampMixin):
    __tablename__ = 'school_years'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    status = enum_column(SchoolYearStatusEnum, nullable=False, default=SchoolYearStatusEnum.active, index=True)

    sections = db.relationship('Section', back_populates='school_year', lazy=True)
    enrollments = db.relationship('Enrollment', back_populates='school_year', lazy=True)

    def to_dict(self):
        return model_to_dict(self)


@event.listens_for(SchoolYear, 'before_insert')
@event.listens_for(SchoolYear, 'before_update')
def check_date_range(mapper, connection, target):
    if target.start_date and target.end_date and target.end_date <= target.start_date:
        raise ModelValidationError("end_date", "End date must be after start date")
