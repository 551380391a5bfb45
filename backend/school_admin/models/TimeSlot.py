import re
from sqlalchemy import event, select
from sqlalchemy.orm import validates
from school_admin.extensions import db
from school_utils.errors import ModelValidationError
from school_utils.serialization import to_dict as model_to_dict
from .base import TimestampMixin, TimeSlotTypeEnum, StatusEnum, enum_column

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def normalize_time(value):
    """'7:30' -> '07:30'. Zero padding keeps string comparison chronological."""
    match = TIME_PATTERN.match((value or "").strip())
    if not match:
        return None
    return f"{int(match.group(1)):02d}:{match.group(2)}"


class TimeSlot(db.Model, TimestampMixin):
    __tablename__ = 'time_slots'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    start_time = db.Column(db.String(5), nullable=False, index=True)
    end_time = db.Column(db.String(5), nullable=False)
    type = enum_column(TimeSlotTypeEnum, nullable=False, default=TimeSlotTypeEnum.class_)
    status = enum_column(StatusEnum, nullable=False, default=StatusEnum.active)

    course_schedules = db.relationship('CourseSchedule', back_populates='time_slot', lazy=True)

    @validates('start_time', 'end_time')
    def check_time_format(self, key, value):
        normalized = normalize_time(value)
        if normalized is None:
            raise ModelValidationError(key, "Invalid time format (HH:MM)")
        return normalized

    def overlaps(self, other):
        return self.start_time < other.end_time and self.end_time > other.start_time

    def to_dict(self):
        return model_to_dict(self)


@event.listens_for(TimeSlot, 'before_insert')
@event.listens_for(TimeSlot, 'before_update')
def check_time_slot(mapper, connection, target):
    if target.end_time <= target.start_time:
        raise ModelValidationError("end_time", "End time must be after start time")

    table = TimeSlot.__table__
    stmt = select(table.c.id, table.c.name).where(
        table.c.start_time < target.end_time,
        table.c.end_time > target.start_time,
    )
    if target.id is not None:
        stmt = stmt.where(table.c.id != target.id)
    clash = connection.execute(stmt).first()
    if clash:
        raise ModelValidationError("start_time", f"Time slot overlaps with '{clash.name}'")
