from datetime import datetime, timezone
from school_admin.extensions import db
import enum


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class RoleEnum(enum.Enum):
    admin = "admin"
    teacher = "teacher"
    student = "student"

class UserStatusEnum(enum.Enum):
    active = "active"
    inactive = "inactive"

class GenderEnum(enum.Enum):
    M = "M"
    F = "F"
    O = "O"

class StatusEnum(enum.Enum):
    active = "active"
    inactive = "inactive"

class SchoolYearStatusEnum(enum.Enum):
    active = "active"
    inactive = "inactive"
    finished = "finished"

class LevelEnum(enum.Enum):
    initial = "initial"
    primary = "primary"
    secondary = "secondary"

class StaffLevelEnum(enum.Enum):
    initial = "initial"
    primary = "primary"
    secondary = "secondary"
    general = "general"

class StaffRoleEnum(enum.Enum):
    teacher = "teacher"
    psychologist = "psychologist"
    maintenance = "maintenance"
    cist = "cist"
    management = "management"
    assistant = "assistant"

class TimeSlotTypeEnum(enum.Enum):
    class_ = "class"
    break_ = "break"
    lunch = "lunch"

class DayOfWeekEnum(enum.Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"

    @classmethod
    def from_date(cls, value):
        """Weekday of a date, or None on weekends."""
        days = list(cls)
        index = value.weekday()
        return days[index] if index < len(days) else None

class AttendanceStatusEnum(enum.Enum):
    pending = "pending"
    taken = "taken"
    finalized = "finalized"

class AttendanceDetailStatusEnum(enum.Enum):
    present = "present"
    late = "late"
    absent = "absent"
    excused = "excused"

class EnrollmentStatusEnum(enum.Enum):
    active = "active"
    inactive = "inactive"
    completed = "completed"

class IncidentTypeEnum(enum.Enum):
    behavioral = "behavioral"
    academic = "academic"
    health = "health"
    bullying = "bullying"
    property_damage = "property_damage"
    other = "other"

class IncidentStatusEnum(enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"


def enum_column(enum_class, **kwargs):
    """Enum column persisted by value so stored strings match the API."""
    return db.Column(
        db.Enum(enum_class, values_callable=lambda e: [m.value for m in e], validate_strings=True),
        **kwargs
    )
