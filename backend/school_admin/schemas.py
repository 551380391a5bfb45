"""Request body schemas. Routes validate through `school_utils.validation.parse_body`."""
import datetime as dt
from datetime import date, datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from school_admin.models import (
    RoleEnum, UserStatusEnum, GenderEnum, StatusEnum, SchoolYearStatusEnum,
    LevelEnum, StaffLevelEnum, StaffRoleEnum, TimeSlotTypeEnum, DayOfWeekEnum,
    AttendanceStatusEnum, AttendanceDetailStatusEnum, EnrollmentStatusEnum,
    IncidentTypeEnum, IncidentStatusEnum,
)
from school_admin.models.TimeSlot import normalize_time

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"
TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


def as_naive_utc(value):
    """Aware datetimes are stored as naive UTC, like every timestamp column."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# Auth and users

class RegisterSchema(Schema):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    dni: str = Field(min_length=1, max_length=20)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: Optional[str] = Field(default=None, min_length=6)
    gender: Optional[GenderEnum] = None
    birthdate: Optional[date] = None
    role: RoleEnum = RoleEnum.student
    status: UserStatusEnum = UserStatusEnum.active

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


class UserUpdateSchema(Schema):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    dni: Optional[str] = Field(default=None, min_length=1, max_length=20)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    gender: Optional[GenderEnum] = None
    birthdate: Optional[date] = None
    role: Optional[RoleEnum] = None
    status: Optional[UserStatusEnum] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower() if v else v


class LoginSchema(Schema):
    dni: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UpdatePasswordSchema(Schema):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class ChangePasswordSchema(Schema):
    new_password: str = Field(min_length=6)


# Staff

class StaffSchema(Schema):
    dni: str = Field(min_length=1, max_length=20)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_PATTERN)
    role: StaffRoleEnum
    level: StaffLevelEnum
    status: StatusEnum = StatusEnum.active
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    user_id: Optional[int] = None


class StaffUpdateSchema(Schema):
    dni: Optional[str] = Field(default=None, min_length=1, max_length=20)
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    role: Optional[StaffRoleEnum] = None
    level: Optional[StaffLevelEnum] = None
    status: Optional[StatusEnum] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    user_id: Optional[int] = None


# Academic structure

class SchoolYearSchema(Schema):
    name: str = Field(min_length=1)
    start_date: date
    end_date: date
    status: SchoolYearStatusEnum = SchoolYearStatusEnum.active


class SchoolYearUpdateSchema(Schema):
    name: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[SchoolYearStatusEnum] = None


class SectionSchema(Schema):
    name: str = Field(min_length=1)
    level: LevelEnum
    grade: int = Field(ge=1, le=6)
    section: str = Field(min_length=1, max_length=5)
    max_students: int = Field(ge=1)
    school_year_id: int
    teacher_id: Optional[int] = None
    status: StatusEnum = StatusEnum.active


class SectionUpdateSchema(Schema):
    name: Optional[str] = Field(default=None, min_length=1)
    level: Optional[LevelEnum] = None
    grade: Optional[int] = Field(default=None, ge=1, le=6)
    section: Optional[str] = Field(default=None, min_length=1, max_length=5)
    max_students: Optional[int] = Field(default=None, ge=1)
    school_year_id: Optional[int] = None
    teacher_id: Optional[int] = None
    status: Optional[StatusEnum] = None


class CourseSchema(Schema):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1, max_length=30)
    description: str = Field(min_length=1)
    level: LevelEnum
    grade: int = Field(ge=1, le=6)
    credits: int = Field(ge=1)
    status: StatusEnum = StatusEnum.active


class CourseUpdateSchema(Schema):
    name: Optional[str] = Field(default=None, min_length=1)
    code: Optional[str] = Field(default=None, min_length=1, max_length=30)
    description: Optional[str] = None
    level: Optional[LevelEnum] = None
    grade: Optional[int] = Field(default=None, ge=1, le=6)
    credits: Optional[int] = Field(default=None, ge=1)
    status: Optional[StatusEnum] = None


class TimeSlotSchema(Schema):
    name: str = Field(min_length=1)
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    type: TimeSlotTypeEnum = TimeSlotTypeEnum.class_
    status: StatusEnum = StatusEnum.active

    @model_validator(mode="after")
    def check_range(self):
        if normalize_time(self.end_time) <= normalize_time(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class TimeSlotUpdateSchema(Schema):
    name: Optional[str] = Field(default=None, min_length=1)
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    type: Optional[TimeSlotTypeEnum] = None
    status: Optional[StatusEnum] = None


class CourseScheduleSchema(Schema):
    course_id: int
    section_id: int
    teacher_id: int
    time_slot_id: int
    school_year_id: int
    day_of_week: DayOfWeekEnum
    classroom: str = Field(min_length=1)
    status: StatusEnum = StatusEnum.active


class CourseScheduleUpdateSchema(Schema):
    course_id: Optional[int] = None
    section_id: Optional[int] = None
    teacher_id: Optional[int] = None
    time_slot_id: Optional[int] = None
    school_year_id: Optional[int] = None
    day_of_week: Optional[DayOfWeekEnum] = None
    classroom: Optional[str] = Field(default=None, min_length=1)
    status: Optional[StatusEnum] = None


# Enrollment and attendance

class EnrollmentSchema(Schema):
    student_id: int
    section_id: int
    school_year_id: int
    level: Optional[str] = None
    status: EnrollmentStatusEnum = EnrollmentStatusEnum.active


class AttendanceDetailSchema(Schema):
    student_id: int
    status: AttendanceDetailStatusEnum
    notes: Optional[str] = None


class AttendanceSchema(Schema):
    date: dt.date
    section_id: int
    course_schedule_id: int
    teacher_id: Optional[int] = None
    status: AttendanceStatusEnum = AttendanceStatusEnum.pending
    notes: Optional[str] = None
    details: List[AttendanceDetailSchema] = Field(default_factory=list)


class AttendanceUpdateSchema(Schema):
    status: Optional[AttendanceStatusEnum] = None
    notes: Optional[str] = None
    details: Optional[List[AttendanceDetailSchema]] = None


class BulkAttendanceSchema(Schema):
    date: dt.date
    section_id: int
    course_schedule_id: Optional[int] = None
    records: List[AttendanceDetailSchema] = Field(min_length=1)


# Incidents

class IncidentSchema(Schema):
    incident_type: IncidentTypeEnum
    incident_date: datetime
    reporter_name: str = Field(min_length=1)
    victim_id: Optional[int] = None
    aggressor_id: Optional[int] = None
    is_violent: bool = False
    description: str = Field(min_length=1)
    location: str = Field(min_length=1)
    actions_taken: Optional[str] = None
    status: IncidentStatusEnum = IncidentStatusEnum.pending

    @field_validator("incident_date")
    @classmethod
    def normalize_date(cls, v):
        return as_naive_utc(v)


class IncidentUpdateSchema(Schema):
    incident_type: Optional[IncidentTypeEnum] = None
    incident_date: Optional[datetime] = None
    reporter_name: Optional[str] = Field(default=None, min_length=1)
    victim_id: Optional[int] = None
    aggressor_id: Optional[int] = None
    is_violent: Optional[bool] = None
    description: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    actions_taken: Optional[str] = None

    @field_validator("incident_date")
    @classmethod
    def normalize_date(cls, v):
        return as_naive_utc(v)


class IncidentStatusSchema(Schema):
    status: IncidentStatusEnum
    actions_taken: Optional[str] = None
