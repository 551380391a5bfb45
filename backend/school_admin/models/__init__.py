from .base import (
    TimestampMixin, RoleEnum, UserStatusEnum, GenderEnum, StatusEnum, SchoolYearStatusEnum,
    LevelEnum, StaffLevelEnum, StaffRoleEnum, TimeSlotTypeEnum, DayOfWeekEnum,
    AttendanceStatusEnum, AttendanceDetailStatusEnum, EnrollmentStatusEnum,
    IncidentTypeEnum, IncidentStatusEnum,
)
from .User import User, TokenBlocklist
from .AuditLog import AuditLog
from .Staff import Staff
from .SchoolYear import SchoolYear
from .Section import Section
from .Course import Course
from .TimeSlot import TimeSlot
from .CourseSchedule import CourseSchedule, find_schedule_conflict
from .Enrollment import Enrollment
from .Attendance import Attendance, AttendanceDetail
from .Incident import Incident
