from datetime import date

import pytest
from flask_jwt_extended import create_access_token

from school_admin import create_app
from school_admin.extensions import db
from school_admin.models import (
    User, Staff, SchoolYear, Section, Course, TimeSlot, CourseSchedule,
    RoleEnum, UserStatusEnum, LevelEnum, StaffLevelEnum, StaffRoleEnum, DayOfWeekEnum,
)

# 2024-03-04 is a Monday.
MONDAY = date(2024, 3, 4)
SATURDAY = date(2024, 3, 9)


@pytest.fixture
def app(tmp_path):
    application = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "RATELIMIT_ENABLED": False,
        "AUTO_SEED": False,
        "JWT_SECRET_KEY": "test-secret-key-with-enough-length-for-hs256",
        "AUDIT_LOG_FILE": str(tmp_path / "audit.log"),
    })
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make_user(role=RoleEnum.student, password="secret123", status=UserStatusEnum.active, **fields):
        counter["n"] += 1
        n = counter["n"]
        with app.app_context():
            user = User(
                first_name=fields.pop("first_name", f"Name{n}"),
                last_name=fields.pop("last_name", f"Surname{n}"),
                dni=fields.pop("dni", f"{role.value[:2].upper()}{n:06d}"),
                email=fields.pop("email", f"{role.value}{n}@school.edu"),
                role=role,
                status=status,
                **fields
            )
            if password:
                user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make_user


def token_for(app, user_id):
    with app.app_context():
        user = db.session.get(User, user_id)
        return create_access_token(identity=str(user.id), additional_claims={"role": user.role.value})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(app, make_user):
    return bearer(token_for(app, make_user(RoleEnum.admin)))


@pytest.fixture
def teacher_headers(app, make_user):
    return bearer(token_for(app, make_user(RoleEnum.teacher)))


@pytest.fixture
def student_headers(app, make_user):
    return bearer(token_for(app, make_user(RoleEnum.student)))


@pytest.fixture
def school(app):
    """A school year with one primary section, two courses, two teachers and three time slots."""
    with app.app_context():
        year = SchoolYear(name="2024", start_date=date(2024, 3, 1), end_date=date(2024, 12, 20))
        teachers = [
            Staff(dni=f"T{i}", first_name=f"Teacher{i}", last_name="Staff", email=f"t{i}@school.edu",
                  role=StaffRoleEnum.teacher, level=StaffLevelEnum.primary, phone="999", address="Street 1")
            for i in (1, 2)
        ]
        db.session.add_all([year, *teachers])
        db.session.flush()

        sections = [
            Section(name=f"1{letter}", level=LevelEnum.primary, grade=1, section=letter,
                    max_students=2, school_year_id=year.id)
            for letter in ("A", "B")
        ]
        courses = [
            Course(name="Math", code="MAT1", description="Math", level=LevelEnum.primary, grade=1, credits=3),
            Course(name="Art", code="ART1", description="Art", level=LevelEnum.primary, grade=1, credits=2),
        ]
        slots = [
            TimeSlot(name="P1", start_time="08:00", end_time="08:45"),
            TimeSlot(name="P2", start_time="08:45", end_time="09:30"),
            TimeSlot(name="P3", start_time="10:00", end_time="10:45"),
        ]
        db.session.add_all([*sections, *courses, *slots])
        db.session.commit()

        return {
            "school_year_id": year.id,
            "teacher_ids": [t.id for t in teachers],
            "section_ids": [s.id for s in sections],
            "course_ids": [c.id for c in courses],
            "slot_ids": [s.id for s in slots],
        }


@pytest.fixture
def make_schedule(app, school):
    def _make_schedule(section=0, teacher=0, course=0, slot=0, day=DayOfWeekEnum.monday):
        with app.app_context():
            schedule = CourseSchedule(
                course_id=school["course_ids"][course],
                section_id=school["section_ids"][section],
                teacher_id=school["teacher_ids"][teacher],
                time_slot_id=school["slot_ids"][slot],
                school_year_id=school["school_year_id"],
                day_of_week=day,
                classroom="101",
            )
            db.session.add(schedule)
            db.session.commit()
            return schedule.id

    return _make_schedule
