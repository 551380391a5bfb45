import os
from datetime import date
from flask import current_app
from school_admin.extensions import db
from school_admin.models import (
    User, Staff, SchoolYear, Section, Course, TimeSlot, CourseSchedule, Enrollment,
    RoleEnum, GenderEnum, LevelEnum, StaffLevelEnum, StaffRoleEnum, TimeSlotTypeEnum, DayOfWeekEnum,
)
from school_admin.services.enrollment import reserve_seat


def seed_data():
    admin_password = os.getenv("ADMIN_PASSWORD", "admin123")

    admin = User(first_name="Admin", last_name="System", dni="00000001",
                 email="admin@school.edu", role=RoleEnum.admin)
    admin.set_password(admin_password)

    teacher_user = User(first_name="Maria", last_name="Quispe", dni="40000001",
                        email="maria.quispe@school.edu", role=RoleEnum.teacher, gender=GenderEnum.F)
    teacher_user.set_password("teacher123")

    students = []
    for i, (first, last) in enumerate([("Luis", "Huaman"), ("Ana", "Torres"), ("Jorge", "Mamani")], start=1):
        student = User(first_name=first, last_name=last, dni=f"7000000{i}",
                       email=f"{first.lower()}.{last.lower()}@school.edu", role=RoleEnum.student)
        student.set_password(student.dni)
        students.append(student)

    db.session.add_all([admin, teacher_user, *students])
    db.session.flush()

    teacher = Staff(dni=teacher_user.dni, first_name=teacher_user.first_name, last_name=teacher_user.last_name,
                    email=teacher_user.email, role=StaffRoleEnum.teacher, level=StaffLevelEnum.primary,
                    phone="987654321", address="Av. Principal 123", user_id=teacher_user.id)
    today = date.today()
    school_year = SchoolYear(name=str(today.year), start_date=date(today.year, 1, 1),
                             end_date=date(today.year, 12, 31))
    db.session.add_all([teacher, school_year])
    db.session.flush()

    section = Section(name="1st Grade A", level=LevelEnum.primary, grade=1, section="A",
                      max_students=30, school_year_id=school_year.id, teacher_id=teacher.id)
    courses = [
        Course(name="Mathematics", code="MAT-1", description="Numbers and operations",
               level=LevelEnum.primary, grade=1, credits=4),
        Course(name="Communication", code="COM-1", description="Reading and writing",
               level=LevelEnum.primary, grade=1, credits=4),
    ]
    slots = [
        TimeSlot(name="First period", start_time="08:00", end_time="08:45", type=TimeSlotTypeEnum.class_),
        TimeSlot(name="Second period", start_time="08:45", end_time="09:30", type=TimeSlotTypeEnum.class_),
        TimeSlot(name="Recess", start_time="09:30", end_time="10:00", type=TimeSlotTypeEnum.break_),
    ]
    db.session.add_all([section, *courses, *slots])
    db.session.flush()

    for day in DayOfWeekEnum:
        for course, slot in zip(courses, slots):
            db.session.add(CourseSchedule(course_id=course.id, section_id=section.id, teacher_id=teacher.id,
                                          time_slot_id=slot.id, school_year_id=school_year.id,
                                          day_of_week=day, classroom="101"))

    for student in students:
        reserve_seat(section)
        db.session.add(Enrollment(student_id=student.id, section_id=section.id,
                                  school_year_id=school_year.id, level=section.level.value))

    db.session.commit()
    current_app.logger.info("Seeded demo data: admin DNI %s", admin.dni)


def seed_if_empty():
    if User.query.first() is None:
        seed_data()
