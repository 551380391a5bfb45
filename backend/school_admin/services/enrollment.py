from flask import current_app
from sqlalchemy import update
from school_admin.extensions import db
from school_admin.models import (
    User, Section, SchoolYear, Enrollment, RoleEnum, GenderEnum, EnrollmentStatusEnum,
)
from school_utils.errors import ApiError
from school_utils.uploads import cell, parse_date_cell

# Column order of the enrollment template sheet, data starts on row 12.
TEMPLATE_COLUMNS = ["first_name", "last_name", "dni", "gender", "birthdate"]
TEMPLATE_FIRST_ROW = 12
STUDENT_EMAIL_DOMAIN = "school.edu"


def reserve_seat(section):
    """Atomically take one seat; fails when the section is already full."""
    result = db.session.execute(
        update(Section)
        .where(Section.id == section.id, Section.current_students < Section.max_students)
        .values(current_students=Section.current_students + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ApiError.bad_request(f"Section '{section.name}' has reached its maximum capacity")
    db.session.expire(section, ["current_students"])


def release_seat(section_id):
    db.session.execute(
        update(Section)
        .where(Section.id == section_id, Section.current_students > 0)
        .values(current_students=Section.current_students - 1)
        .execution_options(synchronize_session=False)
    )


def _enroll(student, section, school_year, level=None, status=EnrollmentStatusEnum.active):
    existing = Enrollment.query.filter_by(
        student_id=student.id, section_id=section.id, school_year_id=school_year.id
    ).first()
    if existing:
        raise ApiError.bad_request("Student is already enrolled in this section for this school year")

    reserve_seat(section)
    enrollment = Enrollment(
        student_id=student.id,
        section_id=section.id,
        school_year_id=school_year.id,
        level=level or section.level.value,
        status=status,
    )
    db.session.add(enrollment)
    return enrollment


def enroll_student(student_id, section_id, school_year_id, level=None, status=EnrollmentStatusEnum.active):
    student = db.session.get(User, student_id)
    if not student or student.role != RoleEnum.student:
        raise ApiError.bad_request("Student not found or not a valid student")

    section = db.session.get(Section, section_id)
    if not section:
        raise ApiError.not_found("Section not found")

    school_year = db.session.get(SchoolYear, school_year_id)
    if not school_year:
        raise ApiError.not_found("School year not found")

    enrollment = _enroll(student, section, school_year, level, status)
    db.session.commit()
    return enrollment


def delete_enrollment(enrollment):
    section_id = enrollment.section_id
    db.session.delete(enrollment)
    release_seat(section_id)
    db.session.commit()


def _student_email(first_name, last_name, dni):
    last = last_name.split(" ")[0].lower()
    return f"{first_name[:2].lower()}{last}{dni}@{STUDENT_EMAIL_DOMAIN}"


def _find_or_create_student(row):
    dni = row["dni"]
    student = User.query.filter_by(dni=dni).first()
    if student:
        if student.role != RoleEnum.student:
            raise ApiError.bad_request(f"User with DNI {dni} already exists but is not a student")
        return student, False

    email = _student_email(row["first_name"], row["last_name"], dni)
    if User.query.filter_by(email=email).first():
        raise ApiError.bad_request(f"Email {email} is already in use")

    gender = row.get("gender", "").upper()[:1]
    student = User(
        first_name=row["first_name"],
        last_name=row["last_name"],
        dni=dni,
        email=email,
        gender=GenderEnum(gender) if gender in GenderEnum.__members__ else None,
        birthdate=parse_date_cell(row.get("birthdate")),
        role=RoleEnum.student,
    )
    # The DNI doubles as the temporary password.
    student.set_password(dni)
    db.session.add(student)
    db.session.flush()
    return student, True


def bulk_enroll(df, section, school_year, first_row=2):
    """
    Enroll every row of `df` into `section`. Unknown DNIs become new student users.
    Rows are independent: a failing row is reported and the rest still go through.
    `first_row` is the sheet row number of the first data row, used in the report.
    """
    results = []
    enrolled = skipped = failed = 0

    for idx, raw in df.iterrows():
        row_number = int(idx) + first_row
        row = {key: cell(raw, key) for key in TEMPLATE_COLUMNS}
        dni = row["dni"]

        if not dni or not row["first_name"] or not row["last_name"]:
            failed += 1
            results.append({"row": row_number, "dni": dni or None, "success": False,
                            "message": "Incomplete student data"})
            continue

        try:
            student, created = _find_or_create_student(row)
            if Enrollment.query.filter_by(
                student_id=student.id, section_id=section.id, school_year_id=school_year.id
            ).first():
                skipped += 1
                results.append({"row": row_number, "dni": dni, "success": True, "skipped": True,
                                "message": "Student already enrolled"})
                continue
            enrollment = _enroll(student, section, school_year)
            db.session.flush()
        except ApiError as e:
            failed += 1
            results.append({"row": row_number, "dni": dni, "success": False, "message": e.message})
            continue

        enrolled += 1
        results.append({
            "row": row_number,
            "dni": dni,
            "success": True,
            "student_id": student.id,
            "student_created": created,
            "enrollment_id": enrollment.id,
        })

    db.session.commit()
    current_app.logger.info(
        "Bulk enrollment into section %s: %s enrolled, %s skipped, %s failed",
        section.id, enrolled, skipped, failed
    )
    return {
        "processed": len(results),
        "enrolled": enrolled,
        "skipped": skipped,
        "failed": failed,
        "results": results,
    }
