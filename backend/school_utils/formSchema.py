from sqlalchemy import Boolean, Integer, String, Text, Enum, Date, DateTime
import enum


def _reference_options():
    from school_admin.models import (
        SchoolYear, Section, Course, Staff, TimeSlot, User, StaffRoleEnum, StatusEnum,
    )

    return {
        "school_year_id": lambda: [
            {"label": y.name, "value": y.id}
            for y in SchoolYear.query.order_by(SchoolYear.start_date.desc()).all()
        ],
        "section_id": lambda: [
            {"label": s.name, "value": s.id, "school_year_id": s.school_year_id}
            for s in Section.query.filter_by(status=StatusEnum.active).order_by(Section.grade, Section.section).all()
        ],
        "course_id": lambda: [
            {"label": f"{c.code} - {c.name}", "value": c.id}
            for c in Course.query.filter_by(status=StatusEnum.active).order_by(Course.name).all()
        ],
        "teacher_id": lambda: [
            {"label": t.full_name, "value": t.id}
            for t in Staff.query.filter_by(role=StaffRoleEnum.teacher, status=StatusEnum.active)
            .order_by(Staff.last_name).all()
        ],
        "time_slot_id": lambda: [
            {"label": f"{t.name} ({t.start_time}-{t.end_time})", "value": t.id}
            for t in TimeSlot.query.filter_by(status=StatusEnum.active).order_by(TimeSlot.start_time).all()
        ],
        "user_id": lambda: [
            {"label": f"{u.full_name} ({u.dni})", "value": u.id}
            for u in User.query.order_by(User.last_name).all()
        ],
    }


def generate_schema_from_model(model, model_name):
    exclude_fields = {"id", "created_at", "updated_at", "current_students", "password_hash"}
    references = _reference_options()
    schema = []

    for column in model.__table__.columns:
        name = column.name
        if name in exclude_fields:
            continue

        field_schema = {
            "name": name,
            "label": name.replace("_", " ").title(),
            "required": not column.nullable and column.default is None,
        }

        if name in references:
            field_schema["type"] = "select"
            field_schema["options"] = references[name]()

        elif isinstance(column.type, Enum):
            enum_class = column.type.enum_class
            field_schema["type"] = "select"
            if enum_class and issubclass(enum_class, enum.Enum):
                field_schema["options"] = [
                    {"label": e.value.replace("_", " ").title(), "value": e.value}
                    for e in enum_class
                ]
            else:
                field_schema["options"] = [{"label": v, "value": v} for v in column.type.enums]

        elif isinstance(column.type, Boolean):
            field_schema["type"] = "checkbox"

        elif isinstance(column.type, Integer):
            field_schema["type"] = "number"
            if name == "grade":
                field_schema["min"] = 1
                field_schema["max"] = 6
            elif name in ("max_students", "credits"):
                field_schema["min"] = 1

        elif isinstance(column.type, (Date, DateTime)):
            field_schema["type"] = "date"

        elif isinstance(column.type, Text):
            field_schema["type"] = "textarea"

        elif isinstance(column.type, String):
            if "email" in name:
                field_schema["type"] = "email"
            elif name in ("start_time", "end_time"):
                field_schema["type"] = "time"
            else:
                field_schema["type"] = "text"

        else:
            field_schema["type"] = "text"

        schema.append(field_schema)

    return {
        "model": model_name,
        "fields": schema,
    }
