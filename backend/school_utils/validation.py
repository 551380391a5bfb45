from datetime import datetime
from flask import request
from pydantic import ValidationError
from .errors import ApiError, format_validation_errors


def parse_body(schema):
    """Validate the JSON body against a pydantic schema and return the model."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ApiError.bad_request("Request body must be a JSON object")
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ApiError.bad_request("Validation error", format_validation_errors(e))


def parse_date_arg(name, required=False):
    value = request.args.get(name)
    if not value:
        if required:
            raise ApiError.bad_request(f"{name} is required")
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ApiError.bad_request(f"Invalid {name} format. Use YYYY-MM-DD")


def parse_bool_arg(name):
    value = request.args.get(name)
    if value is None or value == "":
        return None
    return value.lower() in ("true", "1", "yes")


def parse_enum_arg(name, enum_class):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return enum_class(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_class)
        raise ApiError.bad_request(f"Invalid {name}. Allowed values: {allowed}")


def get_or_404(model, obj_id, label=None):
    from school_admin.extensions import db

    instance = db.session.get(model, obj_id)
    if instance is None:
        raise ApiError.not_found(f"{label or model.__name__} not found")
    return instance
