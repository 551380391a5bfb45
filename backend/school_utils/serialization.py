from enum import Enum
from datetime import datetime, date
from sqlalchemy.inspection import inspect

HIDDEN_FIELDS = {"password_hash"}


def serialize_value(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def to_dict(model_instance, only=None):
    """Column values of a row, JSON ready. Credentials are never included."""
    if model_instance is None:
        return None

    output = {}
    mapper = inspect(model_instance.__class__)

    for column in mapper.columns:
        key = column.key
        if only is not None and key not in only:
            continue
        if key in HIDDEN_FIELDS:
            continue
        output[key] = serialize_value(getattr(model_instance, key))

    return output


def summary(model_instance, *fields):
    """Small embedded view of a referenced row, like a populated reference."""
    if model_instance is None:
        return None
    return to_dict(model_instance, only={"id", *fields})
