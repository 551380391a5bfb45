from flask import Blueprint, request, jsonify
from school_admin.models import TimeSlot, CourseSchedule, TimeSlotTypeEnum, StatusEnum
from school_admin.schemas import TimeSlotSchema, TimeSlotUpdateSchema
from school_admin.extensions import db
from school_utils.decorators import role_required, login_required
from school_utils.errors import ApiError
from school_utils.formSchema import generate_schema_from_model
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.validation import parse_body, parse_enum_arg, get_or_404

time_slots_bp = Blueprint('time_slots', __name__)


def check_name_available(name, exclude_id=None):
    query = TimeSlot.query.filter(TimeSlot.name == name)
    if exclude_id is not None:
        query = query.filter(TimeSlot.id != exclude_id)
    if query.first():
        raise ApiError.bad_request("A time slot with this name already exists")


@time_slots_bp.route('', methods=['GET'])
@login_required
def list_time_slots():
    page, limit = get_page_args()
    query = TimeSlot.query

    slot_type = parse_enum_arg('type', TimeSlotTypeEnum)
    if slot_type:
        query = query.filter(TimeSlot.type == slot_type)
    status = parse_enum_arg('status', StatusEnum)
    if status:
        query = query.filter(TimeSlot.status == status)

    paginated = apply_pagination_and_search(
        query.order_by(TimeSlot.start_time),
        TimeSlot,
        request.args.get('search', type=str),
        search_columns=["name"],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda t: t.to_dict())), 200


@time_slots_bp.route('/form-schema', methods=['GET'])
@login_required
def form_schema():
    return jsonify({"success": True, "data": generate_schema_from_model(TimeSlot, "TimeSlot")}), 200


@time_slots_bp.route('/<int:slot_id>', methods=['GET'])
@login_required
def get_time_slot(slot_id):
    slot = get_or_404(TimeSlot, slot_id, "Time slot")
    return jsonify({"success": True, "data": slot.to_dict()}), 200


@time_slots_bp.route('', methods=['POST'])
@role_required('admin')
def create_time_slot():
    data = parse_body(TimeSlotSchema)
    check_name_available(data.name)

    # Range and overlap rules are enforced by the model on flush.
    slot = TimeSlot(**data.model_dump())
    db.session.add(slot)
    db.session.commit()
    return jsonify({"success": True, "data": slot.to_dict()}), 201


@time_slots_bp.route('/<int:slot_id>', methods=['PUT'])
@role_required('admin')
def update_time_slot(slot_id):
    slot = get_or_404(TimeSlot, slot_id, "Time slot")
    data = parse_body(TimeSlotUpdateSchema).model_dump(exclude_unset=True)

    if data.get("name"):
        check_name_available(data["name"], exclude_id=slot.id)

    for key, value in data.items():
        setattr(slot, key, value)
    db.session.commit()
    return jsonify({"success": True, "data": slot.to_dict()}), 200


@time_slots_bp.route('/<int:slot_id>', methods=['DELETE'])
@role_required('admin')
def delete_time_slot(slot_id):
    slot = get_or_404(TimeSlot, slot_id, "Time slot")

    if CourseSchedule.query.filter_by(time_slot_id=slot.id).first():
        raise ApiError.bad_request("Cannot delete time slot: it is used in a course schedule")

    db.session.delete(slot)
    db.session.commit()
    return jsonify({"success": True, "data": {}, "message": "Time slot deleted"}), 200
