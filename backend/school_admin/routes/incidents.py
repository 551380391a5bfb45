from datetime import datetime, time
from flask import Blueprint, request, jsonify
from sqlalchemy import func, or_
from school_admin.models import User, Incident, IncidentTypeEnum, IncidentStatusEnum
from school_admin.models.base import utcnow
from school_admin.schemas import IncidentSchema, IncidentUpdateSchema, IncidentStatusSchema
from school_admin.extensions import db
from school_utils.audit import log_event
from school_utils.decorators import role_required, load_current_user
from school_utils.errors import ApiError
from school_utils.pagination import get_page_args, apply_pagination_and_search, paginated_response
from school_utils.validation import parse_body, parse_bool_arg, parse_date_arg, parse_enum_arg, get_or_404

incidents_bp = Blueprint('incidents', __name__)


def check_people(values):
    for field in ("victim_id", "aggressor_id"):
        if values.get(field) is not None and not db.session.get(User, values[field]):
            raise ApiError.bad_request(f"{field.replace('_id', '').title()} does not exist")


def apply_status(incident, status, user):
    """Closing stamps who and when; any other status clears the stamp."""
    incident.status = status
    if status == IncidentStatusEnum.closed:
        incident.closed_at = utcnow()
        incident.closed_by = user.id
    else:
        incident.closed_at = None
        incident.closed_by = None


@incidents_bp.route('', methods=['GET'])
@role_required('admin', 'teacher')
def list_incidents():
    page, limit = get_page_args()
    query = Incident.query

    incident_type = parse_enum_arg('incident_type', IncidentTypeEnum)
    if incident_type:
        query = query.filter(Incident.incident_type == incident_type)
    status = parse_enum_arg('status', IncidentStatusEnum)
    if status:
        query = query.filter(Incident.status == status)
    is_violent = parse_bool_arg('is_violent')
    if is_violent is not None:
        query = query.filter(Incident.is_violent == is_violent)

    start_date = parse_date_arg('start_date')
    if start_date:
        query = query.filter(Incident.incident_date >= datetime.combine(start_date, time.min))
    end_date = parse_date_arg('end_date')
    if end_date:
        query = query.filter(Incident.incident_date <= datetime.combine(end_date, time.max))

    paginated = apply_pagination_and_search(
        query.order_by(Incident.incident_date.desc()),
        Incident,
        request.args.get('search', type=str),
        search_columns=["description", "location", "reporter_name"],
        page=page,
        per_page=limit
    )
    return jsonify(paginated_response(paginated, lambda i: i.to_dict())), 200


@incidents_bp.route('/stats', methods=['GET'])
@role_required('admin', 'teacher')
def incident_stats():
    total = Incident.query.count()
    violent = Incident.query.filter(Incident.is_violent.is_(True)).count()

    by_type = {t.value: 0 for t in IncidentTypeEnum}
    for incident_type, count in db.session.query(Incident.incident_type, func.count(Incident.id)) \
            .group_by(Incident.incident_type).all():
        by_type[incident_type.value] = count

    by_status = {s.value: 0 for s in IncidentStatusEnum}
    for status, count in db.session.query(Incident.status, func.count(Incident.id)) \
            .group_by(Incident.status).all():
        by_status[status.value] = count

    # Last six calendar months, oldest first.
    now = utcnow()
    month_starts = []
    year, month = now.year, now.month
    for _ in range(6):
        month_starts.append(datetime(year, month, 1))
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    month_starts.reverse()

    by_month = {start.strftime("%Y-%m"): 0 for start in month_starts}
    for (incident_date,) in db.session.query(Incident.incident_date) \
            .filter(Incident.incident_date >= month_starts[0]).all():
        key = incident_date.strftime("%Y-%m")
        if key in by_month:
            by_month[key] += 1

    return jsonify({
        "success": True,
        "data": {
            "total": total,
            "violent": violent,
            "by_type": by_type,
            "by_status": by_status,
            "by_month": [{"month": k, "count": v} for k, v in by_month.items()],
        }
    }), 200


@incidents_bp.route('/user/<int:user_id>', methods=['GET'])
@role_required('admin', 'teacher')
def incidents_for_user(user_id):
    get_or_404(User, user_id, "User")
    incidents = Incident.query.filter(
        or_(Incident.victim_id == user_id, Incident.aggressor_id == user_id)
    ).order_by(Incident.incident_date.desc()).all()

    data = []
    for incident in incidents:
        item = incident.to_dict()
        item["user_role"] = "victim" if incident.victim_id == user_id else "aggressor"
        data.append(item)
    return jsonify({"success": True, "count": len(data), "data": data}), 200


@incidents_bp.route('/<int:incident_id>', methods=['GET'])
@role_required('admin', 'teacher')
def get_incident(incident_id):
    incident = get_or_404(Incident, incident_id, "Incident")
    return jsonify({"success": True, "data": incident.to_dict()}), 200


@incidents_bp.route('', methods=['POST'])
@role_required('admin', 'teacher')
def create_incident():
    user = load_current_user()
    values = parse_body(IncidentSchema).model_dump()
    check_people(values)

    status = values.pop("status")
    incident = Incident(**values, registered_by=user.id)
    apply_status(incident, status, user)
    db.session.add(incident)
    db.session.commit()

    log_event("INCIDENT_CREATED", user_id=user.id, ip=request.remote_addr,
              description=f"Incident {incident.id} ({incident.incident_type.value})")
    return jsonify({"success": True, "data": incident.to_dict()}), 201


@incidents_bp.route('/<int:incident_id>', methods=['PUT'])
@role_required('admin', 'teacher')
def update_incident(incident_id):
    incident = get_or_404(Incident, incident_id, "Incident")
    data = parse_body(IncidentUpdateSchema).model_dump(exclude_unset=True)
    check_people(data)

    for key, value in data.items():
        setattr(incident, key, value)
    db.session.commit()
    return jsonify({"success": True, "data": incident.to_dict()}), 200


@incidents_bp.route('/<int:incident_id>/status', methods=['PATCH'])
@role_required('admin', 'teacher')
def update_incident_status(incident_id):
    user = load_current_user()
    incident = get_or_404(Incident, incident_id, "Incident")
    data = parse_body(IncidentStatusSchema)

    apply_status(incident, data.status, user)
    if data.actions_taken is not None:
        incident.actions_taken = data.actions_taken
    db.session.commit()

    log_event("INCIDENT_STATUS_CHANGED", user_id=user.id, ip=request.remote_addr,
              description=f"Incident {incident.id} -> {incident.status.value}")
    return jsonify({"success": True, "data": incident.to_dict()}), 200


@incidents_bp.route('/<int:incident_id>', methods=['DELETE'])
@role_required('admin')
def delete_incident(incident_id):
    incident = get_or_404(Incident, incident_id, "Incident")
    db.session.delete(incident)
    db.session.commit()
    return jsonify({"success": True, "data": {}, "message": "Incident deleted"}), 200
