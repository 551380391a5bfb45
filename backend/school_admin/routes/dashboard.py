from flask import Blueprint, jsonify
from school_admin.models import (
    User, Staff, Section, Incident, RoleEnum, UserStatusEnum, StatusEnum, IncidentStatusEnum,
)
from school_admin.services.attendance import present_rate
from school_utils.decorators import login_required
from school_utils.validation import parse_date_arg

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('/stats')
@login_required
def stats():
    start_date = parse_date_arg('start_date')
    end_date = parse_date_arg('end_date')

    total_students = User.query.filter(
        User.role == RoleEnum.student, User.status == UserStatusEnum.active
    ).count()
    total_staff = Staff.query.filter(Staff.status == StatusEnum.active).count()
    active_sections = Section.query.filter(Section.status == StatusEnum.active).count()
    open_incidents = Incident.query.filter(
        Incident.status.in_([IncidentStatusEnum.pending, IncidentStatusEnum.in_progress])
    ).count()

    return jsonify({
        "success": True,
        "data": {
            "total_students": total_students,
            "total_staff": total_staff,
            "active_sections": active_sections,
            "open_incidents": open_incidents,
            "attendance_rate": present_rate(start_date, end_date),
        }
    }), 200
