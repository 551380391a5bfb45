from .auth import auth_bp
from .users import users_bp
from .staff import staff_bp
from .school_years import school_years_bp
from .sections import sections_bp
from .courses import courses_bp
from .time_slots import time_slots_bp
from .course_schedules import course_schedules_bp
from .enrollments import enrollments_bp
from .attendance import attendance_bp
from .incidents import incidents_bp
from .dashboard import dashboard_bp
from .base_route import base_bp

def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(staff_bp, url_prefix='/api/staff')
    app.register_blueprint(school_years_bp, url_prefix='/api/school-years')
    app.register_blueprint(sections_bp, url_prefix='/api/sections')
    app.register_blueprint(courses_bp, url_prefix='/api/courses')
    app.register_blueprint(time_slots_bp, url_prefix='/api/time-slots')
    app.register_blueprint(course_schedules_bp, url_prefix='/api/course-schedules')
    app.register_blueprint(enrollments_bp, url_prefix='/api/enrollments')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(incidents_bp, url_prefix='/api/incidents')
    app.register_blueprint(dashboard_bp, url_prefix='/api/dashboard')
