from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from school_admin.extensions import db

base_bp = Blueprint("base", __name__)

@base_bp.route("/")
def home():
    return jsonify({"success": True, "message": "Welcome to the School Administration API!"})

@base_bp.route("/api/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
        return jsonify({"success": True, "status": "ok", "database": "reachable"})
    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify({"success": False, "status": "error", "message": str(e)}), 503
