from flask import Flask, jsonify
from flask_cors import CORS
from .config import Config
from school_admin.extensions import db, jwt, limiter, migrate
from school_utils.errors import register_error_handlers
from school_utils.logging import configure_logging


def _cors_origins(value):
    origins = [o.strip() for o in (value or "").split(",") if o.strip()]
    if not origins or "*" in origins:
        return "*"
    return origins


def _register_jwt_handlers():
    from school_admin.models import TokenBlocklist

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        jti = jwt_payload["jti"]
        token = db.session.query(TokenBlocklist).filter_by(jti=jti).first()
        return token is not None

    def unauthorized(message):
        return jsonify({"success": False, "message": message}), 401

    @jwt.unauthorized_loader
    def missing_token(reason):
        return unauthorized("Not authorized, token missing")

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return unauthorized("Not authorized, invalid token")

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return unauthorized("Token has expired")

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return unauthorized("Token has been revoked")


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    configure_logging(app)

    db.init_app(app)
    jwt.init_app(app)
    origins = _cors_origins(app.config.get("CORS_ORIGINS"))
    CORS(app, origins=origins, supports_credentials=origins != "*")
    limiter.init_app(app)
    migrate.init_app(app, db)

    _register_jwt_handlers()
    register_error_handlers(app)

    from school_admin.routes import register_routes
    register_routes(app)

    with app.app_context():
        db.create_all()
        if app.config.get("AUTO_SEED"):
            from school_admin.seed import seed_if_empty
            seed_if_empty()

    return app
