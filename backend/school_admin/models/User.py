from werkzeug.security import generate_password_hash, check_password_hash
from sqlalchemy.orm import validates
from school_admin.extensions import db
from school_utils.serialization import to_dict as model_to_dict
from .base import TimestampMixin, RoleEnum, UserStatusEnum, GenderEnum, enum_column, utcnow


class User(db.Model, TimestampMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    dni = db.Column(db.String(20), unique=True, nullable=False, index=True)
    gender = enum_column(GenderEnum, nullable=True)
    birthdate = db.Column(db.Date, nullable=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(512), nullable=True)
    role = enum_column(RoleEnum, nullable=False, default=RoleEnum.student, index=True)
    status = enum_column(UserStatusEnum, nullable=False, default=UserStatusEnum.active)

    audit_logs = db.relationship('AuditLog', backref='user', lazy=True)
    staff_profile = db.relationship('Staff', back_populates='user', uselist=False)
    enrollments = db.relationship('Enrollment', back_populates='student', lazy=True)

    @validates('email')
    def normalize_email(self, key, value):
        return value.strip().lower() if value else value

    @validates('first_name', 'last_name', 'dni')
    def strip_text(self, key, value):
        return value.strip() if isinstance(value, str) else value

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        data = model_to_dict(self)
        data["full_name"] = self.full_name
        data["has_password"] = bool(self.password_hash)
        return data


class TokenBlocklist(db.Model):
    __tablename__ = 'token_blocklist'

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), nullable=False, index=True)
    token_type = db.Column(db.String(10), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    user = db.relationship("User", backref="revoked_tokens")
