from school_admin.extensions import db
from school_utils.serialization import to_dict as model_to_dict, summary
from .base import TimestampMixin, IncidentTypeEnum, IncidentStatusEnum, enum_column


class Incident(db.Model, TimestampMixin):
    __tablename__ = 'incidents'

    id = db.Column(db.Integer, primary_key=True)
    incident_type = enum_column(IncidentTypeEnum, nullable=False, index=True)
    incident_date = db.Column(db.DateTime, nullable=False, index=True)
    reporter_name = db.Column(db.String(150), nullable=False)
    victim_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    aggressor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    is_violent = db.Column(db.Boolean, default=False, nullable=False)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(255), nullable=False)
    actions_taken = db.Column(db.Text, nullable=True)
    status = enum_column(IncidentStatusEnum, nullable=False, default=IncidentStatusEnum.pending, index=True)
    registered_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    closed_at = db.Column(db.DateTime, nullable=True)
    closed_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    victim = db.relationship('User', foreign_keys=[victim_id])
    aggressor = db.relationship('User', foreign_keys=[aggressor_id])
    registered_by_user = db.relationship('User', foreign_keys=[registered_by])
    closed_by_user = db.relationship('User', foreign_keys=[closed_by])

    def to_dict(self):
        data = model_to_dict(self)
        data["victim"] = summary(self.victim, "first_name", "last_name", "dni")
        data["aggressor"] = summary(self.aggressor, "first_name", "last_name", "dni")
        data["registered_by_user"] = summary(self.registered_by_user, "first_name", "last_name")
        data["closed_by_user"] = summary(self.closed_by_user, "first_name", "last_name")
        return data
