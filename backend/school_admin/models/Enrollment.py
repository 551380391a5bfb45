from school_admin.extensions import db
from school_utils.serialization import to_dict as model_to_dict, summary
from .base import TimestampMixin, EnrollmentStatusEnum, enum_column, utcnow


class Enrollment(db.Model, TimestampMixin):
    __tablename__ = 'enrollments'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=False, index=True)
    school_year_id = db.Column(db.Integer, db.ForeignKey('school_years.id'), nullable=False)
    level = db.Column(db.String(20), nullable=False)
    enrollment_date = db.Column(db.DateTime, default=utcnow)
    status = enum_column(EnrollmentStatusEnum, nullable=False, default=EnrollmentStatusEnum.active)

    student = db.relationship('User', back_populates='enrollments')
    section = db.relationship('Section', back_populates='enrollments')
    school_year = db.relationship('SchoolYear', back_populates='enrollments')

    __table_args__ = (
        db.UniqueConstraint('student_id', 'section_id', 'school_year_id', name='uq_enrollment_student_section_year'),
    )

    def to_dict(self):
        data = model_to_dict(self)
        data["student"] = summary(self.student, "first_name", "last_name", "dni", "email")
        data["section"] = summary(self.section, "name", "grade", "section", "level")
        data["school_year"] = summary(self.school_year, "name")
        return data
