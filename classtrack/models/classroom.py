from datetime import datetime

from classtrack.extensions import db


class Classroom(db.Model):
    """A class taught by one teacher with enrolled students."""

    __tablename__ = 'classroom'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    teacher_id = db.Column(
        db.Integer, db.ForeignKey('user.id'), nullable=False, index=True
    )
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    teacher = db.relationship('User')
    enrollments = db.relationship(
        'Enrollment', back_populates='classroom',
        cascade='all, delete-orphan', lazy='dynamic',
    )
    assignments = db.relationship(
        'Assignment', back_populates='classroom',
        cascade='all, delete-orphan', lazy='dynamic',
    )
    tests = db.relationship(
        'Test', back_populates='classroom',
        cascade='all, delete-orphan', lazy='dynamic',
    )

    @property
    def students(self):
        return [e.student for e in self.enrollments.order_by(Enrollment.id)]

    def __repr__(self) -> str:
        return f'<Classroom {self.name!r} (id={self.id})>'


class Enrollment(db.Model):
    __tablename__ = 'enrollment'
    __table_args__ = (
        db.UniqueConstraint(
            'classroom_id', 'student_id', name='uq_enrollment_classroom_student',
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    classroom_id = db.Column(
        db.Integer, db.ForeignKey('classroom.id'), nullable=False, index=True
    )
    student_id = db.Column(
        db.Integer, db.ForeignKey('user.id'), nullable=False, index=True
    )
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    classroom = db.relationship('Classroom', back_populates='enrollments')
    student = db.relationship('User', back_populates='enrollments')

    def __repr__(self) -> str:
        return f'<Enrollment classroom={self.classroom_id} student={self.student_id}>'
