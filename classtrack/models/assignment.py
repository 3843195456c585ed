from datetime import datetime

from classtrack.extensions import db


class Assignment(db.Model):
    """A set of judge problems given to a class, with optional date bounds."""

    __tablename__ = 'assignment'

    id = db.Column(db.Integer, primary_key=True)
    classroom_id = db.Column(
        db.Integer, db.ForeignKey('classroom.id'), nullable=False, index=True
    )
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    assign_date = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    classroom = db.relationship('Classroom', back_populates='assignments')
    problems = db.relationship(
        'Problem', back_populates='assignment',
        cascade='all, delete-orphan', order_by='Problem.position',
    )

    def __repr__(self) -> str:
        return f'<Assignment {self.title!r} (id={self.id})>'


class Problem(db.Model):
    """A judge problem referenced by URL, owned by exactly one assignment."""

    __tablename__ = 'problem'

    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(
        db.Integer, db.ForeignKey('assignment.id'), nullable=False, index=True
    )
    url = db.Column(db.String(500), nullable=False)
    title = db.Column(db.String(200), nullable=True)
    platform = db.Column(db.String(20), nullable=False, default='other', index=True)
    difficulty = db.Column(db.String(20), nullable=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    assignment = db.relationship('Assignment', back_populates='problems')
    submissions = db.relationship(
        'Submission', back_populates='problem',
        cascade='all, delete-orphan', lazy='dynamic',
    )

    def __repr__(self) -> str:
        return f'<Problem {self.platform}:{self.title!r}>'
