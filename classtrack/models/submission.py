from datetime import datetime

from classtrack.extensions import db


class Submission(db.Model):
    """Completion state of one assigned problem for one student.

    ``submission_time`` is set exactly when ``completed`` is true; a row
    only ever moves from incomplete to complete.
    """

    __tablename__ = 'submission'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'problem_id', name='uq_submission_user_problem'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('user.id'), nullable=False, index=True
    )
    problem_id = db.Column(
        db.Integer, db.ForeignKey('problem.id'), nullable=False, index=True
    )
    completed = db.Column(db.Boolean, nullable=False, default=False, index=True)
    submission_time = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(20), nullable=True)  # BEFORE_ASSIGNMENT | ON_TIME | LATE
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    user = db.relationship('User', back_populates='submissions')
    problem = db.relationship('Problem', back_populates='submissions')

    def __repr__(self) -> str:
        return (
            f'<Submission user={self.user_id} problem={self.problem_id} '
            f'completed={self.completed} status={self.status!r}>'
        )
