import json
import logging
from datetime import datetime, timedelta

from classtrack.extensions import db

logger = logging.getLogger(__name__)


class SweepRun(db.Model):
    """Execution history of reconciliation sweeps."""

    __tablename__ = 'sweep_run'

    id = db.Column(db.Integer, primary_key=True)
    run_type = db.Column(db.String(30), nullable=False)  # all_pending | assignment | force_check | linked_sync
    platform = db.Column(db.String(20), nullable=True)
    assignment_id = db.Column(db.Integer, nullable=True, index=True)
    user_id = db.Column(db.Integer, nullable=True)
    status = db.Column(
        db.String(20), nullable=False, default='pending'
    )  # pending | running | completed | failed
    updated_count = db.Column(db.Integer, nullable=False, default=0)
    stats_json = db.Column(db.Text, nullable=True)
    error_message = db.Column(db.Text, nullable=True)
    started_at = db.Column(db.DateTime, nullable=True)
    finished_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def duration_seconds(self):
        if self.started_at and self.finished_at:
            return int((self.finished_at - self.started_at).total_seconds())
        if self.started_at:
            return int((datetime.utcnow() - self.started_at).total_seconds())
        return None

    @property
    def stats(self):
        """Parse stats_json into dict."""
        if self.stats_json:
            try:
                return json.loads(self.stats_json)
            except (json.JSONDecodeError, TypeError):
                return {}
        return {}

    @stats.setter
    def stats(self, value):
        self.stats_json = json.dumps(value) if value else None

    def to_dict(self):
        return {
            'id': self.id,
            'run_type': self.run_type,
            'platform': self.platform,
            'assignment_id': self.assignment_id,
            'user_id': self.user_id,
            'status': self.status,
            'updated_count': self.updated_count,
            'stats': self.stats,
            'error_message': self.error_message,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
            'duration_seconds': self.duration_seconds,
        }

    @classmethod
    def cleanup_stale_running(cls, max_age_hours=6):
        """Mark sweeps stuck in 'running' for longer than *max_age_hours* as failed.

        A sweep has no cancellation path, so a row left running this long
        means the process died mid-sweep. Returns the number of rows changed.
        """
        cutoff = datetime.utcnow() - timedelta(hours=max_age_hours)
        stale_runs = cls.query.filter(
            cls.status == 'running',
            cls.started_at < cutoff,
        ).all()

        for run in stale_runs:
            run.status = 'failed'
            run.error_message = 'Sweep did not finish (process may have been terminated)'
            run.finished_at = datetime.utcnow()
            logger.warning(
                f'Cleaned up stale SweepRun {run.id} '
                f'(started_at={run.started_at})'
            )

        if stale_runs:
            db.session.commit()

        return len(stale_runs)

    def __repr__(self):
        return f'<SweepRun {self.id} type={self.run_type} status={self.status}>'
