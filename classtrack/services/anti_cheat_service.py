from __future__ import annotations

import json
import logging
from collections import namedtuple
from datetime import datetime
from enum import Enum

from classtrack.extensions import db
from classtrack.models import TestPenalty, TestSession
from classtrack.services.notifier import get_notifier

logger = logging.getLogger(__name__)

HIGH_RISK_VIOLATIONS = 5


class ViolationType(str, Enum):
    TAB_SWITCH = 'TAB_SWITCH'
    FULLSCREEN_EXIT = 'FULLSCREEN_EXIT'
    COPY_PASTE = 'COPY_PASTE'
    DEV_TOOLS = 'DEV_TOOLS'
    FOCUS_LOSS = 'FOCUS_LOSS'
    CONTEXT_MENU = 'CONTEXT_MENU'


class PenaltyLevel(str, Enum):
    WARNING = 'WARNING'
    MINOR = 'MINOR'
    MAJOR = 'MAJOR'
    TERMINATION = 'TERMINATION'


class SessionNotFound(LookupError):
    pass


ViolationConfig = namedtuple(
    'ViolationConfig',
    'warning_threshold minor_threshold major_threshold termination_threshold '
    'score_reduction time_penalty',
)

# score_reduction is a percentage, time_penalty is in seconds
VIOLATION_CONFIGS = {
    ViolationType.TAB_SWITCH: ViolationConfig(1, 3, 5, 8, 5, 30),
    ViolationType.FULLSCREEN_EXIT: ViolationConfig(1, 2, 3, 5, 10, 60),
    ViolationType.COPY_PASTE: ViolationConfig(1, 2, 3, 4, 15, 120),
    ViolationType.DEV_TOOLS: ViolationConfig(0, 1, 2, 3, 20, 180),
    ViolationType.FOCUS_LOSS: ViolationConfig(3, 6, 10, 15, 2, 10),
    ViolationType.CONTEXT_MENU: ViolationConfig(1, 3, 5, 7, 5, 30),
}

_VIOLATION_ACTIONS = {
    ViolationType.TAB_SWITCH: 'switching tabs',
    ViolationType.FULLSCREEN_EXIT: 'exiting fullscreen mode',
    ViolationType.COPY_PASTE: 'using copy/paste operations',
    ViolationType.DEV_TOOLS: 'attempting to access developer tools',
    ViolationType.FOCUS_LOSS: 'losing window focus',
    ViolationType.CONTEXT_MENU: 'using context menu',
}


def penalty_level_for(config: ViolationConfig, count: int) -> PenaltyLevel:
    """Map the running count of one violation type onto a penalty level."""
    if count >= config.termination_threshold:
        return PenaltyLevel.TERMINATION
    if count >= config.major_threshold:
        return PenaltyLevel.MAJOR
    if count >= config.minor_threshold:
        return PenaltyLevel.MINOR
    return PenaltyLevel.WARNING


def penalty_message(violation_type: ViolationType, level: PenaltyLevel, count: int) -> str:
    action = _VIOLATION_ACTIONS[violation_type]
    config = VIOLATION_CONFIGS[violation_type]
    if level == PenaltyLevel.WARNING:
        remaining = max(config.minor_threshold - count, 0)
        return (
            f"Warning: Please avoid {action}. This is violation #{count}. "
            f"You have {remaining} more chances before penalties apply."
        )
    if level == PenaltyLevel.MINOR:
        return (
            f"Minor Penalty: {action} detected (violation #{count}). Score reduced by "
            f"{config.score_reduction}% and {config.time_penalty} seconds added to your time."
        )
    if level == PenaltyLevel.MAJOR:
        return (
            f"Major Penalty: Repeated {action} (violation #{count}). Significant score "
            f"reduction of {config.score_reduction}% and {config.time_penalty} seconds "
            f"penalty applied."
        )
    return (
        f"Test Terminated: Too many violations for {action} ({count} violations). "
        f"Your test has been automatically submitted."
    )


def _empty_type_counts():
    return {t.value: 0 for t in ViolationType}


class AntiCheatService:
    """Escalating penalties for proctoring violations during a test session.

    The service never ends a session itself; a TERMINATION penalty is
    reported through ``should_terminate`` and the caller acts on it.
    """

    def __init__(self, notifier=None):
        self.notifier = notifier or get_notifier()

    def record_violation(self, session_id: int, violation_type, details=None) -> dict:
        violation_type = ViolationType(violation_type)
        session = db.session.get(TestSession, session_id)
        if session is None:
            raise SessionNotFound(f"Test session {session_id} not found")

        config = VIOLATION_CONFIGS[violation_type]
        previous = sum(1 for p in session.penalties if p.violation_type == violation_type.value)
        count = previous + 1
        level = penalty_level_for(config, count)
        should_terminate = level == PenaltyLevel.TERMINATION
        is_warning = level == PenaltyLevel.WARNING

        now = datetime.utcnow()
        penalty = TestPenalty(
            session_id=session.id,
            violation_type=violation_type.value,
            penalty_level=level.value,
            description=f"{violation_type.value} violation - {level.value}",
            score_reduction=0 if is_warning else config.score_reduction,
            time_penalty=0 if is_warning else config.time_penalty,
            details_json=json.dumps(details) if details is not None else None,
            timestamp=now,
        )
        db.session.add(penalty)
        db.session.flush()
        self._update_session_totals(session)
        db.session.commit()

        message = penalty_message(violation_type, level, count)
        self._notify(session, violation_type, level, count, should_terminate, message, now)

        logger.info(
            f"Violation recorded: {violation_type.value} for session {session_id}, "
            f"penalty: {level.value}"
        )
        return {
            'penalty': level.value,
            'should_terminate': should_terminate,
            'message': message,
            'total_violations': count,
        }

    @staticmethod
    def _update_session_totals(session: TestSession) -> None:
        """Recompute the session aggregates from its penalty rows."""
        penalties = TestPenalty.query.filter_by(session_id=session.id).all()
        session.total_penalties = len(penalties)
        session.score_reduction = sum(p.score_reduction or 0 for p in penalties)
        session.time_penalty = sum(p.time_penalty or 0 for p in penalties)

    def _notify(self, session, violation_type, level, count, should_terminate, message, when):
        test = session.test
        teacher_id = test.classroom.teacher_id if test and test.classroom else None
        try:
            if teacher_id is not None:
                self.notifier.notify_teacher(teacher_id, {
                    'type': 'VIOLATION_DETECTED',
                    'session_id': session.id,
                    'student_name': session.user.username if session.user else None,
                    'student_email': session.user.email if session.user else None,
                    'test_title': test.title,
                    'violation_type': violation_type.value,
                    'penalty_level': level.value,
                    'violation_count': count,
                    'should_terminate': should_terminate,
                    'timestamp': when.isoformat(),
                })
        except Exception as e:
            logger.error(f"Error notifying teacher {teacher_id}: {e}")
        try:
            self.notifier.notify_student(session.id, {
                'type': 'PENALTY_APPLIED',
                'penalty': {
                    'level': level.value,
                    'message': message,
                    'violation_type': violation_type.value,
                    'count': count,
                    'should_terminate': should_terminate,
                },
            })
        except Exception as e:
            logger.error(f"Error notifying student in session {session.id}: {e}")

    def get_session_violations(self, session_id: int) -> dict:
        if db.session.get(TestSession, session_id) is None:
            raise SessionNotFound(f"Test session {session_id} not found")
        penalties = TestPenalty.query.filter_by(session_id=session_id).all()

        by_type = _empty_type_counts()
        for p in penalties:
            if p.violation_type in by_type:
                by_type[p.violation_type] += 1

        return {
            'total_violations': len(penalties),
            'violations_by_type': by_type,
            'total_score_reduction': sum(p.score_reduction or 0 for p in penalties),
            'total_time_penalty': sum(p.time_penalty or 0 for p in penalties),
            'should_terminate': any(
                p.penalty_level == PenaltyLevel.TERMINATION.value for p in penalties
            ),
        }

    def get_test_violation_stats(self, test_id: int) -> dict:
        sessions = TestSession.query.filter_by(test_id=test_id).order_by(TestSession.id).all()

        by_type = _empty_type_counts()
        sessions_with_violations = 0
        high_risk = []
        for session in sessions:
            penalties = session.penalties
            if not penalties:
                continue
            sessions_with_violations += 1
            for p in penalties:
                if p.violation_type in by_type:
                    by_type[p.violation_type] += 1
            if len(penalties) >= HIGH_RISK_VIOLATIONS:
                high_risk.append({
                    'session_id': session.id,
                    'user_id': session.user_id,
                    'user_name': session.user.username if session.user else None,
                    'violation_count': len(penalties),
                })

        return {
            'total_sessions': len(sessions),
            'sessions_with_violations': sessions_with_violations,
            'violations_by_type': by_type,
            'high_risk_sessions': high_risk,
        }

    def should_terminate_session(self, session_id: int) -> bool:
        return TestPenalty.query.filter_by(
            session_id=session_id,
            penalty_level=PenaltyLevel.TERMINATION.value,
        ).first() is not None
