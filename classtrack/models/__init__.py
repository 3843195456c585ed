from .user import User
from .classroom import Classroom, Enrollment
from .assignment import Assignment, Problem
from .submission import Submission
from .sweep_run import SweepRun
from .test_session import Test, TestSession, TestPenalty

__all__ = [
    'User',
    'Classroom',
    'Enrollment',
    'Assignment',
    'Problem',
    'Submission',
    'SweepRun',
    'Test',
    'TestSession',
    'TestPenalty',
]
