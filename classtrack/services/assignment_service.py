from __future__ import annotations

import logging

from classtrack.extensions import db
from classtrack.models import Assignment, Classroom, Enrollment, Problem, Submission, User
from classtrack.platforms import Platform
from classtrack.platforms.url_parser import detect_platform

logger = logging.getLogger(__name__)


class AssignmentService:
    """Creates assignments and keeps one pending Submission per student per problem."""

    @staticmethod
    def create_assignment(
        classroom_id, title, problems, assign_date=None, due_date=None, description=None,
    ) -> Assignment:
        """Create an assignment and fan out pending submissions.

        ``problems`` is a list of dicts with ``url`` and optionally ``title``,
        ``platform`` and ``difficulty``. Raises LookupError for an unknown
        class and ValueError for a problem without a URL.
        """
        classroom = db.session.get(Classroom, classroom_id)
        if classroom is None:
            raise LookupError(f"Class {classroom_id} not found")

        assignment = Assignment(
            classroom_id=classroom.id,
            title=title,
            description=description,
            assign_date=assign_date,
            due_date=due_date,
        )
        db.session.add(assignment)

        for position, item in enumerate(problems or []):
            url = (item.get('url') or '').strip()
            if not url:
                db.session.rollback()
                raise ValueError(f"Problem #{position + 1} has no URL")
            platform = item.get('platform')
            platform = Platform.parse(platform) if platform else detect_platform(url)
            assignment.problems.append(Problem(
                url=url,
                title=item.get('title') or url,
                platform=platform.value,
                difficulty=item.get('difficulty'),
                position=position,
            ))
        db.session.flush()

        students = [e.student_id for e in classroom.enrollments]
        created = 0
        for problem in assignment.problems:
            for student_id in students:
                db.session.add(Submission(user_id=student_id, problem_id=problem.id))
                created += 1
        db.session.commit()

        logger.info(
            f"Created assignment {assignment.title!r} with {len(assignment.problems)} problems, "
            f"{created} pending submissions"
        )
        return assignment

    @staticmethod
    def enroll_student(classroom_id, student_id) -> int:
        """Enroll a student and backfill pending submissions. Returns rows created."""
        classroom = db.session.get(Classroom, classroom_id)
        student = db.session.get(User, student_id)
        if classroom is None or student is None:
            raise LookupError(f"Class {classroom_id} or user {student_id} not found")

        existing = Enrollment.query.filter_by(
            classroom_id=classroom_id, student_id=student_id
        ).first()
        if existing is None:
            db.session.add(Enrollment(classroom_id=classroom_id, student_id=student_id))

        have = {
            pid for (pid,) in db.session.query(Submission.problem_id)
            .filter(Submission.user_id == student_id)
        }
        created = 0
        problems = (
            Problem.query.join(Assignment)
            .filter(Assignment.classroom_id == classroom_id)
            .all()
        )
        for problem in problems:
            if problem.id in have:
                continue
            db.session.add(Submission(user_id=student_id, problem_id=problem.id))
            created += 1
        db.session.commit()
        return created
