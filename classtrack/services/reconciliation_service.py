from __future__ import annotations

import logging
import time
from collections import Counter
from datetime import datetime

from flask import current_app
from sqlalchemy import func
from sqlalchemy.orm import joinedload

from classtrack.extensions import db
from classtrack.models import Assignment, Problem, Submission, SweepRun
from classtrack.platforms import (
    CHECKED_PLATFORMS, CredentialExpired, Platform, build_clients,
)
from classtrack.platforms.url_parser import extract_identifier
from classtrack.services.classifier import classify
from classtrack.services.credential_store import SQLCredentialStore

logger = logging.getLogger(__name__)


class ReconciliationService:
    """Marks pending submissions complete by checking the judge platforms.

    Per user, a LINKED cookie is tried first for each problem (exact
    submission time); otherwise the user's bulk solved set is consulted and
    the current time is recorded. One instance serves one sweep at a time.
    """

    def __init__(
        self,
        credential_store=None,
        clients: dict | None = None,
        batch_size: int | None = None,
        batch_delay: float | None = None,
        clock=None,
    ):
        config = current_app.config
        self.credential_store = credential_store or SQLCredentialStore()
        self.clients = clients if clients is not None else build_clients(
            rate_limit=config.get('SCRAPER_RATE_LIMIT', 0.5),
            timeout=config.get('PLATFORM_REQUEST_TIMEOUT', 30),
        )
        self.batch_size = batch_size or config.get('SWEEP_BATCH_SIZE', 100)
        self.batch_delay = (
            batch_delay if batch_delay is not None
            else config.get('SWEEP_BATCH_DELAY', 0.1)
        )
        self.clock = clock or datetime.utcnow
        self._stats = self._empty_stats()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def reconcile_all_pending(self) -> int:
        """System-wide sweep over every pending submission, batch by batch.

        Only GFG problems are checked here. LeetCode and HackerRank resync
        is left to the per-assignment sweep and the scheduled linked-user
        sync, which keeps this sweep's memory and request volume bounded.
        """
        return self._run('all_pending', self._sweep_all_pending, platform=Platform.GFG.value)

    def reconcile_assignment(self, assignment_id: int, user_id: int | None = None) -> int:
        """Check every platform present in one assignment, optionally for one student."""
        return self._run(
            'assignment',
            lambda: self._sweep_assignment(assignment_id, user_id),
            assignment_id=assignment_id, user_id=user_id,
        )

    def force_check_assignment(self, platform, assignment_id: int, user_id: int | None = None) -> int:
        platform = Platform.parse(platform)
        return self._run(
            'force_check',
            lambda: self._force_check(platform, assignment_id, user_id),
            platform=platform.value, assignment_id=assignment_id, user_id=user_id,
        )

    def sync_linked_users(self, platform) -> int:
        """Pending submissions on *platform* for users holding a LINKED cookie."""
        platform = Platform.parse(platform)
        return self._run(
            'linked_sync',
            lambda: self._sweep_linked(platform),
            platform=platform.value,
        )

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    def _sweep_all_pending(self) -> int:
        logger.info("Starting system-wide pending submission sweep (GFG only)")
        total_updated = 0
        for batch in self._iter_pending_batches():
            gfg_batch = [
                s for s in batch if Platform.parse(s.problem.platform) == Platform.GFG
            ]
            total_updated += self._process_submissions(Platform.GFG, gfg_batch)
        logger.info(
            f"System-wide sweep finished: checked {self._stats['pending_seen']} pending, "
            f"updated {total_updated}"
        )
        return total_updated

    def _sweep_assignment(self, assignment_id, user_id) -> int:
        assignment = db.session.get(Assignment, assignment_id)
        if assignment is None:
            logger.warning(f"Assignment {assignment_id} not found")
            return 0

        breakdown = Counter(Platform.parse(p.platform) for p in assignment.problems)
        logger.info(
            f"Assignment {assignment.title!r}: {len(assignment.problems)} problems "
            f"({', '.join(f'{n} {p.value}' for p, n in breakdown.items()) or 'none'})"
        )

        total_updated = 0
        for platform in CHECKED_PLATFORMS:
            if not breakdown[platform]:
                logger.debug(f"No {platform.value} problems in assignment {assignment_id}")
                continue
            total_updated += self._force_check(platform, assignment_id, user_id)

        logger.info(f"Assignment {assignment.title!r} check completed, updated {total_updated}")
        return total_updated

    def _force_check(self, platform: Platform, assignment_id, user_id) -> int:
        query = (
            Submission.query
            .join(Problem, Submission.problem_id == Problem.id)
            .options(joinedload(Submission.problem).joinedload(Problem.assignment))
            .filter(
                Problem.assignment_id == assignment_id,
                func.lower(Problem.platform) == platform.value,
                Submission.completed.is_(False),
            )
        )
        if user_id is not None:
            query = query.filter(Submission.user_id == user_id)
        pending = query.order_by(Submission.user_id, Problem.position, Submission.id).all()
        self._stats['pending_seen'] += len(pending)
        logger.info(
            f"Found {len(pending)} pending {platform.value} submissions "
            f"for assignment {assignment_id}"
        )
        return self._process_submissions(platform, pending)

    def _sweep_linked(self, platform: Platform) -> int:
        total_updated = 0
        for batch in self._iter_pending_batches(platform):
            total_updated += self._process_submissions(platform, batch, linked_only=True)
        logger.info(f"Linked-user {platform.value} sync finished, updated {total_updated}")
        return total_updated

    def _iter_pending_batches(self, platform: Platform | None = None):
        """Yield pending submissions in id-ordered pages until one comes back empty.

        Keyset pagination keeps later pages stable while earlier rows are
        being marked complete.
        """
        last_id = 0
        while True:
            batch = self._fetch_pending_batch(last_id, platform)
            if not batch:
                break
            self._stats['batches'] += 1
            self._stats['pending_seen'] += len(batch)
            logger.info(
                f"Processing batch {self._stats['batches']}: "
                f"{len(batch)} submissions after id {last_id}"
            )
            last_id = batch[-1].id
            yield batch
            if self.batch_delay:
                time.sleep(self.batch_delay)

    def _fetch_pending_batch(self, after_id: int, platform: Platform | None = None) -> list:
        query = (
            Submission.query
            .options(joinedload(Submission.problem).joinedload(Problem.assignment))
            .filter(Submission.completed.is_(False), Submission.id > after_id)
        )
        if platform is not None:
            query = query.join(Problem, Submission.problem_id == Problem.id).filter(
                func.lower(Problem.platform) == platform.value
            )
        return query.order_by(Submission.id).limit(self.batch_size).all()

    # ------------------------------------------------------------------
    # Per-user reconciliation
    # ------------------------------------------------------------------

    def _process_submissions(self, platform: Platform, submissions, linked_only=False) -> int:
        if not submissions:
            return 0

        by_user = {}
        for sub in submissions:
            by_user.setdefault(sub.user_id, []).append(sub)

        updated = 0
        for user_id, user_subs in by_user.items():
            try:
                updated += self._reconcile_user(platform, user_id, user_subs, linked_only)
            except Exception as e:
                logger.error(
                    f"Error reconciling {platform.value} submissions for user {user_id}: {e}"
                )
                db.session.rollback()
                self._stats['errors'] += 1
        return updated

    def _reconcile_user(self, platform: Platform, user_id, submissions, linked_only=False) -> int:
        credential = self.credential_store.get(user_id, platform)
        if not credential.username:
            logger.info(
                f"User {user_id} has no {platform.value} username - "
                f"skipping {len(submissions)} problems"
            )
            self._stats['skipped_no_username'] += len(submissions)
            return 0
        if linked_only and not credential.has_cookie:
            return 0

        client = self.clients[platform]
        use_cookie = credential.has_cookie
        solved = None
        updated = 0
        logger.info(
            f"Checking {len(submissions)} {platform.value} submissions for user {user_id} "
            f"via {'cookie' if use_cookie else 'bulk'} lookup"
        )

        for sub in submissions:
            identifier = extract_identifier(platform, sub.problem.url)
            submission_time = None
            completed = False
            self._stats['checked'] += 1

            if use_cookie:
                try:
                    result = client.fetch_single_submission(identifier, credential.cookie)
                    if result and result.is_correct:
                        completed = True
                        submission_time = result.submission_time
                except CredentialExpired:
                    logger.error(
                        f"{platform.value} cookie expired for user {user_id}, "
                        f"falling back to bulk lookup"
                    )
                    use_cookie = False
                    self.credential_store.mark_expired(user_id, platform)
                    self._stats['cookies_expired'] += 1
                except Exception as e:
                    logger.error(
                        f"{platform.value} lookup of {identifier!r} failed for user {user_id}: {e}"
                    )
                    self._stats['errors'] += 1

            if not completed:
                if solved is None:
                    solved = self._fetch_solved(client, platform, user_id, credential.username)
                completed = identifier in solved

            if not completed:
                logger.debug(f"{platform.value} problem {identifier!r} not solved yet by user {user_id}")
                continue

            if self._mark_completed(sub, submission_time or self.clock()):
                updated += 1

        logger.info(
            f"Updated {updated}/{len(submissions)} {platform.value} submissions for user {user_id}"
        )
        return updated

    def _fetch_solved(self, client, platform: Platform, user_id, username) -> set:
        """The user's bulk solved set; a failed fetch counts as nothing solved."""
        try:
            solved = client.fetch_all_solved(username)
        except Exception as e:
            logger.error(f"{platform.value} solved list failed for user {user_id}: {e}")
            self._stats['errors'] += 1
            return set()
        return solved if isinstance(solved, set) else set(solved or ())

    def _mark_completed(self, submission, submission_time: datetime) -> bool:
        """Transition one row to completed; a row already completed is left alone."""
        assignment = submission.problem.assignment
        status = classify(
            submission_time,
            assignment.assign_date if assignment else None,
            assignment.due_date if assignment else None,
        )
        count = (
            Submission.query
            .filter_by(id=submission.id, completed=False)
            .update(
                {
                    Submission.completed: True,
                    Submission.submission_time: submission_time,
                    Submission.status: status.value,
                },
                synchronize_session=False,
            )
        )
        db.session.commit()
        if count:
            self._stats['updated'] += 1
            self._stats['by_status'][status.value] += 1
            logger.info(
                f"Marked submission {submission.id} completed [{status.value}] "
                f"for user {submission.user_id}"
            )
        return count > 0

    # ------------------------------------------------------------------
    # Run bookkeeping
    # ------------------------------------------------------------------

    @staticmethod
    def _empty_stats():
        return {
            'batches': 0,
            'pending_seen': 0,
            'checked': 0,
            'updated': 0,
            'cookies_expired': 0,
            'skipped_no_username': 0,
            'errors': 0,
            'by_status': Counter(),
        }

    @property
    def last_stats(self) -> dict:
        stats = dict(self._stats)
        stats['by_status'] = dict(stats['by_status'])
        return stats

    def _run(self, run_type, work, **scope) -> int:
        """Execute *work* to completion and record it as a SweepRun.

        Failures are logged and recorded; the caller always gets the number
        of submissions that were committed as completed.
        """
        self._stats = self._empty_stats()
        run = SweepRun(
            run_type=run_type, status='running', started_at=datetime.utcnow(), **scope
        )
        db.session.add(run)
        db.session.commit()
        run_id = run.id

        error = None
        try:
            count = work()
        except Exception as e:
            logger.exception(f"{run_type} sweep {run_id} failed: {e}")
            db.session.rollback()
            error = str(e)
            count = self._stats['updated']

        run = db.session.get(SweepRun, run_id)
        run.status = 'failed' if error else 'completed'
        run.error_message = error
        run.updated_count = count
        run.stats = self.last_stats
        run.finished_at = datetime.utcnow()
        db.session.commit()
        return count
