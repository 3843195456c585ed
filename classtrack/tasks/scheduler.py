import logging
from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)
scheduler = BackgroundScheduler()


def run_pending_sweep(app):
    """Scheduled trigger for the system-wide pending submission sweep."""
    with app.app_context():
        from classtrack.services.reconciliation_service import ReconciliationService

        count = ReconciliationService().reconcile_all_pending()
        logger.info(f"Scheduled pending sweep completed: updated={count}")
        return count


def run_linked_sync(app, platform):
    """Scheduled trigger for one platform's linked-user sync."""
    with app.app_context():
        from classtrack.services.reconciliation_service import ReconciliationService

        count = ReconciliationService().sync_linked_users(platform)
        logger.info(f"Scheduled {platform} linked sync completed: updated={count}")
        return count


def init_scheduler(app):
    """Register sweep jobs and start the scheduler.

    Sweeps are only ever started from here or from the API; the
    reconciliation service never schedules itself.
    """
    if not app.config.get('SCHEDULER_ENABLED', False):
        logger.info("Scheduler disabled by config")
        return

    linked_hours = app.config.get('LINKED_SYNC_INTERVAL_HOURS', 4)
    if linked_hours:
        scheduler.add_job(
            run_linked_sync, 'interval', hours=linked_hours,
            args=[app, 'leetcode'], id='leetcode_linked_sync',
            replace_existing=True, max_instances=1, coalesce=True,
        )

    sweep_hours = app.config.get('PENDING_SWEEP_INTERVAL_HOURS', 0)
    if sweep_hours:
        scheduler.add_job(
            run_pending_sweep, 'interval', hours=sweep_hours,
            args=[app], id='pending_sweep',
            replace_existing=True, max_instances=1, coalesce=True,
        )
    else:
        logger.info("System-wide pending sweep not scheduled (manual trigger only)")

    try:
        scheduler.start()
        logger.info("Scheduler started successfully")
    except Exception as e:
        logger.error(f"Scheduler failed to start: {e}")
