"""
Celery tasks for stage deadlines.
"""
from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded
import logging

from apps.common.utils import workflow_setting

logger = logging.getLogger(__name__)


@shared_task(
    name='deadlines.scan_stage_deadlines',
    soft_time_limit=workflow_setting('SCAN_SOFT_TIME_LIMIT', 300),
)
def scan_stage_deadlines(dry_run=False):
    """
    Periodic task that fires due stage reminders and escalations.
    Scheduled hourly by Celery Beat.
    """
    from apps.deadlines.scheduler import DeadlineScheduler

    logger.info("Starting stage deadline scan")
    try:
        report = DeadlineScheduler().scan(dry_run=dry_run)
    except SoftTimeLimitExceeded:
        # Markers already written stay; the next run picks up the rest
        logger.warning("Stage deadline scan hit its time limit")
        return {'status': 'timeout'}

    return {'status': 'success', **report.as_dict()}
