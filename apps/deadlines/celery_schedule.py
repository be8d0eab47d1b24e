"""
Celery Beat configuration for periodic tasks.

Imported by editorial_core.settings.
"""

from celery.schedules import crontab

CELERY_BEAT_SCHEDULE = {
    # Scan every stage deadline hourly; missed runs are caught up on the next one
    'scan-stage-deadlines-hourly': {
        'task': 'deadlines.scan_stage_deadlines',
        'schedule': crontab(minute=15),
        'options': {
            'expires': 3600,  # Task expires after 1 hour
        }
    },
}
