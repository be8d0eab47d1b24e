"""
Django signals for the submissions app.

Writes the audit trail for status changes once they are committed.
"""
import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.common.utils.activity_logger import log_activity
from apps.submissions.models import StatusHistoryEntry

logger = logging.getLogger(__name__)

# Terminal decisions get their own action type in the audit trail.
ACTION_TYPES = {
    'accepted': 'APPROVE',
    'rejected': 'REJECT',
}


@receiver(post_save, sender=StatusHistoryEntry)
def log_status_change(sender, instance, created, **kwargs):
    """
    Log a TRANSITION activity after the surrounding transaction commits.
    """
    if not created:
        return

    user = instance.actor.user if instance.actor else None
    metadata = {
        'from_status': instance.from_status,
        'to_status': instance.status,
        'actor_role': instance.actor_role,
        'notes': instance.notes,
    }
    action_type = ACTION_TYPES.get(instance.status, 'TRANSITION')
    submission_id = instance.submission_id

    def write_log():
        log_activity(
            user=user,
            action_type=action_type,
            resource_type='SUBMISSION',
            resource_id=submission_id,
            metadata=metadata,
        )
        logger.info(f"Logged {action_type} SUBMISSION for {submission_id}")

    transaction.on_commit(write_log)
