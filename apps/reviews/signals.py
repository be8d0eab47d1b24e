"""
Django signals for the reviews app.

Automatically logs review assignment activities.
"""
from django.db.models.signals import post_save
from django.dispatch import receiver
from apps.reviews.models import ReviewAssignment
from apps.common.utils.activity_logger import log_user_action, log_system_action
import logging

logger = logging.getLogger(__name__)

STATUS_ACTIONS = {
    'accepted': 'APPROVE',
    'declined': 'REJECT',
    'completed': 'COMPLETE',
}


@receiver(post_save, sender=ReviewAssignment)
def log_review_assignment_activity(sender, instance, created, update_fields=None, **kwargs):
    """
    Log review assignment creation and status changes.
    """
    if created:
        log_system_action(
            action_type='ASSIGN',
            resource_type='REVIEW_ASSIGNMENT',
            resource_id=instance.id,
            metadata={
                'reviewer_id': str(instance.reviewer_id),
                'article_id': str(instance.article_id),
                'origin': instance.origin,
                'assigned_by': str(instance.assigned_by_id) if instance.assigned_by_id else None,
                'due_date': instance.due_date.isoformat(),
            }
        )
        logger.info(f"Logged ASSIGN REVIEW_ASSIGNMENT for {instance.id}")
        return

    if update_fields and 'status' not in update_fields:
        return

    action_type = STATUS_ACTIONS.get(instance.status)
    if action_type is None:
        return

    log_user_action(
        user=instance.reviewer.profile.user,
        action_type=action_type,
        resource_type='REVIEW_ASSIGNMENT',
        resource_id=instance.id,
        metadata={
            'status': instance.status,
            'article_id': str(instance.article_id),
        }
    )
    logger.info(f"Logged {action_type} REVIEW_ASSIGNMENT for {instance.id}")
