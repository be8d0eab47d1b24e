"""
Celery tasks for email notifications.
"""
from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task(name='notifications.send_review_invitation')
def send_review_invitation(assignment_id):
    """
    Invite the reviewer of a freshly created assignment.
    A failed send is recorded in EmailLog.
    """
    from apps.notifications.services import Notifier
    from apps.reviews.models import ReviewAssignment

    try:
        assignment = ReviewAssignment.objects.select_related(
            'article', 'reviewer__profile__user'
        ).get(id=assignment_id)
    except ReviewAssignment.DoesNotExist:
        logger.error(f"ReviewAssignment {assignment_id} not found")
        return {'status': 'error', 'message': 'ReviewAssignment not found'}

    profile = assignment.reviewer.profile
    sent = Notifier().notify(profile, 'REVIEW_INVITATION', {
        'reviewer_name': profile.get_full_name(),
        'article_title': assignment.article.title,
        'due_date': assignment.due_date.date().isoformat(),
        'assignment_id': str(assignment.id),
    })

    return {
        'status': 'success' if sent else 'failed',
        'assignment_id': str(assignment_id),
        'recipient': profile.user.email,
    }
