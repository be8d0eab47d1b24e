"""
Review assignment services.

Turns a reviewer selection into ReviewAssignment rows and drives the
assignment lifecycle. Every operation keeps ReviewerProfile.current_load
in step with the reviewer's active assignments.
"""
import logging
from datetime import timedelta

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.common.exceptions import ConflictError, NotFoundError, PermissionError, ValidationError
from apps.common.utils import retry_on_persistence_error, workflow_setting
from apps.submissions.models import Submission

from .matching import SelectedReviewer, SelectionResult
from .models import ACTIVE_ASSIGNMENT_STATUSES, ReviewAssignment, ReviewerProfile

logger = logging.getLogger(__name__)


def _candidates(selection):
    if isinstance(selection, SelectionResult):
        return list(selection.selected)
    candidates = list(selection or [])
    for candidate in candidates:
        if not isinstance(candidate, SelectedReviewer):
            raise ValidationError("Selection must contain SelectedReviewer entries")
    return candidates


def _release_load(reviewer_id):
    """Decrement a reviewer's load without going below zero."""
    ReviewerProfile.objects.filter(pk=reviewer_id, current_load__gt=0).update(
        current_load=F('current_load') - 1
    )


def _queue_invitations(assignment_ids):
    from apps.notifications.tasks import send_review_invitation

    for assignment_id in assignment_ids:
        send_review_invitation.delay(str(assignment_id))


@retry_on_persistence_error
def assign_reviewers(article_id, selection, assigned_by, target_count, due_date=None, now=None):
    """
    Create assignments for every selected reviewer, or for none.

    The submission row is locked while the active assignments are
    re-counted, so two concurrent batches cannot together exceed
    ``target_count``.

    Returns:
        list[ReviewAssignment]: the created assignments
    """
    candidates = _candidates(selection)
    if not candidates:
        return []
    if target_count is None or int(target_count) < 1:
        raise ValidationError("target_count must be at least 1", target_count=target_count)

    reviewer_ids = [candidate.reviewer.pk for candidate in candidates]
    if len(set(reviewer_ids)) != len(reviewer_ids):
        raise ValidationError("A reviewer appears more than once in the selection")

    now = now or timezone.now()
    if due_date is None:
        due_date = now + timedelta(days=workflow_setting('REVIEW_DEADLINE_DAYS', 21))

    with transaction.atomic():
        try:
            submission = Submission.objects.select_for_update().get(article_id=article_id)
        except (Submission.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"No submission for article {article_id}", article_id=str(article_id))

        active = ReviewAssignment.objects.filter(
            article_id=submission.article_id,
            status__in=ACTIVE_ASSIGNMENT_STATUSES,
        )
        active_count = active.count()
        if active_count + len(candidates) > int(target_count):
            raise ConflictError(
                "Assignment would exceed the target reviewer count",
                active=active_count,
                requested=len(candidates),
                target_count=int(target_count),
            )

        already_active = set(active.filter(reviewer_id__in=reviewer_ids).values_list('reviewer_id', flat=True))
        if already_active:
            raise ConflictError(
                "Reviewer already has an active assignment on this article",
                reviewer_ids=[str(pk) for pk in already_active],
            )

        assignments = []
        for candidate in candidates:
            assignments.append(ReviewAssignment.objects.create(
                article_id=submission.article_id,
                reviewer=candidate.reviewer,
                assigned_by=assigned_by,
                origin=candidate.origin,
                assigned_date=now,
                due_date=due_date,
            ))
            ReviewerProfile.objects.filter(pk=candidate.reviewer.pk).update(
                current_load=F('current_load') + 1
            )

        created_ids = [assignment.id for assignment in assignments]
        transaction.on_commit(lambda: _queue_invitations(created_ids))

    logger.info(f"Assigned {len(assignments)} reviewers to article {submission.article_id}")
    return assignments


def _load_assignment_for(assignment_id, profile):
    try:
        assignment = ReviewAssignment.objects.select_for_update().select_related('reviewer').get(pk=assignment_id)
    except (ReviewAssignment.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Review assignment {assignment_id} not found", assignment_id=str(assignment_id))

    if profile is None or assignment.reviewer.profile_id != profile.id:
        raise PermissionError("You can only act on your own review assignments.")
    return assignment


@retry_on_persistence_error
def respond_to_assignment(assignment_id, reviewer, accept, reason='', now=None):
    """
    Accept or decline a pending invitation on behalf of ``reviewer`` (a Profile).
    Declining frees the reviewer's slot.
    """
    now = now or timezone.now()
    with transaction.atomic():
        assignment = _load_assignment_for(assignment_id, reviewer)
        if assignment.status != 'pending':
            raise ConflictError(
                "This assignment is not in pending status.",
                status=assignment.status,
            )

        if accept:
            assignment.status = 'accepted'
            assignment.accepted_at = now
            assignment.save(update_fields=['status', 'accepted_at', 'updated_at'])
        else:
            assignment.status = 'declined'
            assignment.declined_at = now
            assignment.decline_reason = reason or ''
            assignment.save(update_fields=['status', 'declined_at', 'decline_reason', 'updated_at'])
            _release_load(assignment.reviewer_id)

    logger.info(f"Review assignment {assignment.id} {assignment.status}")
    return assignment


@retry_on_persistence_error
def complete_assignment(assignment_id, reviewer, now=None):
    """
    Close an accepted assignment and update the reviewer's record.
    A completion after the due date counts as a late review.
    """
    now = now or timezone.now()
    with transaction.atomic():
        assignment = _load_assignment_for(assignment_id, reviewer)
        if assignment.status != 'accepted':
            raise ConflictError(
                "Only accepted assignments can be completed.",
                status=assignment.status,
            )

        is_late = now > assignment.due_date
        assignment.status = 'completed'
        assignment.completed_at = now
        assignment.save(update_fields=['status', 'completed_at', 'updated_at'])

        updates = {
            'completed_reviews': F('completed_reviews') + 1,
            'last_review_date': now,
        }
        if is_late:
            updates['late_reviews'] = F('late_reviews') + 1
        ReviewerProfile.objects.filter(pk=assignment.reviewer_id).update(**updates)
        _release_load(assignment.reviewer_id)

    if is_late:
        logger.warning(f"Review assignment {assignment.id} completed after its due date")
    return assignment
