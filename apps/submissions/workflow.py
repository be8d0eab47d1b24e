"""
Submission workflow state machine.

Every status change goes through ``request_transition``. Who may move a
submission where is decided by ``allowed_targets``, the single
authorization table for the workflow.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.common.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionError,
    ValidationError,
)
from apps.common.permissions import profile_role
from apps.common.utils import retry_on_persistence_error
from apps.users.models import EDITOR_ROLES

from .models import StatusHistoryEntry, Submission

logger = logging.getLogger(__name__)


STATUSES = tuple(value for value, _ in Submission.STATUS_CHOICES)
TERMINAL_STATUSES = frozenset({'published', 'rejected', 'withdrawn'})

AUTHOR_TARGETS = frozenset({'withdrawn', 'revision_submitted'})
EDITOR_TARGETS = frozenset({
    'technical_check',
    'under_review',
    'revision_requested',
    'accepted',
    'rejected',
})

NEXT_STEPS = {
    'draft': ["Submit for review"],
    'submitted': ["Technical check", "Editor assignment"],
    'technical_check': ["Editor assignment", "Reviewer selection"],
    'under_review': ["Review completion", "Editorial decision"],
    'revision_requested': ["Author revision", "Resubmission"],
    'revision_submitted': ["Review of revision", "Final decision"],
    'accepted': ["Production", "Publication"],
    'rejected': ["Archive", "Author notification"],
    'published': ["Archive", "Citation tracking"],
    'withdrawn': ["Archive", "Author notification"],
}

ESTIMATED_COMPLETION = {
    'submitted': "3-5 business days",
    'technical_check': "1-2 business days",
    'under_review': "4-6 weeks",
    'revision_requested': "Author dependent",
    'revision_submitted': "2-3 weeks",
    'accepted': "2-4 weeks",
    'rejected': "Completed",
    'published': "Completed",
    'withdrawn': "Completed",
}


@dataclass(frozen=True)
class TransitionResult:
    status: str
    history_entry: Optional[StatusHistoryEntry]

    @property
    def changed(self):
        return self.history_entry is not None


def allowed_targets(role, current_status, is_owner=False):
    """
    Return the statuses ``role`` may move a submission in ``current_status`` to.

    ``is_owner`` tells whether the actor is the submission's author; authors
    get nothing on submissions they do not own.
    """
    if current_status in TERMINAL_STATUSES:
        return frozenset()
    if role == 'admin':
        return frozenset(STATUSES)
    if role == 'author':
        return AUTHOR_TARGETS if is_owner else frozenset()
    if role in EDITOR_ROLES:
        return EDITOR_TARGETS
    return frozenset()


def can_transition(actor, submission, new_status):
    role = profile_role(actor)
    is_owner = actor is not None and submission.author_id == actor.id
    return new_status in allowed_targets(role, submission.status, is_owner)


def next_steps(status):
    return list(NEXT_STEPS.get(status, []))


def estimated_completion(status):
    return ESTIMATED_COMPLETION.get(status, "Unknown")


def _load_submission(submission_id):
    try:
        return Submission.objects.get(pk=submission_id)
    except (Submission.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Submission {submission_id} not found", submission_id=str(submission_id))


@retry_on_persistence_error
def request_transition(submission_id, new_status, actor, notes='', expected_version=None, now=None):
    """
    Move a submission to ``new_status`` on behalf of ``actor`` (a Profile).

    Raises ValidationError for an unknown status, NotFoundError for a
    missing submission, PermissionError when the authorization table does
    not allow the move and ConflictError when another writer committed
    first. Requesting the current status is a no-op once permitted.
    """
    if new_status not in STATUSES:
        raise ValidationError(f"Unknown status '{new_status}'", status=new_status)

    submission = _load_submission(submission_id)
    current_status = submission.status
    role = profile_role(actor)

    if not can_transition(actor, submission, new_status):
        logger.info(
            f"Denied transition of submission {submission.id} "
            f"from {current_status} to {new_status} for role {role}"
        )
        raise PermissionError(
            f"Role '{role}' may not move a '{current_status}' submission to '{new_status}'",
            current_status=current_status,
            requested_status=new_status,
        )

    if expected_version is not None and int(expected_version) != submission.version:
        raise ConflictError(
            "Submission was modified by someone else",
            expected_version=int(expected_version),
            current_version=submission.version,
        )

    if new_status == current_status:
        return TransitionResult(status=current_status, history_entry=None)

    now = now or timezone.now()
    with transaction.atomic():
        updated = Submission.objects.filter(
            pk=submission.pk,
            version=submission.version,
        ).update(
            status=new_status,
            stage_entered_at=now,
            version=F('version') + 1,
            is_overdue=False,
            updated_at=now,
        )
        if not updated:
            raise ConflictError(
                "Submission was modified by someone else",
                expected_version=submission.version,
            )

        entry = StatusHistoryEntry.objects.create(
            submission=submission,
            sequence=submission.version + 1,
            from_status=current_status,
            status=new_status,
            actor=actor,
            actor_role=role or '',
            notes=notes or '',
            timestamp=now,
        )

    logger.info(f"Submission {submission.id} moved from {current_status} to {new_status} by {role}")
    return TransitionResult(status=new_status, history_entry=entry)
