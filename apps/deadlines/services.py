"""
Time limit configuration.

``configure_time_limit`` validates and upserts the limit for one stage.
``configure_time_limits`` applies a batch and reports per-row results.
"""
import logging

from django.db import transaction

from apps.common.exceptions import NotFoundError, ValidationError
from apps.common.utils.activity_logger import log_activity
from apps.submissions.workflow import STATUSES
from apps.users.models import Profile

from .models import WorkflowTimeLimit

logger = logging.getLogger(__name__)


DEFAULT_ESCALATION_ROLES = ['managing-editor', 'editor-in-chief']

# Stage: (description, time_limit_days, reminder_days, escalation_days)
DEFAULT_TIME_LIMITS = {
    'submitted': ("Initial screening by the editorial office", 7, [7, 3, 1], [7, 14, 21]),
    'technical_check': ("Technical and formatting check", 3, [3, 1], [3, 7, 14]),
    'under_review': ("Peer review", 21, [21, 14, 7, 3, 1], [21, 28, 35]),
    'revision_requested': ("Author revision", 30, [14, 7, 3, 1], [7, 14]),
    'revision_submitted': ("Editorial assessment of the revision", 14, [14, 7, 3, 1], [14, 21, 28]),
    'accepted': ("Production", 28, [7, 3], [7, 14]),
}

UPDATABLE_FIELDS = (
    'time_limit_days',
    'reminder_days',
    'escalation_days',
    'is_active',
    'stage_description',
    'escalation_recipient_roles',
)


def _validate_days(name, values):
    if not isinstance(values, (list, tuple)):
        raise ValidationError(f"{name} must be a list of non-negative integers.", field=name)
    cleaned = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError(f"{name} must be a list of non-negative integers.", field=name, value=value)
        cleaned.append(value)
    return sorted(set(cleaned), reverse=True)


def _validate_roles(roles):
    known = {value for value, _ in Profile.ROLE_CHOICES}
    if not isinstance(roles, (list, tuple)) or not roles:
        raise ValidationError("escalation_recipient_roles must be a non-empty list.",
                              field='escalation_recipient_roles')
    unknown = [role for role in roles if role not in known]
    if unknown:
        raise ValidationError("Unknown escalation recipient roles.", roles=unknown)
    return list(dict.fromkeys(roles))


def _validate_time_limit(value):
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError("time_limit_days must be a positive integer.",
                              field='time_limit_days', value=value)
    return value


def _validate_stage(stage):
    if stage not in STATUSES:
        raise ValidationError(f"Unknown stage '{stage}'.", field='stage')
    return stage


def configure_time_limit(stage, time_limit_days, reminder_days, escalation_days, is_active=True,
                         stage_description=None, escalation_recipient_roles=None, actor=None):
    """
    Create or replace the time limit for a stage.

    Returns:
        tuple: (WorkflowTimeLimit, created)

    Raises:
        ValidationError: unknown stage, non-positive time limit or bad offsets
    """
    defaults = {
        'time_limit_days': _validate_time_limit(time_limit_days),
        'reminder_days': _validate_days('reminder_days', reminder_days),
        'escalation_days': _validate_days('escalation_days', escalation_days),
        'is_active': bool(is_active),
    }
    _validate_stage(stage)
    if stage_description is not None:
        defaults['stage_description'] = stage_description
    if escalation_recipient_roles is not None:
        defaults['escalation_recipient_roles'] = _validate_roles(escalation_recipient_roles)

    time_limit, created = WorkflowTimeLimit.objects.update_or_create(stage=stage, defaults=defaults)

    logger.info(
        f"Time limit for {stage} {'created' if created else 'updated'}: "
        f"{time_limit.time_limit_days} days"
    )
    transaction.on_commit(lambda: log_activity(
        user=actor.user if actor else None,
        action_type='CREATE' if created else 'UPDATE',
        resource_type='TIME_LIMIT',
        resource_id=time_limit.id,
        metadata={'stage': stage, 'time_limit_days': time_limit.time_limit_days},
    ))
    return time_limit, created


def configure_time_limits(rows, actor=None):
    """
    Apply a batch of time limit rows. One bad row does not stop the others.

    Returns:
        dict: {'results': [{stage, success, action | error}], 'summary': {total, successful, failed}}
    """
    results = []
    for row in rows:
        stage = row.get('stage') if isinstance(row, dict) else None
        try:
            if not isinstance(row, dict):
                raise ValidationError("Each time limit must be an object.")
            if 'time_limit_days' not in row:
                raise ValidationError("time_limit_days is required.", field='time_limit_days')
            with transaction.atomic():
                _, created = configure_time_limit(
                    stage,
                    row['time_limit_days'],
                    row.get('reminder_days', []),
                    row.get('escalation_days', []),
                    is_active=row.get('is_active', True),
                    stage_description=row.get('stage_description'),
                    escalation_recipient_roles=row.get('escalation_recipient_roles'),
                    actor=actor,
                )
            results.append({'stage': stage, 'success': True, 'action': 'created' if created else 'updated'})
        except ValidationError as exc:
            results.append({'stage': stage, 'success': False, 'error': exc.message})

    successful = sum(1 for result in results if result['success'])
    return {
        'results': results,
        'summary': {
            'total': len(results),
            'successful': successful,
            'failed': len(results) - successful,
        },
    }


def update_time_limit(stage, updates, actor=None):
    """
    Partially update an existing stage limit. Unknown keys are rejected.
    """
    if not isinstance(updates, dict) or not updates:
        raise ValidationError("updates must be a non-empty object.")
    unknown = sorted(set(updates) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError("Unsupported fields in updates.", fields=unknown)

    try:
        time_limit = WorkflowTimeLimit.objects.get(stage=_validate_stage(stage))
    except WorkflowTimeLimit.DoesNotExist:
        raise NotFoundError(f"No time limit configured for stage '{stage}'.")

    time_limit, _ = configure_time_limit(
        stage,
        updates.get('time_limit_days', time_limit.time_limit_days),
        updates.get('reminder_days', time_limit.reminder_days),
        updates.get('escalation_days', time_limit.escalation_days),
        is_active=updates.get('is_active', time_limit.is_active),
        stage_description=updates.get('stage_description'),
        escalation_recipient_roles=updates.get('escalation_recipient_roles'),
        actor=actor,
    )
    return time_limit


def seed_default_time_limits(overwrite=False):
    """
    Install DEFAULT_TIME_LIMITS. Existing rows are kept unless ``overwrite``.

    Returns:
        tuple: (created, updated, skipped) counts
    """
    created = updated = skipped = 0
    for stage, (description, days, reminders, escalations) in DEFAULT_TIME_LIMITS.items():
        if not overwrite and WorkflowTimeLimit.objects.filter(stage=stage).exists():
            skipped += 1
            continue
        _, was_created = configure_time_limit(
            stage, days, reminders, escalations,
            stage_description=description,
            escalation_recipient_roles=DEFAULT_ESCALATION_ROLES,
        )
        if was_created:
            created += 1
        else:
            updated += 1
    return created, updated, skipped
