"""
Helpers that write the ActivityLog audit trail.

An audit write never fails the operation being audited: errors are logged
and swallowed here, so callers inside a transaction should defer the call
with ``transaction.on_commit``.
"""
import json
import logging

from django.core.serializers.json import DjangoJSONEncoder

from apps.common.models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(user, action_type, resource_type, resource_id, metadata=None, actor_type=None):
    """
    Record one audited event.

    Args:
        user: acting user, or None for the scheduler and background tasks
        action_type: one of ActivityLog.ACTION_TYPE_CHOICES
        resource_type: one of ActivityLog.RESOURCE_TYPE_CHOICES
        resource_id: id of the affected row
        metadata: JSON-serializable details

    Returns:
        ActivityLog or None when the write failed
    """
    if actor_type is None:
        actor_type = 'USER' if user else 'SYSTEM'

    try:
        return ActivityLog.objects.create(
            user=user,
            actor_type=actor_type,
            action_type=action_type,
            resource_type=resource_type,
            resource_id=str(resource_id),
            metadata=json.loads(json.dumps(metadata or {}, cls=DjangoJSONEncoder)),
        )
    except Exception as e:
        logger.error(f"Failed to write {action_type} activity for {resource_type} {resource_id}: {e}")
        return None


def log_user_action(user, action_type, resource_type, resource_id, metadata=None):
    return log_activity(user, action_type, resource_type, resource_id, metadata=metadata, actor_type='USER')


def log_system_action(action_type, resource_type, resource_id, metadata=None):
    return log_activity(None, action_type, resource_type, resource_id, metadata=metadata, actor_type='SYSTEM')
