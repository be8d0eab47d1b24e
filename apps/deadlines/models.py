"""
Deadline models for the editorial workflow.
Per-stage time limits and the markers that record fired notifications.
"""
import uuid
from django.db import models
from django.db.models import Q

from apps.common.utils import workflow_setting
from apps.submissions.models import Submission


def default_escalation_roles():
    return list(workflow_setting('DEFAULT_ESCALATION_ROLES', ['managing-editor', 'editor-in-chief']))


class WorkflowTimeLimit(models.Model):
    """
    Time allowed in a workflow stage.

    ``reminder_days`` are offsets before the due date, ``escalation_days``
    offsets after it.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    stage = models.CharField(max_length=30, choices=Submission.STATUS_CHOICES, unique=True)
    stage_description = models.TextField(blank=True)

    time_limit_days = models.PositiveIntegerField(default=7)
    reminder_days = models.JSONField(default=list, blank=True, help_text="Days before the deadline")
    escalation_days = models.JSONField(default=list, blank=True, help_text="Days after the deadline")
    escalation_recipient_roles = models.JSONField(
        default=default_escalation_roles,
        blank=True,
        help_text="Profile roles that receive escalations"
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['stage']
        constraints = [
            models.CheckConstraint(
                condition=Q(time_limit_days__gt=0),
                name='time_limit_days_positive',
            ),
        ]

    def __str__(self):
        return f"{self.get_stage_display()}: {self.time_limit_days} days"


class FiredNotificationMarker(models.Model):
    """
    One reminder or escalation for a submission in a stage. Never removed
    once sent.

    A scan claims the marker before sending (``claimed_at``) and releases
    it afterwards. ``recipients`` lists who has received the notification;
    the marker turns ``sent`` once every recipient has.
    """
    OFFSET_TYPE_CHOICES = [
        ('reminder', 'Reminder'),
        ('escalation', 'Escalation'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('sent', 'Sent'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    submission = models.ForeignKey(
        Submission,
        on_delete=models.CASCADE,
        related_name='fired_notifications'
    )
    stage = models.CharField(max_length=30, choices=Submission.STATUS_CHOICES)
    offset_type = models.CharField(max_length=20, choices=OFFSET_TYPE_CHOICES)
    offset_value = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    recipients = models.JSONField(default=list, blank=True)
    claimed_at = models.DateTimeField(null=True, blank=True)
    fired_at = models.DateTimeField()

    class Meta:
        ordering = ['fired_at']
        constraints = [
            models.UniqueConstraint(
                fields=['submission', 'stage', 'offset_type', 'offset_value'],
                name='unique_fired_notification',
            ),
        ]
        indexes = [
            models.Index(fields=['submission', 'stage']),
        ]

    def __str__(self):
        return f"{self.offset_type} {self.offset_value}d for {self.submission_id} in {self.stage}"
