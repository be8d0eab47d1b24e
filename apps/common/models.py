"""
Audit trail shared by the workflow apps.
"""
import uuid
from django.db import models
from django.conf import settings


class ActivityLog(models.Model):
    """
    One audited workflow event: a transition, an assignment change, a
    fired reminder or escalation, or a time limit change.
    """
    ACTION_TYPE_CHOICES = [
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('TRANSITION', 'Status Transition'),
        ('ASSIGN', 'Assign'),
        ('APPROVE', 'Approve'),
        ('REJECT', 'Reject'),
        ('COMPLETE', 'Complete'),
        ('REMIND', 'Reminder Sent'),
        ('ESCALATE', 'Escalation Sent'),
    ]

    ACTOR_TYPE_CHOICES = [
        ('USER', 'User'),
        ('SYSTEM', 'Scheduler or background task'),
    ]

    RESOURCE_TYPE_CHOICES = [
        ('SUBMISSION', 'Submission'),
        ('REVIEW_ASSIGNMENT', 'Review Assignment'),
        ('TIME_LIMIT', 'Workflow Time Limit'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activity_logs'
    )
    actor_type = models.CharField(max_length=20, choices=ACTOR_TYPE_CHOICES)

    action_type = models.CharField(max_length=20, choices=ACTION_TYPE_CHOICES)
    resource_type = models.CharField(max_length=30, choices=RESOURCE_TYPE_CHOICES)
    resource_id = models.CharField(max_length=100)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['resource_type', 'resource_id']),
            models.Index(fields=['action_type', 'created_at']),
        ]

    def __str__(self):
        actor = self.user.email if self.user else self.actor_type.lower()
        return f"{actor} {self.action_type} {self.resource_type} {self.resource_id}"
