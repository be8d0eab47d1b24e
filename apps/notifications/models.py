"""
Email notification models for the editorial workflow.
Manages email templates and the log of every notification attempt.
"""
import uuid
from django.db import models
from django.conf import settings


class EmailTemplate(models.Model):
    """
    Email template model for customizable email notifications.
    """
    TEMPLATE_TYPES = [
        ('STAGE_REMINDER', 'Stage Deadline Reminder'),
        ('STAGE_ESCALATION', 'Stage Deadline Escalation'),
        ('REVIEW_INVITATION', 'Review Invitation'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    template_type = models.CharField(
        max_length=50,
        choices=TEMPLATE_TYPES,
        unique=True,
        help_text="Type of email template"
    )
    name = models.CharField(max_length=200, help_text="Human-readable template name")
    description = models.TextField(blank=True, help_text="Description of when this template is used")

    subject = models.CharField(max_length=255, help_text="Email subject line (supports variables)")
    html_body = models.TextField(blank=True, help_text="HTML email body (supports variables)")
    text_body = models.TextField(blank=True, help_text="Plain text body (generated from HTML if empty)")

    available_variables = models.JSONField(default=list, help_text="List of available template variables")
    is_active = models.BooleanField(default=True, help_text="Whether this template is currently in use")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['template_type']
        indexes = [
            models.Index(fields=['template_type', 'is_active']),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_template_type_display()})"


class EmailLog(models.Model):
    """
    Log of all emails sent by the system.
    Tracks delivery status and errors.
    """
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('SENT', 'Sent'),
        ('FAILED', 'Failed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    recipient = models.EmailField(help_text="Recipient email address")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='sent_emails',
        help_text="User this email was sent to"
    )
    template_type = models.CharField(max_length=50, blank=True, help_text="Type of email template used")

    subject = models.CharField(max_length=255)
    body_html = models.TextField(blank=True)
    body_text = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    sent_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True)

    context_data = models.JSONField(default=dict, help_text="Template context data used")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', 'status']),
            models.Index(fields=['template_type', 'status']),
        ]

    def __str__(self):
        return f"Email to {self.recipient} - {self.status}"
