"""
Submission models for the editorial workflow.
Handles articles, their submissions and the append-only status history.
"""
import uuid
from django.db import models
from django.utils import timezone


class Article(models.Model):
    """
    Manuscript metadata used for reviewer matching.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=500)
    abstract = models.TextField(blank=True)
    keywords = models.JSONField(default=list, blank=True, help_text="List of keyword strings")
    category = models.CharField(max_length=255, blank=True)

    author = models.ForeignKey(
        'users.Profile',
        on_delete=models.PROTECT,
        related_name='articles'
    )
    coauthors = models.ManyToManyField(
        'users.Profile',
        related_name='coauthored_articles',
        blank=True
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title


class Submission(models.Model):
    """
    The workflow record of an article. Status only changes through
    apps.submissions.workflow.request_transition.
    """
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('submitted', 'Submitted'),
        ('technical_check', 'Technical Check'),
        ('under_review', 'Under Review'),
        ('revision_requested', 'Revision Requested'),
        ('revision_submitted', 'Revision Submitted'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
        ('published', 'Published'),
        ('withdrawn', 'Withdrawn'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    article = models.OneToOneField(
        Article,
        on_delete=models.PROTECT,
        related_name='submission'
    )
    author = models.ForeignKey(
        'users.Profile',
        on_delete=models.PROTECT,
        related_name='submissions'
    )
    handling_editor = models.ForeignKey(
        'users.Profile',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='handled_submissions',
        help_text="Editor who owns the current stage"
    )

    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='draft')
    stage_entered_at = models.DateTimeField(default=timezone.now)
    version = models.PositiveIntegerField(default=1, help_text="Optimistic lock stamp")
    is_overdue = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'stage_entered_at']),
            models.Index(fields=['author']),
        ]

    def __str__(self):
        return f"{self.article.title} ({self.status})"

    @property
    def status_history(self):
        """Snapshot of the history, oldest first. Callers cannot mutate it."""
        return tuple(self.history_entries.select_related('actor').order_by('timestamp', 'sequence'))


class AppendOnlyError(Exception):
    pass


class StatusHistoryQuerySet(models.QuerySet):

    def update(self, **kwargs):
        raise AppendOnlyError("Status history entries cannot be updated")

    def delete(self):
        raise AppendOnlyError("Status history entries cannot be deleted")


class StatusHistoryEntry(models.Model):
    """
    One row per committed status change. Rows are never changed or removed.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sequence = models.BigIntegerField(default=0, editable=False)
    submission = models.ForeignKey(
        Submission,
        on_delete=models.PROTECT,
        related_name='history_entries'
    )
    from_status = models.CharField(max_length=30, blank=True)
    status = models.CharField(max_length=30, choices=Submission.STATUS_CHOICES)
    actor = models.ForeignKey(
        'users.Profile',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='status_changes'
    )
    actor_role = models.CharField(max_length=30, blank=True)
    notes = models.TextField(blank=True)
    timestamp = models.DateTimeField(default=timezone.now)

    objects = StatusHistoryQuerySet.as_manager()

    class Meta:
        ordering = ['timestamp', 'sequence']
        verbose_name_plural = 'status history entries'
        indexes = [
            models.Index(fields=['submission', 'timestamp']),
        ]

    def __str__(self):
        return f"{self.submission_id}: {self.from_status or '-'} -> {self.status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AppendOnlyError("Status history entries cannot be updated")
        if not self.sequence:
            self.sequence = self.submission.version
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AppendOnlyError("Status history entries cannot be deleted")
