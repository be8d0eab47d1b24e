"""
Review models for the editorial workflow.
Handles the reviewer pool, author recommendations and review assignments.
"""
import uuid
from django.db import models
from django.db.models import Q
from django.core.validators import MinValueValidator, MaxValueValidator


ACTIVE_ASSIGNMENT_STATUSES = ('pending', 'accepted')


class ReviewerProfile(models.Model):
    """
    Reviewer pool entry. One per reviewer-role profile.
    """
    AVAILABILITY_CHOICES = [
        ('available', 'Available'),
        ('limited', 'Limited'),
        ('unavailable', 'Unavailable'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    profile = models.OneToOneField(
        'users.Profile',
        on_delete=models.CASCADE,
        related_name='reviewer_profile'
    )

    expertise = models.JSONField(default=list, blank=True, help_text="Expertise terms")
    specializations = models.JSONField(default=list, blank=True, help_text="Specialization terms")

    availability_status = models.CharField(
        max_length=20,
        choices=AVAILABILITY_CHOICES,
        default='available'
    )
    current_load = models.IntegerField(default=0, help_text="Active review assignments")
    max_load = models.IntegerField(default=3, help_text="Maximum concurrent reviews")

    completed_reviews = models.PositiveIntegerField(default=0)
    late_reviews = models.PositiveIntegerField(default=0)
    overall_rating = models.FloatField(
        default=0.0,
        validators=[MinValueValidator(0.0), MaxValueValidator(5.0)]
    )
    last_review_date = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(current_load__gte=0),
                name='reviewer_current_load_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['is_active', 'availability_status']),
        ]

    def __str__(self):
        return f"Reviewer {self.profile}"

    @property
    def can_accept_review(self):
        return self.current_load < self.max_load

    @property
    def reliability_score(self):
        """Share of completed reviews delivered on time, as a percentage."""
        if self.completed_reviews <= 0:
            return 100
        return round((self.completed_reviews - self.late_reviews) / self.completed_reviews * 100)


class AuthorRecommendedReviewer(models.Model):
    """
    Reviewer suggested by the author at submission time.
    """
    VALIDATION_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('suggested', 'Suggested'),
        ('invalid', 'Invalid'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    article = models.ForeignKey(
        'submissions.Article',
        on_delete=models.CASCADE,
        related_name='recommended_reviewers'
    )
    name = models.CharField(max_length=255)
    email = models.EmailField()
    affiliation = models.CharField(max_length=255, blank=True)
    expertise = models.TextField(blank=True)

    validation_status = models.CharField(
        max_length=20,
        choices=VALIDATION_STATUS_CHOICES,
        default='pending'
    )
    resolved_reviewer = models.ForeignKey(
        ReviewerProfile,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recommendations'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['article', 'validation_status']),
        ]

    def __str__(self):
        return f"{self.name} <{self.email}> ({self.validation_status})"


class ReviewAssignment(models.Model):
    """
    A reviewer assigned to an article.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('declined', 'Declined'),
        ('completed', 'Completed'),
    ]

    ORIGIN_CHOICES = [
        ('recommended', 'Author recommended'),
        ('system', 'System found'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    article = models.ForeignKey(
        'submissions.Article',
        on_delete=models.CASCADE,
        related_name='review_assignments'
    )
    reviewer = models.ForeignKey(
        ReviewerProfile,
        on_delete=models.PROTECT,
        related_name='assignments'
    )
    assigned_by = models.ForeignKey(
        'users.Profile',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_reviews'
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    origin = models.CharField(max_length=20, choices=ORIGIN_CHOICES, default='system')
    assigned_date = models.DateTimeField()
    due_date = models.DateTimeField()
    accepted_at = models.DateTimeField(null=True, blank=True)
    declined_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    decline_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['article', 'reviewer'],
                condition=Q(status__in=ACTIVE_ASSIGNMENT_STATUSES),
                name='unique_active_review_assignment',
            ),
        ]
        indexes = [
            models.Index(fields=['article', 'status']),
            models.Index(fields=['reviewer', 'status']),
            models.Index(fields=['status', 'due_date']),
        ]

    def __str__(self):
        return f"Review assignment for {self.article.title[:30]} by {self.reviewer}"

