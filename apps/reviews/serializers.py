"""
Serializers for reviewer selection and review assignments.
"""
from rest_framework import serializers

from apps.reviews.models import ReviewAssignment, ReviewerProfile
from apps.users.serializers import ProfileSummarySerializer


class ReviewerProfileSerializer(serializers.ModelSerializer):
    """Reviewer pool entry with the owning profile."""
    profile = ProfileSummarySerializer(read_only=True)
    reliability_score = serializers.IntegerField(read_only=True)
    can_accept_review = serializers.BooleanField(read_only=True)

    class Meta:
        model = ReviewerProfile
        fields = [
            'id', 'profile', 'expertise', 'specializations',
            'availability_status', 'current_load', 'max_load',
            'completed_reviews', 'late_reviews', 'overall_rating',
            'reliability_score', 'can_accept_review', 'last_review_date',
            'is_active'
        ]
        read_only_fields = fields


class ReviewAssignmentSerializer(serializers.ModelSerializer):
    """Serializer for review assignments."""
    reviewer_info = ReviewerProfileSerializer(source='reviewer', read_only=True)
    assigned_by_info = ProfileSummarySerializer(source='assigned_by', read_only=True)
    article_title = serializers.CharField(source='article.title', read_only=True)

    class Meta:
        model = ReviewAssignment
        fields = [
            'id', 'article', 'article_title', 'reviewer', 'reviewer_info',
            'assigned_by_info', 'status', 'origin', 'assigned_date', 'due_date',
            'accepted_at', 'declined_at', 'completed_at', 'decline_reason',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ReviewerSelectionRequestSerializer(serializers.Serializer):
    """Request body for selecting (and optionally assigning) reviewers."""
    article = serializers.UUIDField()
    target_count = serializers.IntegerField(min_value=1, required=False)
    exclude_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        default=list,
        help_text="Profile IDs that must not be selected"
    )
    assign = serializers.BooleanField(default=False)
    due_date = serializers.DateTimeField(required=False)


class SelectedReviewerSerializer(serializers.Serializer):
    reviewer_id = serializers.UUIDField()
    profile_id = serializers.UUIDField()
    name = serializers.CharField()
    email = serializers.EmailField()
    affiliation = serializers.CharField(allow_blank=True)
    origin = serializers.ChoiceField(choices=ReviewAssignment.ORIGIN_CHOICES)
    recommendation_id = serializers.UUIDField(allow_null=True)
    scores = serializers.DictField(child=serializers.IntegerField())
    current_load = serializers.IntegerField()
    max_load = serializers.IntegerField()
    completed_reviews = serializers.IntegerField()


class ReviewerSelectionResponseSerializer(serializers.Serializer):
    article_id = serializers.UUIDField()
    target_count = serializers.IntegerField()
    selected = SelectedReviewerSerializer(many=True)
    recommended_used = serializers.IntegerField()
    system_found = serializers.IntegerField()
    shortfall = serializers.IntegerField()
    steps = serializers.DictField(child=serializers.IntegerField())
    active_assignments = serializers.IntegerField()
    assignments = ReviewAssignmentSerializer(many=True, required=False)


class DeclineSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
