"""
Serializers for submissions and their workflow state.
"""

from rest_framework import serializers

from apps.users.serializers import ProfileSummarySerializer
from .models import Article, Submission, StatusHistoryEntry
from .workflow import STATUSES


class ArticleSerializer(serializers.ModelSerializer):
    """Read-only article metadata."""

    author = ProfileSummarySerializer(read_only=True)

    class Meta:
        model = Article
        fields = ('id', 'title', 'abstract', 'keywords', 'category', 'author', 'created_at')
        read_only_fields = fields


class StatusHistoryEntrySerializer(serializers.ModelSerializer):
    actor = ProfileSummarySerializer(read_only=True)

    class Meta:
        model = StatusHistoryEntry
        fields = ('id', 'from_status', 'status', 'actor', 'actor_role', 'notes', 'timestamp')
        read_only_fields = fields


class SubmissionSerializer(serializers.ModelSerializer):
    """Submission with its article and current stage."""

    article = ArticleSerializer(read_only=True)
    author = ProfileSummarySerializer(read_only=True)
    handling_editor = ProfileSummarySerializer(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Submission
        fields = (
            'id', 'article', 'author', 'handling_editor', 'status',
            'status_display', 'stage_entered_at', 'version', 'is_overdue',
            'created_at', 'updated_at'
        )
        read_only_fields = fields


class TransitionRequestSerializer(serializers.Serializer):
    """Payload of a status change request."""

    status = serializers.ChoiceField(choices=STATUSES)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    expected_version = serializers.IntegerField(required=False, min_value=1)


class TransitionResponseSerializer(serializers.Serializer):
    submission_id = serializers.UUIDField()
    status = serializers.CharField()
    changed = serializers.BooleanField()
    history_entry = StatusHistoryEntrySerializer(allow_null=True)
    next_steps = serializers.ListField(child=serializers.CharField())


class WorkflowStatusSerializer(serializers.Serializer):
    """Current workflow state of a submission."""

    submission = SubmissionSerializer()
    history = StatusHistoryEntrySerializer(many=True)
    allowed_targets = serializers.ListField(child=serializers.CharField())
    next_steps = serializers.ListField(child=serializers.CharField())
    estimated_completion = serializers.CharField()
