"""
Serializers for stage time limits.
"""
from rest_framework import serializers

from .models import WorkflowTimeLimit


class WorkflowTimeLimitSerializer(serializers.ModelSerializer):
    stage_display = serializers.CharField(source='get_stage_display', read_only=True)

    class Meta:
        model = WorkflowTimeLimit
        fields = [
            'id', 'stage', 'stage_display', 'stage_description', 'time_limit_days',
            'reminder_days', 'escalation_days', 'escalation_recipient_roles',
            'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class TimeLimitBatchSerializer(serializers.Serializer):
    """Rows are validated one by one by the service so bad rows are reported, not rejected."""
    time_limits = serializers.ListField(child=serializers.DictField(), allow_empty=False)


class TimeLimitUpdateSerializer(serializers.Serializer):
    stage = serializers.CharField()
    updates = serializers.DictField()


class TimeLimitResultSerializer(serializers.Serializer):
    stage = serializers.CharField(allow_null=True)
    success = serializers.BooleanField()
    action = serializers.CharField(required=False)
    error = serializers.CharField(required=False)


class TimeLimitBatchResponseSerializer(serializers.Serializer):
    results = TimeLimitResultSerializer(many=True)
    summary = serializers.DictField(child=serializers.IntegerField())
