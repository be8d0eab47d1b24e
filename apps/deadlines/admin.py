from django.contrib import admin

from .models import FiredNotificationMarker, WorkflowTimeLimit


@admin.register(WorkflowTimeLimit)
class WorkflowTimeLimitAdmin(admin.ModelAdmin):
    list_display = ['stage', 'time_limit_days', 'reminder_days', 'escalation_days', 'is_active', 'updated_at']
    list_filter = ['is_active']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(FiredNotificationMarker)
class FiredNotificationMarkerAdmin(admin.ModelAdmin):
    list_display = ['submission', 'stage', 'offset_type', 'offset_value', 'status', 'fired_at']
    list_filter = ['stage', 'offset_type', 'status']
    readonly_fields = [
        'id', 'submission', 'stage', 'offset_type', 'offset_value', 'status', 'recipients', 'claimed_at', 'fired_at'
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
