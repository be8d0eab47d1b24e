from django.contrib import admin
from .models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action_type', 'resource_type', 'resource_id', 'actor_type', 'user']
    list_filter = ['action_type', 'resource_type', 'actor_type']
    search_fields = ['resource_id', 'user__email']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
