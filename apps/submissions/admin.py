from django.contrib import admin
from .models import Article, Submission, StatusHistoryEntry


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    list_display = ('title', 'category', 'author', 'created_at')
    list_filter = ('category',)
    search_fields = ('title', 'abstract', 'author__user__email')
    raw_id_fields = ('author',)


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ('article', 'status', 'author', 'handling_editor', 'stage_entered_at', 'is_overdue', 'version')
    list_filter = ('status', 'is_overdue', 'created_at')
    search_fields = ('article__title', 'author__user__email')
    readonly_fields = ('status', 'stage_entered_at', 'version', 'is_overdue')
    date_hierarchy = 'created_at'


@admin.register(StatusHistoryEntry)
class StatusHistoryEntryAdmin(admin.ModelAdmin):
    list_display = ('submission', 'from_status', 'status', 'actor', 'actor_role', 'timestamp')
    list_filter = ('status', 'actor_role')
    search_fields = ('submission__article__title', 'notes')

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
