from django.contrib import admin
from .models import AuthorRecommendedReviewer, ReviewAssignment, ReviewerProfile


@admin.register(ReviewerProfile)
class ReviewerProfileAdmin(admin.ModelAdmin):
    list_display = ('profile', 'availability_status', 'current_load', 'max_load', 'completed_reviews', 'late_reviews', 'is_active')
    list_filter = ('availability_status', 'is_active')
    search_fields = ('profile__user__email', 'profile__display_name')
    raw_id_fields = ('profile',)


@admin.register(AuthorRecommendedReviewer)
class AuthorRecommendedReviewerAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'article', 'validation_status', 'resolved_reviewer')
    list_filter = ('validation_status',)
    search_fields = ('name', 'email', 'article__title')
    raw_id_fields = ('article', 'resolved_reviewer')


@admin.register(ReviewAssignment)
class ReviewAssignmentAdmin(admin.ModelAdmin):
    list_display = ('article', 'reviewer', 'status', 'origin', 'assigned_date', 'due_date')
    list_filter = ('status', 'origin')
    search_fields = ('article__title', 'reviewer__profile__user__email')
    raw_id_fields = ('article', 'reviewer', 'assigned_by')
    date_hierarchy = 'assigned_date'
