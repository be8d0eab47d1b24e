"""
URL configuration for reviews app.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from apps.reviews.views import (
    AvailableReviewersViewSet,
    ReviewAssignmentViewSet,
    ReviewerSelectionViewSet,
)

app_name = 'reviews'

router = DefaultRouter()
router.register(r'assignments', ReviewAssignmentViewSet, basename='assignment')
router.register(r'selection', ReviewerSelectionViewSet, basename='selection')
router.register(r'reviewers', AvailableReviewersViewSet, basename='reviewers')

urlpatterns = [
    path('', include(router.urls)),
]
