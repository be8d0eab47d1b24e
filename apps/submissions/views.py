"""
Views for submissions and workflow transitions.
"""
from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import filters, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.common.permissions import actor_role
from apps.users.models import EDITOR_ROLES
from .models import Submission
from .serializers import (
    StatusHistoryEntrySerializer,
    SubmissionSerializer,
    TransitionRequestSerializer,
    TransitionResponseSerializer,
    WorkflowStatusSerializer,
)
from .workflow import (
    allowed_targets,
    estimated_completion,
    next_steps,
    request_transition,
)


class SubmissionViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Submissions visible to the caller.

    Editorial staff see every submission, authors see their own.
    """
    serializer_class = SubmissionSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'is_overdue']
    search_fields = ['article__title']
    ordering_fields = ['created_at', 'stage_entered_at']
    ordering = ['-created_at']

    def get_queryset(self):
        queryset = Submission.objects.select_related(
            'article', 'article__author__user', 'author__user', 'handling_editor__user'
        )
        role = actor_role(self.request.user)
        if role == 'admin' or role in EDITOR_ROLES:
            return queryset
        profile = getattr(self.request.user, 'profile', None)
        if profile is None:
            return queryset.none()
        return queryset.filter(Q(author=profile) | Q(article__coauthors=profile)).distinct()

    @extend_schema(
        summary="Change submission status",
        description="Request a status change. Permission is decided by the actor's role and ownership.",
        request=TransitionRequestSerializer,
        responses={200: TransitionResponseSerializer}
    )
    @action(detail=True, methods=['post'])
    def transition(self, request, pk=None):
        """Move the submission to a new status."""
        submission = self.get_object()
        serializer = TransitionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = request_transition(
            submission.id,
            serializer.validated_data['status'],
            request.user.profile,
            notes=serializer.validated_data.get('notes', ''),
            expected_version=serializer.validated_data.get('expected_version'),
        )

        return Response({
            'submission_id': str(submission.id),
            'status': result.status,
            'changed': result.changed,
            'history_entry': (
                StatusHistoryEntrySerializer(result.history_entry).data
                if result.history_entry else None
            ),
            'next_steps': next_steps(result.status),
        }, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Workflow status",
        description="Current status, history, allowed next statuses and estimated completion.",
        responses={200: WorkflowStatusSerializer}
    )
    @action(detail=True, methods=['get'])
    def workflow(self, request, pk=None):
        submission = self.get_object()
        profile = getattr(request.user, 'profile', None)
        targets = allowed_targets(
            actor_role(request.user),
            submission.status,
            is_owner=profile is not None and submission.author_id == profile.id,
        )

        data = {
            'submission': SubmissionSerializer(submission).data,
            'history': StatusHistoryEntrySerializer(submission.status_history, many=True).data,
            'allowed_targets': sorted(targets - {submission.status}),
            'next_steps': next_steps(submission.status),
            'estimated_completion': estimated_completion(submission.status),
        }
        return Response(data)
