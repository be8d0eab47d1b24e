"""
Views for reviewer selection and review assignments.
"""
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter
from django_filters.rest_framework import DjangoFilterBackend

from apps.common.exceptions import ValidationError
from apps.common.permissions import IsAdminOrEditor, actor_role
from apps.common.utils import workflow_setting
from apps.reviews.matching import ReviewerMatchingEngine, SelectionResult
from apps.reviews.models import ACTIVE_ASSIGNMENT_STATUSES, ReviewAssignment
from apps.reviews.serializers import (
    DeclineSerializer,
    ReviewAssignmentSerializer,
    ReviewerSelectionRequestSerializer,
    ReviewerSelectionResponseSerializer,
)
from apps.reviews.services import assign_reviewers, complete_assignment, respond_to_assignment
from apps.users.models import EDITOR_ROLES
import logging

logger = logging.getLogger(__name__)


class ReviewerSelectionViewSet(viewsets.ViewSet):
    """
    Reviewer selection for editors.

    Endpoints:
    - POST /api/v1/reviews/selection/ - Select reviewers, optionally assign them
    - GET /api/v1/reviews/selection/preview/?article= - Dry run, saves nothing
    """
    permission_classes = [permissions.IsAuthenticated, IsAdminOrEditor]

    @extend_schema(
        summary="Select reviewers",
        description=(
            "Merge author-recommended reviewers with system candidates. "
            "With assign=true the selection is assigned in one transaction."
        ),
        request=ReviewerSelectionRequestSerializer,
        responses={200: ReviewerSelectionResponseSerializer, 201: ReviewerSelectionResponseSerializer}
    )
    def create(self, request):
        serializer = ReviewerSelectionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        # target_count is the article's total; active reviewers already hold slots
        target_count = data.get('target_count') or workflow_setting('DEFAULT_TARGET_REVIEWERS', 3)
        active = ReviewAssignment.objects.filter(
            article_id=data['article'],
            status__in=ACTIVE_ASSIGNMENT_STATUSES,
        ).count()
        open_slots = target_count - active

        if open_slots <= 0:
            payload = SelectionResult(article_id=str(data['article']), target_count=0).as_dict()
            payload['active_assignments'] = active
            if data['assign']:
                payload['assignments'] = []
            return Response(payload, status=status.HTTP_200_OK)

        engine = ReviewerMatchingEngine()
        result = engine.select_reviewers(data['article'], open_slots, exclude_ids=data['exclude_ids'])

        payload = result.as_dict()
        payload['active_assignments'] = active
        if not data['assign']:
            return Response(payload, status=status.HTTP_200_OK)

        assignments = assign_reviewers(
            data['article'],
            result,
            request.user.profile,
            target_count,
            due_date=data.get('due_date'),
        )
        payload['assignments'] = ReviewAssignmentSerializer(assignments, many=True).data
        return Response(payload, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Preview reviewer selection",
        parameters=[
            OpenApiParameter(
                name='article',
                type=str,
                location=OpenApiParameter.QUERY,
                description='UUID of the article',
                required=True
            ),
            OpenApiParameter(
                name='limit',
                type=int,
                location=OpenApiParameter.QUERY,
                description='Maximum number of system candidates',
                required=False
            )
        ]
    )
    @action(detail=False, methods=['get'])
    def preview(self, request):
        article_id = request.query_params.get('article')
        if not article_id:
            raise ValidationError("article parameter is required.")
        try:
            limit = int(request.query_params.get('limit', 10))
        except ValueError:
            raise ValidationError("limit must be an integer.")

        return Response(ReviewerMatchingEngine().preview(article_id, limit=limit))


class AvailableReviewersViewSet(viewsets.ViewSet):
    """
    Reviewer pool listing sorted by availability.

    Endpoints:
    - GET /api/v1/reviews/reviewers/available/
    """
    permission_classes = [permissions.IsAuthenticated, IsAdminOrEditor]

    @extend_schema(
        summary="List available reviewers",
        parameters=[
            OpenApiParameter(name='query', type=str, location=OpenApiParameter.QUERY, required=False,
                             description='Match on name, email or affiliation'),
            OpenApiParameter(name='category', type=str, location=OpenApiParameter.QUERY, required=False,
                             description='Expertise or specialization term'),
            OpenApiParameter(name='article', type=str, location=OpenApiParameter.QUERY, required=False,
                             description='Hide reviewers already assigned to this article'),
        ]
    )
    @action(detail=False, methods=['get'])
    def available(self, request):
        params = request.query_params
        reviewers = ReviewerMatchingEngine().available_reviewers(
            query=params.get('query', ''),
            category=params.get('category', ''),
            article_id=params.get('article') or None,
        )
        return Response({
            'reviewers': reviewers,
            'total': len(reviewers),
            'filters': {
                'query': params.get('query', ''),
                'category': params.get('category', ''),
                'article': params.get('article'),
            },
        })


@extend_schema_view(
    list=extend_schema(
        summary="List review assignments",
        description="Editors see every assignment, reviewers see their own"
    ),
    retrieve=extend_schema(summary="Get review assignment details"),
)
class ReviewAssignmentViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Review assignments and their lifecycle.

    Endpoints:
    - POST /api/v1/reviews/assignments/{id}/accept/
    - POST /api/v1/reviews/assignments/{id}/decline/
    - POST /api/v1/reviews/assignments/{id}/complete/
    """
    serializer_class = ReviewAssignmentSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status', 'origin', 'article']

    def get_queryset(self):
        queryset = ReviewAssignment.objects.select_related(
            'article', 'reviewer__profile__user', 'assigned_by__user'
        ).order_by('due_date')
        role = actor_role(self.request.user)
        if role == 'admin' or role in EDITOR_ROLES:
            return queryset
        return queryset.filter(reviewer__profile__user=self.request.user)

    @extend_schema(summary="Accept a review invitation", request=None, responses={200: ReviewAssignmentSerializer})
    @action(detail=True, methods=['post'])
    def accept(self, request, pk=None):
        assignment = respond_to_assignment(pk, request.user.profile, accept=True)
        return Response(self.get_serializer(assignment).data)

    @extend_schema(summary="Decline a review invitation", request=DeclineSerializer,
                   responses={200: ReviewAssignmentSerializer})
    @action(detail=True, methods=['post'])
    def decline(self, request, pk=None):
        serializer = DeclineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = respond_to_assignment(
            pk, request.user.profile, accept=False, reason=serializer.validated_data['reason']
        )
        return Response(self.get_serializer(assignment).data)

    @extend_schema(summary="Complete a review", request=None, responses={200: ReviewAssignmentSerializer})
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        assignment = complete_assignment(pk, request.user.profile)
        logger.info(f"Review assignment completed: {assignment.id}")
        return Response(self.get_serializer(assignment).data)
