"""
Views for stage time limit configuration.
"""
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.common.permissions import CanConfigureTimeLimits
from apps.deadlines.models import WorkflowTimeLimit
from apps.deadlines.serializers import (
    TimeLimitBatchResponseSerializer,
    TimeLimitBatchSerializer,
    TimeLimitUpdateSerializer,
    WorkflowTimeLimitSerializer,
)
from apps.deadlines.services import configure_time_limits, update_time_limit
import logging

logger = logging.getLogger(__name__)


class TimeLimitView(APIView):
    """
    Stage time limits.

    Endpoints:
    - GET /api/v1/deadlines/time-limits/ - List configured limits
    - POST /api/v1/deadlines/time-limits/ - Upsert one row or {"time_limits": [...]}
    - PUT /api/v1/deadlines/time-limits/ - Partial update {"stage": ..., "updates": {...}}
    """
    permission_classes = [permissions.IsAuthenticated, CanConfigureTimeLimits]

    @extend_schema(summary="List stage time limits", responses={200: WorkflowTimeLimitSerializer(many=True)})
    def get(self, request):
        time_limits = WorkflowTimeLimit.objects.all()
        return Response({
            'time_limits': WorkflowTimeLimitSerializer(time_limits, many=True).data,
            'total': time_limits.count(),
        })

    @extend_schema(
        summary="Configure stage time limits",
        request=TimeLimitBatchSerializer,
        responses={200: TimeLimitBatchResponseSerializer}
    )
    def post(self, request):
        if isinstance(request.data, dict) and 'time_limits' in request.data:
            serializer = TimeLimitBatchSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            rows = serializer.validated_data['time_limits']
        else:
            rows = [request.data]

        outcome = configure_time_limits(rows, actor=getattr(request.user, 'profile', None))
        summary = outcome['summary']
        logger.info(
            f"Time limits configured by {request.user.email}: "
            f"{summary['successful']}/{summary['total']} successful"
        )
        response_status = status.HTTP_200_OK if summary['successful'] else status.HTTP_400_BAD_REQUEST
        return Response(outcome, status=response_status)

    @extend_schema(
        summary="Update a stage time limit",
        request=TimeLimitUpdateSerializer,
        responses={200: WorkflowTimeLimitSerializer}
    )
    def put(self, request):
        serializer = TimeLimitUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        time_limit = update_time_limit(
            serializer.validated_data['stage'],
            serializer.validated_data['updates'],
            actor=getattr(request.user, 'profile', None),
        )
        return Response(WorkflowTimeLimitSerializer(time_limit).data)
