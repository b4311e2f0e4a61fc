from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsPortalUser
from portal.serializers.base import LimitQuerySerializer
from portal.services.audit import format_activity, recent_activity
from portal.services.dashboard import dashboard_stats, vaccination_progress_by_grade
from portal.services.drives import format_drive, upcoming_drives


def _limit(request, default: int) -> int:
    q = LimitQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return q.validated_data.get('limit') or default


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalUser])
def stats(request):
    return Response(dashboard_stats())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalUser])
def vaccination_progress(request):
    return Response(vaccination_progress_by_grade())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalUser])
def upcoming(request):
    return Response([format_drive(d) for d in upcoming_drives(limit=_limit(request, 3))])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalUser])
def activity_logs(request):
    return Response([format_activity(a) for a in recent_activity(limit=_limit(request, 10))])
