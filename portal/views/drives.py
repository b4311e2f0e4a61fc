"""
Vaccination drive endpoints.

Scheduling rules, status transitions and lapse settlement are enforced in
``portal.services.drives``; the views only validate request shape and
render responses.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsPortalUser
from portal.serializers.drives import DriveCreateSerializer, DriveListQuerySerializer, DriveUpdateSerializer
from portal.services.drives import create_drive, delete_drive, format_drive, get_drive, list_drives, update_drive
from portal.services.pagination import page_payload


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPortalUser])
def drives(request):
    if request.method == 'GET':
        q = DriveListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        vd = q.validated_data
        items, total, page, limit = list_drives(
            search=vd.get('search'),
            status=vd.get('status'),
            start_date=vd.get('startDate'),
            end_date=vd.get('endDate'),
            page=vd.get('page'),
            limit=vd.get('limit'),
        )
        return Response(page_payload('drives', [format_drive(d) for d in items], total, page, limit))

    s = DriveCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    drive = create_drive(request.user, **s.validated_data)
    return Response(format_drive(drive), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsPortalUser])
def drive_detail(request, pk: int):
    if request.method == 'GET':
        return Response(format_drive(get_drive(pk)))
    if request.method == 'DELETE':
        delete_drive(request.user, pk)
        return Response({'ok': True, 'message': 'Vaccination drive deleted successfully'})

    s = DriveUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    drive = update_drive(request.user, pk, dict(s.validated_data))
    return Response(format_drive(drive))
