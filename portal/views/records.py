from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsPortalUser
from portal.serializers.records import RecordCreateSerializer, RecordListQuerySerializer
from portal.services.records import format_record, list_records, record_vaccination, remove_vaccination_record


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPortalUser])
def records(request):
    if request.method == 'GET':
        q = RecordListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        items = list_records(student_id=q.validated_data.get('studentId'), drive_id=q.validated_data.get('driveId'))
        return Response([format_record(r) for r in items])

    s = RecordCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    record = record_vaccination(
        request.user,
        student_id=vd['studentId'],
        drive_id=vd['driveId'],
        vaccination_date=vd['vaccinationDate'],
        notes=vd.get('notes'),
    )
    return Response(format_record(record), status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsPortalUser])
def record_detail(request, pk: int):
    remove_vaccination_record(request.user, pk)
    return Response({'ok': True, 'message': 'Vaccination record deleted successfully'})
