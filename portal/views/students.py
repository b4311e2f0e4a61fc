"""
Student management views.

Besides the usual list/create/update/delete endpoints this module hosts
the bulk CSV import used when a new school year is set up.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import ValidationError
from portal.permissions import IsPortalUser
from portal.serializers.students import StudentCreateSerializer, StudentListQuerySerializer, StudentUpdateSerializer
from portal.services.pagination import page_payload
from portal.services.students import (
    create_student, delete_student, format_student, get_student, import_students_csv, list_students, update_student,
)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPortalUser])
def students(request):
    if request.method == 'GET':
        q = StudentListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        vd = q.validated_data
        items, total, page, limit = list_students(
            search=vd.get('search'),
            grade=vd.get('grade'),
            vaccination_status=vd.get('vaccinationStatus'),
            drive_id=vd.get('driveId'),
            page=vd.get('page'),
            limit=vd.get('limit'),
        )
        return Response(page_payload('students', [format_student(s) for s in items], total, page, limit))

    s = StudentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    student = create_student(request.user, s.validated_data)
    return Response(format_student(student), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsPortalUser])
def student_detail(request, pk: int):
    if request.method == 'GET':
        return Response(format_student(get_student(pk)))
    if request.method == 'DELETE':
        delete_student(request.user, pk)
        return Response({'ok': True, 'message': 'Student deleted successfully'})

    s = StudentUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    student = update_student(request.user, pk, dict(s.validated_data))
    return Response(format_student(student))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPortalUser])
@parser_classes([MultiPartParser, FormParser])
def import_students(request):
    upload = request.FILES.get('file')
    if not upload:
        raise ValidationError('No file uploaded')
    if upload.size > settings.UPLOAD_MAX_MB * 1024 * 1024:
        raise ValidationError(f'File exceeds the {settings.UPLOAD_MAX_MB} MB upload limit')
    name = (upload.name or '').lower()
    if not name.endswith('.csv'):
        raise ValidationError('Only CSV files are accepted')
    count = import_students_csv(request.user, upload)
    return Response(
        {'ok': True, 'message': f'Successfully imported {count} students', 'count': count},
        status=status.HTTP_201_CREATED,
    )
