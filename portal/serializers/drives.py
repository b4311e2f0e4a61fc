from rest_framework import serializers

from portal.models import VaccinationDrive
from .base import StrictSerializer, GradeListField, PageQuerySerializer, clean_text

STATUS_VALUES = [c[0] for c in VaccinationDrive.STATUS_CHOICES]
INITIAL_STATUSES = [VaccinationDrive.STATUS_PLANNING, VaccinationDrive.STATUS_SCHEDULED]


class DriveCreateSerializer(StrictSerializer):
    driveId = serializers.CharField(source='drive_id', max_length=50, required=False, allow_blank=True)
    vaccineName = serializers.CharField(source='vaccine_name', max_length=255)
    driveDate = serializers.DateField(source='drive_date')
    applicableGrades = GradeListField(source='applicable_grades')
    availableDoses = serializers.IntegerField(source='available_doses', min_value=1)
    status = serializers.ChoiceField(choices=INITIAL_STATUSES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)

    def validate_driveId(self, v):
        return clean_text(v) or None

    def validate_vaccineName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Vaccine name is required')
        return v

    def validate_notes(self, v):
        return clean_text(v) or None


class DriveUpdateSerializer(StrictSerializer):
    """Partial update; ``driveId`` is immutable and therefore not accepted."""
    vaccineName = serializers.CharField(source='vaccine_name', max_length=255, required=False)
    driveDate = serializers.DateField(source='drive_date', required=False)
    applicableGrades = GradeListField(source='applicable_grades', required=False)
    availableDoses = serializers.IntegerField(source='available_doses', min_value=1, required=False)
    status = serializers.ChoiceField(choices=STATUS_VALUES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)

    def validate_vaccineName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Vaccine name cannot be empty')
        return v

    def validate_notes(self, v):
        return clean_text(v) or None

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('No fields to update')
        return attrs


class DriveListQuerySerializer(PageQuerySerializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    status = serializers.ChoiceField(choices=STATUS_VALUES + ['all'], required=False, allow_blank=True)
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('startDate'), attrs.get('endDate')
        if start and end and start > end:
            raise serializers.ValidationError({'endDate': ['End date must not be before start date']})
        return attrs
