from rest_framework import serializers

from .base import StrictSerializer, clean_text


class RecordCreateSerializer(StrictSerializer):
    studentId = serializers.IntegerField(min_value=1)
    driveId = serializers.IntegerField(min_value=1)
    vaccinationDate = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)

    def validate_notes(self, v):
        return clean_text(v) or None


class RecordListQuerySerializer(serializers.Serializer):
    studentId = serializers.IntegerField(required=False, min_value=1)
    driveId = serializers.IntegerField(required=False, min_value=1)
