from rest_framework import serializers

from .base import StrictSerializer, PageQuerySerializer, clean_text

VACCINATION_STATUSES = ['all', 'vaccinated', 'pending']


class _StudentFieldsMixin:
    def validate_studentId(self, v):
        return clean_text(v) or None

    def validate_firstName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('First name is required')
        return v

    def validate_lastName(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Last name is required')
        return v

    def validate_email(self, v):
        return v or None

    def validate_grade(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Grade is required')
        return v

    def validate_address(self, v):
        return clean_text(v) or None

    def validate_parentContact(self, v):
        return clean_text(v) or None


class StudentCreateSerializer(_StudentFieldsMixin, StrictSerializer):
    studentId = serializers.CharField(source='student_id', max_length=50, required=False, allow_blank=True)
    firstName = serializers.CharField(source='first_name', max_length=100)
    lastName = serializers.CharField(source='last_name', max_length=100)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    dateOfBirth = serializers.DateField(source='date_of_birth', required=False, allow_null=True)
    grade = serializers.CharField(max_length=20)
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=500)
    parentContact = serializers.CharField(source='parent_contact', required=False, allow_blank=True,
                                          allow_null=True, max_length=100)


class StudentUpdateSerializer(_StudentFieldsMixin, StrictSerializer):
    studentId = serializers.CharField(source='student_id', max_length=50, required=False)
    firstName = serializers.CharField(source='first_name', max_length=100, required=False)
    lastName = serializers.CharField(source='last_name', max_length=100, required=False)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    dateOfBirth = serializers.DateField(source='date_of_birth', required=False, allow_null=True)
    grade = serializers.CharField(max_length=20, required=False)
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=500)
    parentContact = serializers.CharField(source='parent_contact', required=False, allow_blank=True,
                                          allow_null=True, max_length=100)

    def validate_studentId(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Student ID cannot be empty')
        return v

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('No fields to update')
        return attrs


class StudentListQuerySerializer(PageQuerySerializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    grade = serializers.CharField(required=False, allow_blank=True, max_length=20)
    vaccinationStatus = serializers.ChoiceField(choices=VACCINATION_STATUSES, required=False, allow_blank=True)
    driveId = serializers.IntegerField(required=False, min_value=1)
