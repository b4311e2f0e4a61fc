"""
Shared pieces for the request schemas.

Every request body is validated by a ``StrictSerializer`` so that
misspelled or unexpected keys are rejected before a service is called.
Query-string serializers use the plain ``serializers.Serializer`` because
browsers and proxies append their own parameters.
"""
import bleach
from django.conf import settings
from rest_framework import serializers


def clean_text(value):
    """Strip every tag; plain-text fields keep a literal ``&``."""
    if value is None:
        return None
    return bleach.clean(str(value).strip(), tags=[], strip=True).replace('&amp;', '&')


def normalize_grades(value) -> str:
    """Return a de-duplicated comma separated grade list.

    Accepts either ``"8, 9,10"`` or ``["8", "9", "10"]``.
    """
    items = value.split(',') if isinstance(value, str) else list(value or [])
    grades: list[str] = []
    for item in items:
        grade = clean_text(item)
        if grade and grade not in grades:
            grades.append(grade)
    return ','.join(grades)


class StrictSerializer(serializers.Serializer):
    def to_internal_value(self, data):
        if hasattr(data, 'keys'):
            unknown = sorted(set(data.keys()) - set(self.fields))
            if unknown:
                raise serializers.ValidationError({key: ['Unknown field.'] for key in unknown})
        return super().to_internal_value(data)


class GradeListField(serializers.Field):
    default_error_messages = {
        'empty': 'At least one grade is required.',
        'invalid': 'Expected a comma separated string or a list of grades.',
    }

    def to_internal_value(self, data):
        if not isinstance(data, (str, list, tuple)):
            self.fail('invalid')
        grades = normalize_grades(data)
        if not grades:
            self.fail('empty')
        if len(grades) > 255:
            raise serializers.ValidationError('Too many grades.')
        return grades

    def to_representation(self, value):
        return value


class PageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=settings.MAX_PAGE_SIZE)


class LimitQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, min_value=1, max_value=settings.MAX_PAGE_SIZE)
