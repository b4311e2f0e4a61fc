import itertools
from datetime import timedelta

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from portal.models import Student, User, VaccinationDrive


@pytest.fixture(autouse=True)
def _reset_throttles():
    # Throttle counters live in the local memory cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username='admin1', password='Adm1n-Passw0rd', name='Admin One', role='admin')


@pytest.fixture
def coordinator(db):
    return User.objects.create_user(username='coord1', password='C00rd-Passw0rd', name='Coordinator One',
                                    role='coordinator')


@pytest.fixture
def api(coordinator):
    client = APIClient()
    client.force_authenticate(user=coordinator)
    return client


@pytest.fixture
def make_student(db):
    counter = itertools.count(1)

    def _make(**kwargs):
        n = next(counter)
        fields = {
            'student_id': f'ST-TEST-{n:04d}',
            'first_name': f'First{n:02d}',
            'last_name': f'Last{n:02d}',
            'grade': '8',
        }
        fields.update(kwargs)
        return Student.objects.create(**fields)
    return _make


@pytest.fixture
def make_drive(db, today):
    """Create drives straight through the ORM, bypassing the scheduling rules."""
    counter = itertools.count(1)

    def _make(**kwargs):
        n = next(counter)
        fields = {
            'drive_id': f'DR-TEST-{n:03d}',
            'vaccine_name': 'MMR',
            'drive_date': today + timedelta(days=20),
            'applicable_grades': '8,9',
            'available_doses': 10,
            'status': VaccinationDrive.STATUS_SCHEDULED,
        }
        fields.update(kwargs)
        return VaccinationDrive.objects.create(**fields)
    return _make
