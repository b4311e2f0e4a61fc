"""Aggregates for the dashboard widgets.

Every figure counts distinct students, so a student vaccinated in several
drives is counted once and grade percentages never exceed 100.
"""
from datetime import date
from typing import Optional

from django.db.models import Count, Q
from django.utils import timezone

from portal.models import Student, VaccinationDrive
from portal.services.drives import settle_lapsed_drives


def dashboard_stats(today: Optional[date] = None) -> dict:
    today = today or timezone.localdate()
    settle_lapsed_drives(today)
    total = Student.objects.count()
    vaccinated = Student.objects.filter(vaccination_records__isnull=False).distinct().count()
    upcoming = VaccinationDrive.objects.filter(
        status=VaccinationDrive.STATUS_SCHEDULED, drive_date__gte=today,
    ).count()
    return {
        'totalStudents': total,
        'vaccinated': vaccinated,
        'upcomingDrives': upcoming,
        'pending': total - vaccinated,
    }


def vaccination_progress_by_grade() -> list[dict]:
    rows = (
        Student.objects.values('grade')
        .annotate(
            total=Count('id', distinct=True),
            vaccinated=Count('id', filter=Q(vaccination_records__isnull=False), distinct=True),
        )
        .order_by('grade')
    )
    return [
        {
            'grade': row['grade'],
            'total': row['total'],
            'vaccinated': row['vaccinated'],
            'percentage': round(row['vaccinated'] * 100 / row['total']) if row['total'] else 0,
        }
        for row in rows
    ]
