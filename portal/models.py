"""
Database models for the school vaccination portal.

These models capture the core concepts of the system: portal users,
students, vaccination drives, the records linking a student to a drive
and the append-only activity log.  Field names are snake_case here and
converted to the camelCase JSON the front-end expects by the service
layer's ``format_*`` helpers.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import F, Q


class User(AbstractUser):
    """Portal account with a role.

    Only administrators and coordinators use the portal; students never
    log in.  ``name`` is the display name shown in the header and the
    activity feed.
    """
    ROLE_ADMIN = 'admin'
    ROLE_COORDINATOR = 'coordinator'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_COORDINATOR, 'Coordinator'),
    ]
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_COORDINATOR)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Student(models.Model):
    """A student who may receive vaccinations.

    ``student_id`` is the school's human-readable identifier (e.g.
    ``ST-2410-4821``); the numeric primary key is used in URLs.
    """
    student_id = models.CharField(max_length=50, unique=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(blank=True, null=True)
    date_of_birth = models.DateField(blank=True, null=True)
    # Grade filters both the student list and drive eligibility
    grade = models.CharField(max_length=20, db_index=True)
    address = models.TextField(blank=True, null=True)
    parent_contact = models.CharField(max_length=100, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return f"{self.full_name()} ({self.student_id})"


class VaccinationDrive(models.Model):
    """A scheduled vaccination event with a fixed dose capacity."""
    STATUS_PLANNING = 'planning'
    STATUS_SCHEDULED = 'scheduled'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PLANNING, 'Planning'),
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

    drive_id = models.CharField(max_length=50, unique=True)
    vaccine_name = models.CharField(max_length=255)
    drive_date = models.DateField(db_index=True)
    # Comma separated grade labels, e.g. "8,9,10"
    applicable_grades = models.CharField(max_length=255)
    available_doses = models.PositiveIntegerField()
    used_doses = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(used_doses__gte=0),
                name='drive_used_doses_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(used_doses__lte=F('available_doses')),
                name='drive_used_doses_within_capacity',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'drive_date'], name='drive_status_date_idx'),
        ]

    @property
    def remaining_doses(self) -> int:
        return max(0, self.available_doses - self.used_doses)

    def grade_list(self) -> list[str]:
        return [g.strip() for g in (self.applicable_grades or '').split(',') if g.strip()]

    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def __str__(self) -> str:
        return f"{self.vaccine_name} on {self.drive_date} ({self.drive_id})"


class VaccinationRecord(models.Model):
    """Evidence that one student received one dose under one drive.

    The (student, drive) pair is unique at the database level; the
    service layer translates the resulting ``IntegrityError`` into a
    ``DuplicateError``.
    """
    student = models.ForeignKey(Student, on_delete=models.PROTECT, related_name='vaccination_records')
    drive = models.ForeignKey(VaccinationDrive, on_delete=models.PROTECT, related_name='records')
    vaccination_date = models.DateField()
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['student', 'drive'], name='student_drive_unique'),
        ]
        indexes = [
            models.Index(fields=['drive', 'vaccination_date'], name='record_drive_date_idx'),
        ]

    def __str__(self) -> str:
        return f"Record {self.id}: student={self.student_id} drive={self.drive_id}"


class ActivityLog(models.Model):
    """Append-only audit trail of administrative actions."""
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='activity_logs')
    action = models.CharField(max_length=64)
    description = models.TextField()
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='activity_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='activity_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
