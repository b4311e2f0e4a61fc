"""
Dose accounting.

``used_doses`` on a drive always equals the number of records that
reference it.  Recording a dose increments the counter with a single
conditional UPDATE, so two coordinators racing for the last dose cannot
both succeed; the record insert shares the transaction and a failed insert
rolls the increment back.
"""
import logging
from datetime import date
from typing import Optional, List

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from portal.exceptions import (
    CapacityExceededError, DuplicateError, ImmutableStateError, NotFoundError, ValidationError,
)
from portal.models import Student, VaccinationDrive, VaccinationRecord
from portal.services.audit import log_action
from portal.services.drives import settle_drive

logger = logging.getLogger(__name__)


def _ensure_accepts_doses(drive: VaccinationDrive, today: date) -> None:
    settle_drive(drive, today)
    if drive.is_terminal() or drive.drive_date < today:
        raise ImmutableStateError(f'Cannot record vaccinations for a {drive.status} vaccination drive')
    if drive.status == VaccinationDrive.STATUS_PLANNING:
        raise ValidationError('Vaccination drive is still being planned; schedule it before recording doses')


def _refuse(drive_pk: int, today: date) -> None:
    """Explain why the conditional increment matched no row.

    The drive is re-read without a lock, so a dose freed by a concurrent
    removal after the increment failed shows up here as spare capacity.
    """
    drive = VaccinationDrive.objects.filter(pk=drive_pk).first()
    if not drive:
        raise NotFoundError('Vaccination drive not found')
    _ensure_accepts_doses(drive, today)
    if drive.used_doses < drive.available_doses:
        logger.info('drive %s freed a dose while this one was being recorded', drive.drive_id)
        raise CapacityExceededError('The last dose was taken at the same time; please try again')
    logger.warning('drive %s is full (%d/%d)', drive.drive_id, drive.used_doses, drive.available_doses)
    raise CapacityExceededError('No more doses available for this drive')


def record_vaccination(user, *, student_id: int, drive_id: int, vaccination_date: date,
                       notes: Optional[str] = None, today: Optional[date] = None) -> VaccinationRecord:
    today = today or timezone.localdate()
    student = Student.objects.filter(pk=student_id).first()
    if not student:
        raise NotFoundError('Student not found')
    drive = VaccinationDrive.objects.filter(pk=drive_id).first()
    if not drive:
        raise NotFoundError('Vaccination drive not found')
    _ensure_accepts_doses(drive, today)
    if VaccinationRecord.objects.filter(student=student, drive=drive).exists():
        raise DuplicateError('Student has already been vaccinated in this drive')

    try:
        with transaction.atomic():
            updated = VaccinationDrive.objects.filter(
                pk=drive.pk,
                status=VaccinationDrive.STATUS_SCHEDULED,
                drive_date__gte=today,
                used_doses__lt=F('available_doses'),
            ).update(used_doses=F('used_doses') + 1, updated_at=timezone.now())
            if not updated:
                _refuse(drive.pk, today)
            with transaction.atomic():
                record = VaccinationRecord.objects.create(
                    student=student, drive=drive, vaccination_date=vaccination_date, notes=notes,
                )
            log_action(
                user=user, action='CREATE_VACCINATION_RECORD',
                description=f'Recorded {drive.vaccine_name} vaccination for {student.full_name()}',
                object_type='vaccination_record', object_id=record.id,
                detail={'studentId': student.student_id, 'driveId': drive.drive_id},
            )
    except IntegrityError:
        # Concurrent insert of the same pair; the increment is rolled back
        raise DuplicateError('Student has already been vaccinated in this drive')
    logger.info('dose recorded: student=%s drive=%s', student.student_id, drive.drive_id)
    return record


def remove_vaccination_record(user, pk: int) -> None:
    """Delete a record and give its dose back, whatever the drive's status."""
    record = VaccinationRecord.objects.select_related('student', 'drive').filter(pk=pk).first()
    if not record:
        raise NotFoundError('Vaccination record not found')
    with transaction.atomic():
        deleted, _ = VaccinationRecord.objects.filter(pk=pk).delete()
        if not deleted:
            raise NotFoundError('Vaccination record not found')
        VaccinationDrive.objects.filter(pk=record.drive_id, used_doses__gt=0).update(
            used_doses=F('used_doses') - 1, updated_at=timezone.now(),
        )
        log_action(
            user=user, action='DELETE_VACCINATION_RECORD',
            description=f'Removed {record.drive.vaccine_name} vaccination record for {record.student.full_name()}',
            object_type='vaccination_record', object_id=pk,
            detail={'studentId': record.student.student_id, 'driveId': record.drive.drive_id},
        )
    logger.info('dose removed: student=%s drive=%s', record.student.student_id, record.drive.drive_id)


def list_records(student_id: Optional[int] = None, drive_id: Optional[int] = None) -> List[VaccinationRecord]:
    qs = VaccinationRecord.objects.select_related('student', 'drive')
    if student_id:
        qs = qs.filter(student_id=student_id)
    if drive_id:
        qs = qs.filter(drive_id=drive_id)
    return list(qs.order_by('-vaccination_date', '-id'))


def format_record(record: VaccinationRecord) -> dict:
    return {
        'id': record.id,
        'studentId': record.student_id,
        'driveId': record.drive_id,
        'vaccinationDate': record.vaccination_date.isoformat(),
        'notes': record.notes,
        'studentName': record.student.full_name(),
        'studentCode': record.student.student_id,
        'grade': record.student.grade,
        'vaccineName': record.drive.vaccine_name,
        'driveCode': record.drive.drive_id,
        'createdAt': record.created_at.isoformat() if record.created_at else None,
    }
