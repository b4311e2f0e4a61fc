"""
Vaccination drive lifecycle.

A drive moves through ``planning -> scheduled -> completed`` or ends in
``cancelled``.  Besides the manual transitions in ``_TRANSITIONS`` there is
one time-driven transition: once a drive's date has passed, a scheduled
drive is settled to ``completed`` and a planning drive to ``cancelled``.
Settlement is persisted whenever a drive is read or locked for mutation,
so past drives never need a date comparison to be recognised as final.

Dose accounting lives in :mod:`portal.services.records`; this module only
guarantees that capacity can never be lowered below the doses already used.
"""
import logging
import secrets
from datetime import date, timedelta
from typing import Optional, Tuple, List

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError
from django.utils import timezone

from portal.exceptions import DuplicateError, ImmutableStateError, NotFoundError, ValidationError
from portal.models import VaccinationDrive
from portal.serializers.base import normalize_grades
from portal.services.audit import log_action
from portal.services.pagination import paginate

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    VaccinationDrive.STATUS_PLANNING: [VaccinationDrive.STATUS_SCHEDULED],
    VaccinationDrive.STATUS_SCHEDULED: [VaccinationDrive.STATUS_COMPLETED, VaccinationDrive.STATUS_CANCELLED],
    VaccinationDrive.STATUS_COMPLETED: [],
    VaccinationDrive.STATUS_CANCELLED: [],
}

# Where a non-terminal drive ends up once its date has passed
_LAPSED = {
    VaccinationDrive.STATUS_PLANNING: VaccinationDrive.STATUS_CANCELLED,
    VaccinationDrive.STATUS_SCHEDULED: VaccinationDrive.STATUS_COMPLETED,
}


def can_transition(current: str, new: str) -> bool:
    """Return True if a drive may be moved by hand from ``current`` to ``new``."""
    return new in _TRANSITIONS.get(current, [])


def earliest_drive_date(today: date) -> date:
    return today + timedelta(days=settings.VACCINATION_MIN_LEAD_DAYS)


def _check_lead_time(drive_date: date, today: date) -> None:
    if drive_date < earliest_drive_date(today):
        raise ValidationError(
            f'Vaccination drives must be scheduled at least {settings.VACCINATION_MIN_LEAD_DAYS} days in advance'
        )


def generate_drive_id(today: date) -> str:
    for _ in range(20):
        candidate = f"DR-{today:%Y}-{today:%m}{secrets.randbelow(900) + 100}"
        if not VaccinationDrive.objects.filter(drive_id=candidate).exists():
            return candidate
    # A busy month can exhaust the three digit space
    return f"DR-{today:%Y}-{today:%m}{secrets.token_hex(3).upper()}"


def settle_drive(drive: VaccinationDrive, today: date) -> bool:
    """Apply the lapse transition to one drive; returns True if it changed."""
    target = _LAPSED.get(drive.status)
    if target is None or drive.drive_date >= today:
        return False
    logger.info('drive %s lapsed on %s: %s -> %s', drive.drive_id, drive.drive_date, drive.status, target)
    drive.status = target
    drive.save(update_fields=['status', 'updated_at'])
    return True


def settle_lapsed_drives(today: Optional[date] = None) -> int:
    """Settle every lapsed drive with one UPDATE per source status."""
    today = today or timezone.localdate()
    settled = 0
    for current, target in _LAPSED.items():
        settled += VaccinationDrive.objects.filter(status=current, drive_date__lt=today).update(
            status=target, updated_at=timezone.now(),
        )
    if settled:
        logger.info('settled %d lapsed drive(s)', settled)
    return settled


def ensure_mutable(drive: VaccinationDrive, today: date) -> None:
    settle_drive(drive, today)
    if drive.drive_date < today:
        raise ImmutableStateError('Cannot modify a vaccination drive that has already taken place')
    if drive.is_terminal():
        raise ImmutableStateError(f'Cannot modify a {drive.status} vaccination drive')


def get_drive(pk: int, today: Optional[date] = None) -> VaccinationDrive:
    drive = VaccinationDrive.objects.filter(pk=pk).first()
    if not drive:
        raise NotFoundError('Vaccination drive not found')
    settle_drive(drive, today or timezone.localdate())
    return drive


def _lock_drive(pk: int) -> VaccinationDrive:
    drive = VaccinationDrive.objects.select_for_update().filter(pk=pk).first()
    if not drive:
        raise NotFoundError('Vaccination drive not found')
    return drive


def create_drive(user, *, vaccine_name: str, drive_date: date, applicable_grades, available_doses: int,
                 notes: Optional[str] = None, drive_id: Optional[str] = None,
                 status: str = VaccinationDrive.STATUS_SCHEDULED,
                 today: Optional[date] = None) -> VaccinationDrive:
    today = today or timezone.localdate()
    _check_lead_time(drive_date, today)
    if status not in (VaccinationDrive.STATUS_PLANNING, VaccinationDrive.STATUS_SCHEDULED):
        raise ValidationError('A new vaccination drive must be in planning or scheduled status')
    grades = normalize_grades(applicable_grades)
    if not grades:
        raise ValidationError('At least one applicable grade is required')
    if available_doses < 1:
        raise ValidationError('Available doses must be at least 1')
    if drive_id and VaccinationDrive.objects.filter(drive_id=drive_id).exists():
        raise DuplicateError(f'Drive ID {drive_id} already exists')

    try:
        with transaction.atomic():
            drive = VaccinationDrive.objects.create(
                drive_id=drive_id or generate_drive_id(today),
                vaccine_name=vaccine_name,
                drive_date=drive_date,
                applicable_grades=grades,
                available_doses=available_doses,
                used_doses=0,
                status=status,
                notes=notes,
            )
            log_action(
                user=user, action='CREATE_VACCINATION_DRIVE',
                description=f'Created vaccination drive for {drive.vaccine_name} on {drive.drive_date}',
                object_type='vaccination_drive', object_id=drive.id,
                detail={'driveId': drive.drive_id, 'availableDoses': drive.available_doses},
            )
    except IntegrityError:
        raise DuplicateError(f'Drive ID {drive_id} already exists')
    logger.info('drive %s created for %s', drive.drive_id, drive.drive_date)
    return drive


def update_drive(user, pk: int, changes: dict, today: Optional[date] = None) -> VaccinationDrive:
    """Apply a partial update under a row lock.

    ``changes`` is keyed by model field name.  Rules are checked against
    the locked row, so a concurrent dose recording cannot slip between the
    capacity check and the save.
    """
    today = today or timezone.localdate()
    with transaction.atomic():
        drive = _lock_drive(pk)
        ensure_mutable(drive, today)

        new_date = changes.get('drive_date')
        if new_date is not None and new_date != drive.drive_date:
            _check_lead_time(new_date, today)

        new_capacity = changes.get('available_doses')
        if new_capacity is not None and new_capacity < drive.used_doses:
            raise ValidationError(
                f'Available doses cannot be lower than the {drive.used_doses} dose(s) already used'
            )

        new_status = changes.get('status')
        if new_status is not None and new_status != drive.status and not can_transition(drive.status, new_status):
            raise ValidationError(f'Cannot change status from {drive.status} to {new_status}')

        if 'applicable_grades' in changes:
            changes = dict(changes, applicable_grades=normalize_grades(changes['applicable_grades']))
            if not changes['applicable_grades']:
                raise ValidationError('At least one applicable grade is required')

        changed = []
        for field, value in changes.items():
            if getattr(drive, field) != value:
                setattr(drive, field, value)
                changed.append(field)
        if changed:
            drive.save(update_fields=changed + ['updated_at'])
            log_action(
                user=user, action='UPDATE_VACCINATION_DRIVE',
                description=f'Updated vaccination drive for {drive.vaccine_name}',
                object_type='vaccination_drive', object_id=drive.id,
                detail={'fields': changed},
            )
            logger.info('drive %s updated: %s', drive.drive_id, ', '.join(changed))
    return drive


def delete_drive(user, pk: int) -> None:
    with transaction.atomic():
        drive = _lock_drive(pk)
        if drive.records.exists():
            raise ValidationError(
                'Cannot delete a vaccination drive that has vaccination records; remove the records first'
            )
        description = f'Deleted vaccination drive for {drive.vaccine_name} on {drive.drive_date}'
        drive_code = drive.drive_id
        try:
            drive.delete()
        except ProtectedError:
            raise ValidationError(
                'Cannot delete a vaccination drive that has vaccination records; remove the records first'
            )
        log_action(
            user=user, action='DELETE_VACCINATION_DRIVE', description=description,
            object_type='vaccination_drive', object_id=pk, detail={'driveId': drive_code},
        )
    logger.info('drive %s deleted', drive_code)


def list_drives(*, search: Optional[str] = None, status: Optional[str] = None,
                start_date: Optional[date] = None, end_date: Optional[date] = None,
                page: Optional[int] = None, limit: Optional[int] = None,
                today: Optional[date] = None) -> Tuple[List[VaccinationDrive], int, int, int]:
    settle_lapsed_drives(today)
    qs = VaccinationDrive.objects.all()
    if search:
        qs = qs.filter(vaccine_name__icontains=search.strip())
    if status and status != 'all':
        qs = qs.filter(status=status)
    if start_date:
        qs = qs.filter(drive_date__gte=start_date)
    if end_date:
        qs = qs.filter(drive_date__lte=end_date)
    return paginate(qs.order_by('-drive_date', '-id'), page, limit)


def upcoming_drives(limit: int = 3, today: Optional[date] = None) -> List[VaccinationDrive]:
    today = today or timezone.localdate()
    settle_lapsed_drives(today)
    horizon = today + timedelta(days=settings.UPCOMING_DRIVE_WINDOW_DAYS)
    qs = VaccinationDrive.objects.filter(
        status=VaccinationDrive.STATUS_SCHEDULED, drive_date__gte=today, drive_date__lte=horizon,
    ).order_by('drive_date', 'id')
    return list(qs[:limit])


def format_drive(drive: VaccinationDrive) -> dict:
    return {
        'id': drive.id,
        'driveId': drive.drive_id,
        'vaccineName': drive.vaccine_name,
        'driveDate': drive.drive_date.isoformat(),
        'applicableGrades': drive.applicable_grades,
        'availableDoses': drive.available_doses,
        'usedDoses': drive.used_doses,
        'remainingDoses': drive.remaining_doses,
        'status': drive.status,
        'notes': drive.notes,
        'createdAt': drive.created_at.isoformat() if drive.created_at else None,
        'updatedAt': drive.updated_at.isoformat() if drive.updated_at else None,
    }
