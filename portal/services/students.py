import csv
import io
import logging
import secrets
from datetime import date
from typing import Optional, Tuple, List

from django.db import IntegrityError, transaction
from django.db.models import Exists, OuterRef, ProtectedError, Q
from django.utils import timezone

from portal.exceptions import DuplicateError, NotFoundError, ValidationError
from portal.models import Student, VaccinationDrive, VaccinationRecord
from portal.serializers.students import StudentCreateSerializer
from portal.services.audit import log_action
from portal.services.pagination import paginate

logger = logging.getLogger(__name__)

# Spreadsheet column titles accepted by the CSV import; other columns are ignored
CSV_HEADER_ALIASES = {
    'student id': 'studentId',
    'first name': 'firstName',
    'last name': 'lastName',
    'email': 'email',
    'date of birth': 'dateOfBirth',
    'dob': 'dateOfBirth',
    'grade': 'grade',
    'class': 'grade',
    'address': 'address',
    'parent contact': 'parentContact',
    'parent phone': 'parentContact',
}
CSV_FIELDS = set(CSV_HEADER_ALIASES.values())


def generate_student_id(today: Optional[date] = None, taken: Optional[set] = None) -> str:
    today = today or timezone.localdate()
    taken = taken or set()
    while True:
        candidate = f"ST-{today:%y%m}-{secrets.randbelow(9000) + 1000}"
        if candidate not in taken and not Student.objects.filter(student_id=candidate).exists():
            return candidate


def get_student(pk: int) -> Student:
    student = Student.objects.filter(pk=pk).first()
    if not student:
        raise NotFoundError('Student not found')
    return student


def create_student(user, data: dict) -> Student:
    data = dict(data)
    student_id = data.pop('student_id', None) or generate_student_id()
    if Student.objects.filter(student_id=student_id).exists():
        raise DuplicateError(f'Student ID {student_id} already exists')
    try:
        with transaction.atomic():
            student = Student.objects.create(student_id=student_id, **data)
            log_action(
                user=user, action='CREATE_STUDENT',
                description=f'Added student {student.full_name()} ({student.student_id})',
                object_type='student', object_id=student.id,
            )
    except IntegrityError:
        raise DuplicateError(f'Student ID {student_id} already exists')
    return student


def update_student(user, pk: int, changes: dict) -> Student:
    with transaction.atomic():
        student = Student.objects.select_for_update().filter(pk=pk).first()
        if not student:
            raise NotFoundError('Student not found')
        new_id = changes.get('student_id')
        if new_id and new_id != student.student_id and Student.objects.filter(student_id=new_id).exists():
            raise DuplicateError(f'Student ID {new_id} already exists')
        changed = []
        for field, value in changes.items():
            if getattr(student, field) != value:
                setattr(student, field, value)
                changed.append(field)
        if changed:
            student.save(update_fields=changed)
            log_action(
                user=user, action='UPDATE_STUDENT',
                description=f'Updated student {student.full_name()} ({student.student_id})',
                object_type='student', object_id=student.id, detail={'fields': changed},
            )
    return student


def delete_student(user, pk: int) -> None:
    with transaction.atomic():
        student = Student.objects.select_for_update().filter(pk=pk).first()
        if not student:
            raise NotFoundError('Student not found')
        if student.vaccination_records.exists():
            raise ValidationError('Cannot delete a student who has vaccination records; remove the records first')
        description = f'Deleted student {student.full_name()} ({student.student_id})'
        try:
            student.delete()
        except ProtectedError:
            raise ValidationError('Cannot delete a student who has vaccination records; remove the records first')
        log_action(user=user, action='DELETE_STUDENT', description=description, object_type='student', object_id=pk)


def list_students(*, search: Optional[str] = None, grade: Optional[str] = None,
                  vaccination_status: Optional[str] = None, drive_id: Optional[int] = None,
                  page: Optional[int] = None, limit: Optional[int] = None) -> Tuple[List[Student], int, int, int]:
    qs = Student.objects.annotate(
        is_vaccinated=Exists(VaccinationRecord.objects.filter(student=OuterRef('pk'))),
    )
    if search:
        term = search.strip()
        qs = qs.filter(
            Q(first_name__icontains=term) | Q(last_name__icontains=term)
            | Q(email__icontains=term) | Q(student_id__icontains=term)
        )
    if grade and grade.lower() != 'all':
        qs = qs.filter(grade=grade)
    if vaccination_status == 'vaccinated':
        qs = qs.filter(is_vaccinated=True)
    elif vaccination_status == 'pending':
        qs = qs.filter(is_vaccinated=False)
    if drive_id:
        drive = VaccinationDrive.objects.filter(pk=drive_id).first()
        if not drive:
            raise NotFoundError('Vaccination drive not found')
        qs = qs.filter(grade__in=drive.grade_list())
    return paginate(qs.order_by('last_name', 'first_name', 'id'), page, limit)


def _read_csv(upload) -> List[dict]:
    raw = upload.read()
    try:
        text = raw.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ValidationError('CSV file must be UTF-8 encoded')
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationError('CSV file is empty')
    rows = []
    for row in reader:
        item = {}
        for key, value in row.items():
            if key is None:
                continue
            name = key.strip()
            name = CSV_HEADER_ALIASES.get(name.lower(), name)
            if name not in CSV_FIELDS:
                continue
            value = (value or '').strip()
            if value:
                item[name] = value
        if item:
            rows.append(item)
    return rows


def import_students_csv(user, upload) -> int:
    """Create every student in ``upload`` or none of them.

    Each row goes through the same schema as a single create; all errors
    are collected and reported together with their 1-based data row.
    """
    rows = _read_csv(upload)
    if not rows:
        raise ValidationError('CSV file contains no students')

    errors, cleaned, seen = [], [], set()
    for index, row in enumerate(rows, start=1):
        s = StudentCreateSerializer(data=row)
        if not s.is_valid():
            errors.append({'row': index, 'errors': s.errors})
            continue
        data = dict(s.validated_data)
        sid = data.get('student_id')
        if sid and (sid in seen or Student.objects.filter(student_id=sid).exists()):
            errors.append({'row': index, 'errors': {'studentId': [f'Student ID {sid} already exists']}})
            continue
        if sid:
            seen.add(sid)
        cleaned.append(data)

    if errors:
        raise ValidationError(f'{len(errors)} row(s) in the CSV file are invalid', details=errors)

    today = timezone.localdate()
    try:
        with transaction.atomic():
            for data in cleaned:
                if not data.get('student_id'):
                    data['student_id'] = generate_student_id(today, taken=seen)
                    seen.add(data['student_id'])
                Student.objects.create(**data)
            log_action(
                user=user, action='IMPORT_STUDENTS',
                description=f'Imported {len(cleaned)} students from CSV',
                object_type='student', detail={'count': len(cleaned)},
            )
    except IntegrityError:
        raise DuplicateError('CSV file contains a student ID that already exists')
    logger.info('imported %d students', len(cleaned))
    return len(cleaned)


def format_student(student: Student) -> dict:
    vaccinated = getattr(student, 'is_vaccinated', None)
    if vaccinated is None:
        vaccinated = student.vaccination_records.exists()
    return {
        'id': student.id,
        'studentId': student.student_id,
        'firstName': student.first_name,
        'lastName': student.last_name,
        'email': student.email,
        'dateOfBirth': student.date_of_birth.isoformat() if student.date_of_birth else None,
        'grade': student.grade,
        'address': student.address,
        'parentContact': student.parent_contact,
        'vaccinated': bool(vaccinated),
        'createdAt': student.created_at.isoformat() if student.created_at else None,
    }
