import re

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from portal.models import ActivityLog, Student, VaccinationRecord

pytestmark = pytest.mark.django_db


def _csv(text, name='students.csv'):
    return SimpleUploadedFile(name, text.encode('utf-8'), content_type='text/csv')


def test_create_student_generates_id(api):
    r = api.post(reverse('students'), {
        'firstName': 'Priya', 'lastName': 'Shah', 'grade': '7', 'email': '', 'dateOfBirth': '2012-04-01',
    }, format='json')
    assert r.status_code == 201
    assert re.fullmatch(r'ST-\d{4}-\d{4}', r.data['studentId'])
    assert r.data['email'] is None
    assert r.data['dateOfBirth'] == '2012-04-01'
    assert r.data['vaccinated'] is False
    assert ActivityLog.objects.filter(action='CREATE_STUDENT').count() == 1


def test_create_student_duplicate_id(api, make_student):
    make_student(student_id='ST-7')
    r = api.post(reverse('students'), {'studentId': 'ST-7', 'firstName': 'A', 'lastName': 'B', 'grade': '7'},
                 format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'duplicate'


def test_create_student_validation(api):
    r = api.post(reverse('students'), {'firstName': 'A', 'grade': '7', 'email': 'not-an-email'}, format='json')
    assert r.status_code == 400
    details = r.data['error']['details']
    assert 'lastName' in details and 'email' in details


def test_update_student(api, make_student):
    student = make_student(grade='8')
    r = api.put(reverse('student_detail', args=[student.id]), {'grade': '9', 'parentContact': '555-0101'},
                format='json')
    assert r.status_code == 200
    assert r.data['grade'] == '9'
    assert r.data['parentContact'] == '555-0101'
    assert r.data['firstName'] == student.first_name

    r = api.put(reverse('student_detail', args=[999]), {'grade': '9'}, format='json')
    assert r.status_code == 404


def test_delete_student_with_records_is_forbidden(api, make_student, make_drive):
    student = make_student()
    drive = make_drive(used_doses=1)
    VaccinationRecord.objects.create(student=student, drive=drive, vaccination_date=drive.drive_date)

    r = api.delete(reverse('student_detail', args=[student.id]))
    assert r.status_code == 400
    assert Student.objects.filter(pk=student.id).exists()

    other = make_student()
    r = api.delete(reverse('student_detail', args=[other.id]))
    assert r.status_code == 200
    assert not Student.objects.filter(pk=other.id).exists()


def test_import_students_with_spreadsheet_headers(api):
    content = (
        'Student ID,First Name,Last Name,Grade,Email,Date of Birth\n'
        'ST-100,Ana,Lopez,8,ana@school.test,2011-02-03\n'
        ',Ben,Okafor,9,,\n'
    )
    r = api.post(reverse('students_import'), {'file': _csv(content)}, format='multipart')
    assert r.status_code == 201
    assert r.data['count'] == 2
    assert Student.objects.get(student_id='ST-100').first_name == 'Ana'
    ben = Student.objects.get(first_name='Ben')
    assert ben.student_id.startswith('ST-')
    assert ActivityLog.objects.filter(action='IMPORT_STUDENTS').count() == 1


def test_import_accepts_camel_case_headers(api):
    content = 'firstName,lastName,grade\nZoe,Ng,10\n'
    r = api.post(reverse('students_import'), {'file': _csv(content)}, format='multipart')
    assert r.status_code == 201
    assert Student.objects.filter(first_name='Zoe', grade='10').exists()


def test_import_is_all_or_nothing(api, make_student):
    make_student(student_id='ST-EXISTS')
    content = (
        'studentId,firstName,lastName,grade\n'
        'ST-200,Ok,Row,8\n'
        'ST-201,Missing,,8\n'
        'ST-EXISTS,Dup,Row,8\n'
    )
    r = api.post(reverse('students_import'), {'file': _csv(content)}, format='multipart')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'validation_error'
    assert [row['row'] for row in r.data['error']['details']] == [2, 3]
    assert not Student.objects.filter(student_id='ST-200').exists()


def test_import_rejects_duplicates_within_file(api):
    content = 'studentId,firstName,lastName,grade\nST-1,A,B,8\nST-1,C,D,8\n'
    r = api.post(reverse('students_import'), {'file': _csv(content)}, format='multipart')
    assert r.status_code == 400
    assert Student.objects.count() == 0


def test_import_requires_csv_file(api):
    r = api.post(reverse('students_import'), {}, format='multipart')
    assert r.status_code == 400

    r = api.post(reverse('students_import'), {'file': _csv('firstName\n', name='notes.txt')}, format='multipart')
    assert r.status_code == 400

    r = api.post(reverse('students_import'), {'file': _csv('firstName,lastName,grade\n')}, format='multipart')
    assert r.status_code == 400


def test_import_ignores_unknown_columns(api):
    content = 'First Name,Last Name,Grade,Notes,Vaccinated\nAna,Lopez,8,allergic,no\n'
    r = api.post(reverse('students_import'), {'file': _csv(content)}, format='multipart')
    assert r.status_code == 201
    assert r.data['count'] == 1
    assert Student.objects.filter(first_name='Ana', last_name='Lopez', grade='8').exists()
