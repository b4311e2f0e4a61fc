"""
Integration tests for the vaccination portal API.

These tests exercise the HTTP contract of the drive and record endpoints:
status codes, the camelCase payloads and the error envelope returned for
each domain error.  They use Django REST Framework's APIClient within the
APITestCase base class.

To run the tests:

```
pytest -q portal/tests
```
"""
from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import ActivityLog, Student, User, VaccinationDrive, VaccinationRecord


class VaccinationAPITests(APITestCase):
    def setUp(self) -> None:
        self.today = timezone.localdate()
        self.user = User.objects.create_user(username="coord1", password="C00rd-Passw0rd", name="Coordinator One",
                                             role="coordinator")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.alice = Student.objects.create(student_id="ST-0001", first_name="Alice", last_name="Adams", grade="8")
        self.bob = Student.objects.create(student_id="ST-0002", first_name="Bob", last_name="Brown", grade="9")
        self.carol = Student.objects.create(student_id="ST-0003", first_name="Carol", last_name="Clark", grade="8")
        self.drive = VaccinationDrive.objects.create(
            drive_id="DR-0001", vaccine_name="MMR", drive_date=self.today + timedelta(days=20),
            applicable_grades="8,9", available_doses=2,
        )

    def _record(self, student, drive=None):
        return self.client.post(reverse("records"), {
            "studentId": student.id,
            "driveId": (drive or self.drive).id,
            "vaccinationDate": self.today.isoformat(),
        }, format="json")

    def assertError(self, response, http_status, code):
        self.assertEqual(response.status_code, http_status)
        self.assertFalse(response.data["ok"])
        self.assertEqual(response.data["error"]["code"], code)
        self.assertTrue(response.data["error"]["message"])

    def test_create_drive(self):
        payload = {
            "vaccineName": "<b>Hepatitis B</b>",
            "driveDate": (self.today + timedelta(days=15)).isoformat(),
            "applicableGrades": ["10", "11"],
            "availableDoses": 50,
        }
        r = self.client.post(reverse("drives"), payload, format="json")
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertEqual(r.data["vaccineName"], "Hepatitis B")
        self.assertEqual(r.data["applicableGrades"], "10,11")
        self.assertEqual(r.data["status"], "scheduled")
        self.assertEqual(r.data["usedDoses"], 0)
        self.assertEqual(r.data["remainingDoses"], 50)
        self.assertTrue(ActivityLog.objects.filter(action="CREATE_VACCINATION_DRIVE", user=self.user).exists())

    def test_text_fields_lose_markup_but_keep_ampersands(self):
        r = self.client.post(reverse("drives"), {
            "vaccineName": "Tdap & MMR <i>booster</i>",
            "driveDate": (self.today + timedelta(days=30)).isoformat(),
            "applicableGrades": "7",
            "availableDoses": 10,
            "notes": "<script>alert(1)</script>Bring forms",
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertEqual(r.data["vaccineName"], "Tdap & MMR booster")
        self.assertNotIn("<", r.data["notes"])
        self.assertTrue(r.data["notes"].endswith("Bring forms"))

    def test_create_drive_too_soon(self):
        r = self.client.post(reverse("drives"), {
            "vaccineName": "Polio",
            "driveDate": (self.today + timedelta(days=14)).isoformat(),
            "applicableGrades": "5",
            "availableDoses": 10,
        }, format="json")
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "validation_error")
        self.assertEqual(VaccinationDrive.objects.count(), 1)
        self.assertFalse(ActivityLog.objects.exists())

    def test_unknown_and_missing_fields_are_rejected(self):
        r = self.client.post(reverse("drives"), {
            "vaccineName": "Polio",
            "driveDate": (self.today + timedelta(days=30)).isoformat(),
            "applicableGrades": "5",
            "availableDoses": 10,
            "usedDoses": 5,
        }, format="json")
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "validation_error")
        self.assertIn("usedDoses", r.data["error"]["details"])

        r = self.client.post(reverse("drives"), {"vaccineName": "Polio"}, format="json")
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "validation_error")
        self.assertIn("driveDate", r.data["error"]["details"])

    def test_update_drive_date_too_soon(self):
        url = reverse("drive_detail", args=[self.drive.id])
        r = self.client.put(url, {"driveDate": (self.today + timedelta(days=5)).isoformat()}, format="json")
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "validation_error")
        self.drive.refresh_from_db()
        self.assertEqual(self.drive.drive_date, self.today + timedelta(days=20))

    def test_update_drive_partial(self):
        url = reverse("drive_detail", args=[self.drive.id])
        r = self.client.put(url, {"availableDoses": 40, "notes": "Gym hall"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["availableDoses"], 40)
        self.assertEqual(r.data["notes"], "Gym hall")
        self.assertEqual(r.data["vaccineName"], "MMR")

    def test_drive_id_cannot_be_changed(self):
        url = reverse("drive_detail", args=[self.drive.id])
        r = self.client.put(url, {"driveId": "DR-OTHER"}, format="json")
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "validation_error")

    def test_empty_update_is_rejected(self):
        r = self.client.put(reverse("drive_detail", args=[self.drive.id]), {}, format="json")
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "validation_error")

    def test_past_drive_is_immutable(self):
        past = VaccinationDrive.objects.create(
            drive_id="DR-PAST", vaccine_name="Flu", drive_date=self.today - timedelta(days=3),
            applicable_grades="8", available_doses=5,
        )
        r = self.client.put(reverse("drive_detail", args=[past.id]), {"notes": "x"}, format="json")
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "immutable_state")

        r = self._record(self.alice, past)
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "immutable_state")

        r = self.client.get(reverse("drive_detail", args=[past.id]))
        self.assertEqual(r.data["status"], "completed")

    def test_drive_not_found(self):
        r = self.client.get(reverse("drive_detail", args=[999]))
        self.assertError(r, status.HTTP_404_NOT_FOUND, "not_found")

    def test_record_until_capacity(self):
        r = self._record(self.alice)
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertEqual(r.data["studentName"], "Alice Adams")
        self.assertEqual(r.data["vaccineName"], "MMR")
        self.assertEqual(self._record(self.bob).status_code, status.HTTP_201_CREATED)

        r = self._record(self.carol)
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "capacity_exceeded")
        self.drive.refresh_from_db()
        self.assertEqual(self.drive.used_doses, 2)

    def test_duplicate_record(self):
        self.assertEqual(self._record(self.alice).status_code, status.HTTP_201_CREATED)
        r = self._record(self.alice)
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "duplicate")
        self.drive.refresh_from_db()
        self.assertEqual(self.drive.used_doses, 1)

    def test_record_missing_student(self):
        r = self.client.post(reverse("records"), {
            "studentId": 999, "driveId": self.drive.id, "vaccinationDate": self.today.isoformat(),
        }, format="json")
        self.assertError(r, status.HTTP_404_NOT_FOUND, "not_found")

    def test_remove_record_restores_dose(self):
        record_id = self._record(self.alice).data["id"]
        r = self.client.delete(reverse("record_detail", args=[record_id]))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.drive.refresh_from_db()
        self.assertEqual(self.drive.used_doses, 0)
        self.assertFalse(VaccinationRecord.objects.exists())

        r = self.client.delete(reverse("record_detail", args=[record_id]))
        self.assertError(r, status.HTTP_404_NOT_FOUND, "not_found")

    def test_list_records_filters(self):
        self._record(self.alice)
        self._record(self.bob)
        r = self.client.get(reverse("records"), {"studentId": self.bob.id})
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(len(r.data), 1)
        self.assertEqual(r.data[0]["studentCode"], "ST-0002")

    def test_delete_drive_with_records(self):
        self._record(self.alice)
        r = self.client.delete(reverse("drive_detail", args=[self.drive.id]))
        self.assertError(r, status.HTTP_400_BAD_REQUEST, "validation_error")
        self.assertTrue(VaccinationDrive.objects.filter(pk=self.drive.id).exists())

    def test_delete_drive(self):
        r = self.client.delete(reverse("drive_detail", args=[self.drive.id]))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertTrue(r.data["ok"])
        self.assertFalse(VaccinationDrive.objects.exists())

    def test_unauthenticated_requests_are_rejected(self):
        r = APIClient().get(reverse("drives"))
        self.assertError(r, status.HTTP_401_UNAUTHORIZED, "not_authenticated")
