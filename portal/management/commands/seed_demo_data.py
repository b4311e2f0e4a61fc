"""
Management command to populate an empty database with demo data.
"""
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from portal.models import Student, VaccinationDrive

DEMO_STUDENTS = [
    ("S12345", "John", "Doe", "10", "john.doe@example.com", "2007-05-15", "123 Main St", "555-123-4567"),
    ("S12346", "Jane", "Smith", "9", "jane.smith@example.com", "2008-03-22", "456 Oak Ave", "555-987-6543"),
    ("S12347", "Michael", "Johnson", "11", "michael.j@example.com", "2006-11-10", "789 Pine St", "555-456-7890"),
    ("S12348", "Emily", "Williams", "8", "emily.w@example.com", "2009-07-18", "321 Cedar Ln", "555-321-6547"),
    ("S12349", "Daniel", "Brown", "12", "daniel.b@example.com", "2005-01-25", "654 Elm St", "555-789-4561"),
]

# (drive id, vaccine, days from today, grades, doses, notes)
DEMO_DRIVES = [
    ("VD001", "COVID-19 Vaccine", 20, "8,9,10", 100, "First dose vaccination drive for grades 8-10"),
    ("VD002", "Influenza Vaccine", 35, "11,12", 75, "Annual flu vaccination for grades 11-12"),
]


class Command(BaseCommand):
    help = "Add sample students and vaccination drives when the tables are empty"

    def handle(self, *args, **options):
        if Student.objects.exists():
            self.stdout.write("Students already exist. Skipping.")
        else:
            Student.objects.bulk_create([
                Student(student_id=sid, first_name=first, last_name=last, grade=grade, email=email,
                        date_of_birth=dob, address=address, parent_contact=contact)
                for sid, first, last, grade, email, dob, address, contact in DEMO_STUDENTS
            ])
            self.stdout.write(self.style.SUCCESS(f"Added {len(DEMO_STUDENTS)} sample students."))

        if VaccinationDrive.objects.exists():
            self.stdout.write("Vaccination drives already exist. Skipping.")
            return
        today = timezone.localdate()
        for drive_id, vaccine, days, grades, doses, notes in DEMO_DRIVES:
            VaccinationDrive.objects.create(
                drive_id=drive_id, vaccine_name=vaccine, drive_date=today + timedelta(days=days),
                applicable_grades=grades, available_doses=doses, status=VaccinationDrive.STATUS_SCHEDULED,
                notes=notes,
            )
        self.stdout.write(self.style.SUCCESS(f"Added {len(DEMO_DRIVES)} sample vaccination drives."))
