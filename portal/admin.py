"""
Django admin registrations for the portal models.

Lets superusers inspect students, drives and records through ``/admin/``.
Dose counters are read-only here; they are maintained by the record
service and must stay equal to the number of records per drive.
"""
from django.contrib import admin

from .models import ActivityLog, Student, User, VaccinationDrive, VaccinationRecord


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'name', 'role', 'is_active', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'name')


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ('student_id', 'first_name', 'last_name', 'grade', 'created_at')
    list_filter = ('grade',)
    search_fields = ('student_id', 'first_name', 'last_name', 'email')


@admin.register(VaccinationDrive)
class VaccinationDriveAdmin(admin.ModelAdmin):
    list_display = ('drive_id', 'vaccine_name', 'drive_date', 'status', 'used_doses', 'available_doses')
    list_filter = ('status',)
    search_fields = ('drive_id', 'vaccine_name')
    readonly_fields = ('used_doses', 'created_at', 'updated_at')


@admin.register(VaccinationRecord)
class VaccinationRecordAdmin(admin.ModelAdmin):
    list_display = ('id', 'student', 'drive', 'vaccination_date')
    list_filter = ('drive',)
    raw_id_fields = ('student', 'drive')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'action', 'object_type', 'object_id', 'created_at')
    list_filter = ('action',)
    readonly_fields = ('user', 'action', 'description', 'object_type', 'object_id', 'detail', 'created_at')
