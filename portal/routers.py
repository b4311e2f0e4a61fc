"""
URL mappings for the vaccination portal API.

All API paths live under ``/api`` without trailing slashes, matching the
browser client.  Names are used by the test-suite via ``reverse``.
"""
from django.urls import path, include

from .auth_views import jwt_logout_view, jwt_refresh_view, login_view, register_view
from .views import dashboard, drives, health, records, students

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/register', register_view, name='register_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout'),
    path('api/students', students.students, name='students'),
    path('api/students/import', students.import_students, name='students_import'),
    path('api/students/<int:pk>', students.student_detail, name='student_detail'),
    path('api/vaccination-drives', drives.drives, name='drives'),
    path('api/vaccination-drives/<int:pk>', drives.drive_detail, name='drive_detail'),
    path('api/vaccination-records', records.records, name='records'),
    path('api/vaccination-records/<int:pk>', records.record_detail, name='record_detail'),
    path('api/dashboard/stats', dashboard.stats, name='dashboard_stats'),
    path('api/dashboard/vaccination-progress', dashboard.vaccination_progress, name='dashboard_progress'),
    path('api/dashboard/upcoming-drives', dashboard.upcoming, name='dashboard_upcoming'),
    path('api/dashboard/activity-logs', dashboard.activity_logs, name='dashboard_activity'),
]
