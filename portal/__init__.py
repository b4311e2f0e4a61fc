"""Vaccination portal application.

This package contains the models, request schemas, services, views and
route registrations behind the school vaccination portal API.
"""
