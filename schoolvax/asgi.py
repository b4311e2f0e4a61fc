"""
ASGI config for the schoolvax project.

The portal is plain request/response, so the ASGI entry point only
wraps the Django HTTP application.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "schoolvax.settings")

application = get_asgi_application()
