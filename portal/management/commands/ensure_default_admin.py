from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from portal.models import User


class Command(BaseCommand):
    help = "Ensure the bootstrap administrator account exists (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--username", default=None)
        parser.add_argument("--password", default=None)
        parser.add_argument("--reset-password", action="store_true",
                            help="Overwrite the password of an existing account.")

    def handle(self, *args, **opts):
        username = opts["username"] or settings.DEFAULT_ADMIN_USERNAME
        password = opts["password"] or settings.DEFAULT_ADMIN_PASSWORD
        if not password:
            raise CommandError("Set DEFAULT_ADMIN_PASSWORD or pass --password")

        user, created = User.objects.get_or_create(
            username=username,
            defaults={"name": "Administrator", "role": User.ROLE_ADMIN, "is_active": True},
        )
        if created or opts["reset_password"]:
            user.set_password(password)
        user.role = User.ROLE_ADMIN
        user.is_active = True
        user.save()
        state = "created" if created else "updated"
        self.stdout.write(self.style.SUCCESS(f"ok: {username} ({state})"))
