from django.core.management.base import BaseCommand

from portal.services.drives import settle_lapsed_drives


class Command(BaseCommand):
    help = "Complete or cancel vaccination drives whose date has passed. Safe to run from cron."

    def handle(self, *args, **opts):
        settled = settle_lapsed_drives()
        self.stdout.write(self.style.SUCCESS(f"Settled {settled} drive(s)."))
