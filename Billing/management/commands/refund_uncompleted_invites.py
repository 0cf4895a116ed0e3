from django.conf import settings
from django.core.management.base import BaseCommand

from Billing.credits import refund_uncompleted_invites


class Command(BaseCommand):
    help = "Refund reserved credits of assessment invites that were not completed in time. Run daily."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=settings.CREDIT_REFUND_AFTER_DAYS,
            help="Refund reservations older than this many days.",
        )

    def handle(self, *args, **options):
        summary = refund_uncompleted_invites(options["days"])
        self.stdout.write(
            f"refunded={summary['refunded']} failed={summary['failed']} total={summary['total_amount']}"
        )
