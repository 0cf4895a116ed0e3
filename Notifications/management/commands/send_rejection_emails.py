from django.core.management.base import BaseCommand

from Notifications.rejections import BATCH_SIZE, send_rejection_emails


class Command(BaseCommand):
    help = "Email candidates whose applications were rejected a few days ago."

    def add_arguments(self, parser):
        parser.add_argument("--days", type=int, default=None, help="Days to wait after the rejection.")
        parser.add_argument("--limit", type=int, default=BATCH_SIZE)

    def handle(self, *args, **options):
        results = send_rejection_emails(options["days"], options["limit"])
        sent = sum(1 for r in results if r.get("ok"))
        self.stdout.write(f"processed={len(results)} sent={sent} failed={len(results) - sent}")
