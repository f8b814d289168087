"""
Django management command to relay notifications that were never published.

Notifications are published right after the transaction that created them
commits. When the broker is down at that moment the row stays undispatched;
run this periodically (cron or a Kubernetes CronJob) to retry them.

Usage:
    python manage.py dispatch_pending_notifications --limit 200
"""

from django.core.management.base import BaseCommand

from registration.services.notification_service import NotificationService


class Command(BaseCommand):
    help = "Publish notification.created events for undispatched notifications"

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Maximum notifications to process (default: NOTIFICATION_RELAY_BATCH_SIZE)",
        )

    def handle(self, *args, **options):
        result = NotificationService().dispatch_pending(limit=options["limit"])
        message = f"Dispatched {result['dispatched']}, failed {result['failed']}"
        if result["failed"]:
            self.stdout.write(self.style.WARNING(message))
        else:
            self.stdout.write(self.style.SUCCESS(message))
