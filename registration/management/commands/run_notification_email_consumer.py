"""
Django management command to run the notification e-mail consumer.

This command starts a RabbitMQ consumer that listens for notification.created
events and e-mails the application owner when a document is rejected.

Usage:
    python manage.py run_notification_email_consumer
"""

from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Run RabbitMQ consumer that e-mails document rejection notices"

    def handle(self, *args, **options):
        from registration.rabbitmq.notification_email_consumer import main

        self.stdout.write(self.style.SUCCESS("Starting notification e-mail consumer..."))
        main()
