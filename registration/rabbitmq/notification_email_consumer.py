#!/usr/bin/env python
"""
RabbitMQ consumer for notification.created events.

Every committed Notification row is published to the notification.created
queue. This consumer mails the application owner when one of their
documents is rejected; all other notification types are acknowledged and
ignored.

Usage:
    python manage.py run_notification_email_consumer

Or manually:
    python -m registration.rabbitmq.notification_email_consumer
"""
import logging
import os
import sys

import django

# Setup Django
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
django.setup()

from django.conf import settings  # noqa: E402

from registration.exceptions import NotFoundError  # noqa: E402
from registration.models import Notification  # noqa: E402
from registration.rabbitmq.consumer import RabbitMQConsumer, create_message_handler  # noqa: E402
from registration.services.email_service import EmailService  # noqa: E402
from registration.services.lookups import first_or_not_found  # noqa: E402

logger = logging.getLogger(__name__)


def handle_notification_created(message: dict, email_service=None) -> dict:
    """
    Handle notification.created events.

    Expected message format (Notification.to_event()):
    {
        "id": "<uuid>",
        "userId": "...",
        "type": "document_rejected",
        "title": "...",
        "message": "<rejection reason>",
        "applicationId": "<uuid>",
        "documentId": "<uuid>"
    }

    Returns:
        dict: Contains 'success' boolean and 'message' string
    """
    notification_type = message.get("type")
    if notification_type != Notification.TYPE_DOCUMENT_REJECTED:
        logger.info(f"Ignoring {notification_type} notification {message.get('id')}")
        return {"success": True, "message": "Ignored: not a document rejection"}

    try:
        notification = first_or_not_found(
            Notification.objects.select_related("application", "document"),
            "notification",
            message.get("id"),
        )
    except NotFoundError as e:
        logger.error(f"notification.created event dropped: {e}")
        return {"success": False, "message": str(e)}

    application = notification.application
    if application is None or not application.owner_email:
        logger.warning(f"No owner e-mail for notification {notification.id}, skipping")
        return {"success": False, "message": "Owner has no e-mail"}

    document = notification.document
    label = document.label if document else "Document"
    name = document.name if document else ""

    logger.info(f"Sending rejection e-mail for notification {notification.id}")
    email_service = email_service or EmailService()
    return email_service.send_document_rejected(
        to=application.owner_email,
        document_label=label,
        document_name=name,
        reason=notification.message,
        display_name=application.applicant_display_name,
    )


def main():
    """Run the notification.created e-mail consumer."""
    queue_name = settings.RABBITMQ_NOTIFICATIONS_QUEUE

    logger.info(
        f"Starting notification e-mail consumer on '{queue_name}' "
        f"({settings.RABBITMQ_HOST}:{settings.RABBITMQ_PORT})"
    )

    consumer = RabbitMQConsumer(queue_name)
    callback = create_message_handler(handle_notification_created)

    try:
        consumer.consume(callback)
    except KeyboardInterrupt:
        logger.info("Notification e-mail consumer stopped by user")
        consumer.stop()
    except Exception as e:
        logger.error(f"Notification e-mail consumer error: {str(e)}")
        consumer.stop()
        raise


if __name__ == "__main__":
    main()
