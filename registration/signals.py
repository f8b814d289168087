import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from registration.models import Notification
from registration.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Notification)
def notification_post_save(sender, instance, created, **kwargs):
    """Publish notification.created once the row that produced it is committed."""
    if not created:
        return

    def dispatch():
        if not NotificationService().dispatch(instance):
            logger.warning(
                f"Notification {instance.id} not published, left for dispatch_pending_notifications"
            )

    transaction.on_commit(dispatch)
