import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from registration.exceptions import SecondaryEffectFailure
from registration.models import Notification
from registration.rabbitmq import publisher

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Notification dispatcher backed by an outbox table.

    notify() only records the Notification row. Publication of the
    notification.created event happens after the surrounding transaction
    commits (see registration.signals) and is retried by dispatch_pending().
    """

    def notify(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        application_id=None,
        document_id=None,
    ) -> Notification:
        notification = Notification.objects.create(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            application_id=application_id,
            document_id=document_id,
        )
        logger.info(f"Recorded {type} notification {notification.id} for user {user_id}")
        return notification

    def dispatch(self, notification: Notification) -> bool:
        """
        Publish one notification.created event and record the attempt.

        Returns:
            bool: True if the event reached the broker, False otherwise
        """
        try:
            success = publisher.publish_notification_created(notification.to_event())
            error = None if success else "Broker unavailable"
        except Exception as e:
            logger.error(f"Failed to publish notification {notification.id}: {str(e)}")
            success = False
            error = str(e)

        Notification.objects.filter(pk=notification.pk).update(
            dispatch_attempts=F("dispatch_attempts") + 1,
            dispatched_at=timezone.now() if success else None,
            last_error=error,
        )
        return success

    def dispatch_pending(self, limit: int = None) -> dict:
        """
        Relay undelivered notifications, oldest first.

        Args:
            limit: Maximum rows to process, defaults to NOTIFICATION_RELAY_BATCH_SIZE

        Returns:
            dict: Counts of 'dispatched' and 'failed' rows
        """
        limit = limit or settings.NOTIFICATION_RELAY_BATCH_SIZE
        pending = Notification.objects.filter(
            dispatched_at__isnull=True,
            dispatch_attempts__lt=settings.NOTIFICATION_MAX_DISPATCH_ATTEMPTS,
        ).order_by("created_at")[:limit]

        result = {"dispatched": 0, "failed": 0}
        for notification in pending:
            if self.dispatch(notification):
                result["dispatched"] += 1
            else:
                result["failed"] += 1

        logger.info(
            f"Notification relay: {result['dispatched']} dispatched, {result['failed']} failed"
        )
        return result


def notify_best_effort(notifier, **kwargs):
    """
    Record a notification without ever failing the caller.

    Runs inside a savepoint so a database error raised by the notifier does
    not poison the caller's transaction.

    Returns:
        The notifier's result, or None when it failed
    """
    try:
        with transaction.atomic():
            return notifier.notify(**kwargs)
    except Exception as e:
        failure = SecondaryEffectFailure(f"{kwargs.get('type', 'notification')} notification", e)
        logger.warning(f"Notification for user {kwargs.get('user_id')} skipped: {failure}")
        return None
