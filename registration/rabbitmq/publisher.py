import json
import logging
import threading

import pika
from django.conf import settings

logger = logging.getLogger(__name__)


def connection_parameters() -> pika.ConnectionParameters:
    """Connection parameters from settings, with bounded socket and blocked-connection timeouts."""
    credentials = pika.PlainCredentials(settings.RABBITMQ_USER, settings.RABBITMQ_PASSWORD)
    return pika.ConnectionParameters(
        host=settings.RABBITMQ_HOST,
        port=settings.RABBITMQ_PORT,
        virtual_host=settings.RABBITMQ_VHOST,
        credentials=credentials,
        heartbeat=600,
        socket_timeout=settings.RABBITMQ_SOCKET_TIMEOUT,
        blocked_connection_timeout=settings.RABBITMQ_SOCKET_TIMEOUT,
    )


class RabbitMQPublisher:
    """RabbitMQ publisher for registration notification events."""

    def __init__(self):
        """Initialize RabbitMQ publisher with configuration from settings."""
        self.connection = None
        self.channel = None
        self._initialize_connection()

    def _initialize_connection(self):
        """Initialize the RabbitMQ connection and channel."""
        try:
            self.connection = pika.BlockingConnection(connection_parameters())
            self.channel = self.connection.channel()
            self.channel.queue_declare(queue=settings.RABBITMQ_NOTIFICATIONS_QUEUE, durable=True)
            logger.info("RabbitMQ publisher initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize RabbitMQ publisher: {str(e)}")
            self.connection = None
            self.channel = None

    def publish_notification_created(self, payload: dict) -> bool:
        """
        Publish a notification.created event to RabbitMQ.
        Consumed by the e-mail relay, which mails the owner for rejections.

        Args:
            payload: Event body built by Notification.to_event()

        Returns:
            bool: True if successful, False otherwise
        """
        if not self.channel:
            logger.warning("RabbitMQ channel not initialized, attempting to reconnect")
            self._initialize_connection()
            if not self.channel:
                logger.error("Failed to reconnect to RabbitMQ")
                return False

        try:
            self.channel.basic_publish(
                exchange="",
                routing_key=settings.RABBITMQ_NOTIFICATIONS_QUEUE,
                body=json.dumps(payload, default=str),
                properties=pika.BasicProperties(
                    delivery_mode=2, content_type="application/json"  # Make message persistent
                ),
            )
            logger.info(
                f"Published notification.created event {payload.get('id')} ({payload.get('type')})"
            )
            return True

        except Exception as e:
            logger.error(f"Failed to publish notification.created event: {str(e)}")
            # Try to reconnect for next time
            self._close()
            return False

    def _close(self):
        """Close the RabbitMQ connection."""
        try:
            if self.connection and not self.connection.is_closed:
                self.connection.close()
                logger.info("RabbitMQ connection closed")
        except Exception as e:
            logger.error(f"Error closing RabbitMQ connection: {str(e)}")
        finally:
            self.connection = None
            self.channel = None

    def __del__(self):
        """Cleanup on object destruction."""
        self._close()


# One publisher per thread, pika connections must not be shared across threads
_local = threading.local()


def get_publisher() -> RabbitMQPublisher:
    """Get or create the publisher instance of the calling thread."""
    publisher = getattr(_local, "publisher", None)
    if publisher is None:
        publisher = RabbitMQPublisher()
        _local.publisher = publisher
    return publisher


def publish_notification_created(payload: dict) -> bool:
    """
    Publish a notification.created event to RabbitMQ.

    Args:
        payload: Event body built by Notification.to_event()

    Returns:
        bool: True if successful, False otherwise
    """
    publisher = get_publisher()
    return publisher.publish_notification_created(payload)
