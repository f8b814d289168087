"""
Tests for the notification outbox, its RabbitMQ publication and the relay command.
"""

import json
import threading
from io import StringIO
from unittest.mock import MagicMock

import pika
import pytest
from django.core.management import call_command
from django.db import IntegrityError

from registration.models import Notification
from registration.rabbitmq.consumer import create_message_handler
from registration.rabbitmq.publisher import RabbitMQPublisher, get_publisher
from registration.services.notification_service import NotificationService, notify_best_effort
from tests.conftest import FailingNotifier, RecordingNotifier


@pytest.fixture
def service():
    return NotificationService()


@pytest.fixture
def create_notification(db):
    def _create_notification(**kwargs):
        data = {
            "user_id": "user-1",
            "type": Notification.TYPE_DOCUMENT_REJECTED,
            "title": "Document Rejected: Groom's Aadhaar Card",
            "message": "Image is blurry",
            **kwargs,
        }
        return Notification.objects.create(**data)

    return _create_notification


@pytest.mark.django_db
class TestNotify:
    def test_notify_records_row(self, service, create_application):
        application = create_application()

        notification = service.notify(
            user_id="user-1",
            type=Notification.TYPE_APPLICATION_VERIFIED,
            title="Application Verified",
            message="Your application has been verified.",
            application_id=application.id,
        )

        stored = Notification.objects.get(pk=notification.pk)
        assert stored.application_id == application.id
        assert stored.read is False
        assert stored.dispatched_at is None
        assert stored.dispatch_attempts == 0

    def test_to_event(self, create_notification, create_application):
        application = create_application()
        notification = create_notification(application=application)

        event = notification.to_event()

        assert event["id"] == str(notification.id)
        assert event["userId"] == "user-1"
        assert event["applicationId"] == str(application.id)
        assert event["documentId"] is None
        assert event["type"] == Notification.TYPE_DOCUMENT_REJECTED


@pytest.mark.django_db
class TestDispatch:
    def test_dispatch_success_marks_row(self, service, create_notification, mock_publisher):
        notification = create_notification()

        assert service.dispatch(notification) is True

        mock_publisher.assert_called_once_with(notification.to_event())
        notification.refresh_from_db()
        assert notification.dispatched_at is not None
        assert notification.dispatch_attempts == 1
        assert notification.last_error is None

    def test_dispatch_broker_unavailable(self, service, create_notification, mock_publisher):
        mock_publisher.return_value = False
        notification = create_notification()

        assert service.dispatch(notification) is False

        notification.refresh_from_db()
        assert notification.dispatched_at is None
        assert notification.dispatch_attempts == 1
        assert notification.last_error == "Broker unavailable"

    def test_dispatch_publisher_exception(self, service, create_notification, mock_publisher):
        mock_publisher.side_effect = pika.exceptions.AMQPConnectionError("connection refused")
        notification = create_notification()

        assert service.dispatch(notification) is False

        notification.refresh_from_db()
        assert notification.dispatch_attempts == 1
        assert "connection refused" in notification.last_error

    def test_dispatch_pending_skips_delivered_and_exhausted(
        self, service, create_notification, mock_publisher, settings
    ):
        settings.NOTIFICATION_MAX_DISPATCH_ATTEMPTS = 3
        pending = create_notification()
        create_notification(dispatch_attempts=3)
        delivered = create_notification()
        service.dispatch(delivered)
        mock_publisher.reset_mock()

        result = service.dispatch_pending()

        assert result == {"dispatched": 1, "failed": 0}
        mock_publisher.assert_called_once_with(pending.to_event())

    def test_dispatch_pending_respects_limit(self, service, create_notification, mock_publisher):
        for _ in range(3):
            create_notification()

        result = service.dispatch_pending(limit=2)

        assert result == {"dispatched": 2, "failed": 0}
        assert Notification.objects.filter(dispatched_at__isnull=True).count() == 1

    def test_dispatch_pending_counts_failures(self, service, create_notification, mock_publisher):
        mock_publisher.return_value = False
        create_notification()
        create_notification()

        assert service.dispatch_pending() == {"dispatched": 0, "failed": 2}


@pytest.mark.django_db
class TestNotifyBestEffort:
    def test_returns_notifier_result(self):
        notifier = RecordingNotifier()

        result = notify_best_effort(notifier, user_id="user-1", type="other", title="t", message="m")

        assert result["user_id"] == "user-1"

    def test_swallows_notifier_errors(self):
        notifier = FailingNotifier()

        assert notify_best_effort(notifier, user_id="user-1", type="other", title="t", message="m") is None
        assert notifier.calls == 1

    def test_database_error_does_not_break_transaction(self, create_application):
        notifier = MagicMock()
        notifier.notify.side_effect = IntegrityError("constraint failed")

        assert notify_best_effort(notifier, user_id="user-1", type="other", title="t", message="m") is None

        # The surrounding transaction is still usable
        create_application()


@pytest.mark.django_db
class TestPublishOnCommit:
    def test_notification_published_after_commit(
        self, service, mock_publisher, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            notification = service.notify(
                user_id="user-1", type=Notification.TYPE_OTHER, title="Hello", message="World"
            )
            mock_publisher.assert_not_called()

        assert len(callbacks) == 1
        mock_publisher.assert_called_once()
        assert mock_publisher.call_args[0][0]["id"] == str(notification.id)
        notification.refresh_from_db()
        assert notification.dispatched_at is not None

    def test_failed_publish_leaves_row_for_relay(
        self, service, mock_publisher, django_capture_on_commit_callbacks
    ):
        mock_publisher.return_value = False

        with django_capture_on_commit_callbacks(execute=True):
            notification = service.notify(
                user_id="user-1", type=Notification.TYPE_OTHER, title="Hello", message="World"
            )

        notification.refresh_from_db()
        assert notification.dispatched_at is None
        assert notification.dispatch_attempts == 1

    def test_update_does_not_republish(
        self, create_notification, mock_publisher, django_capture_on_commit_callbacks
    ):
        notification = create_notification()

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            notification.read = True
            notification.save()

        assert callbacks == []


class TestRabbitMQPublisher:
    @pytest.fixture
    def connection(self, mocker):
        return mocker.patch("registration.rabbitmq.publisher.pika.BlockingConnection")

    def test_publish_sends_persistent_message(self, connection, settings):
        channel = connection.return_value.channel.return_value
        publisher = RabbitMQPublisher()

        assert publisher.publish_notification_created({"id": "n-1", "type": "other"}) is True

        channel.queue_declare.assert_called_once_with(
            queue=settings.RABBITMQ_NOTIFICATIONS_QUEUE, durable=True
        )
        kwargs = channel.basic_publish.call_args.kwargs
        assert kwargs["routing_key"] == settings.RABBITMQ_NOTIFICATIONS_QUEUE
        assert json.loads(kwargs["body"]) == {"id": "n-1", "type": "other"}
        assert kwargs["properties"].delivery_mode == 2

    def test_publish_failure_resets_channel(self, connection):
        channel = connection.return_value.channel.return_value
        channel.basic_publish.side_effect = pika.exceptions.StreamLostError("lost")
        publisher = RabbitMQPublisher()

        assert publisher.publish_notification_created({"id": "n-1"}) is False
        assert publisher.channel is None

    def test_publisher_is_per_thread(self, connection, mocker):
        mocker.patch("registration.rabbitmq.publisher._local", threading.local())
        other = []

        worker = threading.Thread(target=lambda: other.append(get_publisher()))
        worker.start()
        worker.join()

        assert get_publisher() is get_publisher()
        assert other[0] is not get_publisher()

    def test_unreachable_broker_returns_false(self, connection):
        connection.side_effect = pika.exceptions.AMQPConnectionError("refused")
        publisher = RabbitMQPublisher()

        assert publisher.publish_notification_created({"id": "n-1"}) is False
        assert connection.call_count == 2


class TestMessageHandler:
    @pytest.fixture
    def channel(self):
        return MagicMock()

    @pytest.fixture
    def method(self):
        method = MagicMock()
        method.delivery_tag = 7
        return method

    def test_ack_on_success(self, channel, method):
        handler = MagicMock()
        callback = create_message_handler(handler)

        callback(channel, method, None, b'{"id": "n-1"}')

        handler.assert_called_once_with({"id": "n-1"})
        channel.basic_ack.assert_called_once_with(delivery_tag=7)

    def test_invalid_json_is_dropped(self, channel, method):
        handler = MagicMock()
        callback = create_message_handler(handler)

        callback(channel, method, None, b"not json")

        handler.assert_not_called()
        channel.basic_nack.assert_called_once_with(delivery_tag=7, requeue=False)

    def test_handler_error_requeues(self, channel, method):
        callback = create_message_handler(MagicMock(side_effect=RuntimeError("boom")))

        callback(channel, method, None, b'{"id": "n-1"}')

        channel.basic_nack.assert_called_once_with(delivery_tag=7, requeue=True)


@pytest.mark.django_db
class TestDispatchPendingCommand:
    def test_command_reports_success(self, create_notification, mock_publisher):
        create_notification()
        out = StringIO()

        call_command("dispatch_pending_notifications", stdout=out)

        assert "Dispatched 1, failed 0" in out.getvalue()

    def test_command_reports_failures(self, create_notification, mock_publisher):
        mock_publisher.return_value = False
        create_notification()
        create_notification()
        out = StringIO()

        call_command("dispatch_pending_notifications", "--limit", "1", stdout=out)

        assert "Dispatched 0, failed 1" in out.getvalue()
