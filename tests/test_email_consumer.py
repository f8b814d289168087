"""
Tests for the document rejection e-mail relay.
"""

from unittest.mock import MagicMock

import pytest
import requests

from registration.models import Notification
from registration.rabbitmq.notification_email_consumer import handle_notification_created
from registration.services.email_service import EmailService


@pytest.fixture
def rejection(create_application, create_document):
    application = create_application()
    document = create_document(application, name="aadhaar-front.jpg")
    return Notification.objects.create(
        user_id=application.owner_user_id,
        application=application,
        document=document,
        type=Notification.TYPE_DOCUMENT_REJECTED,
        title="Document Rejected: Groom's Aadhaar Card",
        message="Image is blurry",
    )


@pytest.fixture
def email_service():
    service = MagicMock()
    service.send_document_rejected.return_value = {"success": True, "message": "email-1"}
    return service


@pytest.mark.django_db
class TestHandleNotificationCreated:
    def test_rejection_mails_owner(self, rejection, email_service):
        result = handle_notification_created(rejection.to_event(), email_service=email_service)

        assert result == {"success": True, "message": "email-1"}
        email_service.send_document_rejected.assert_called_once_with(
            to="rahul@example.com",
            document_label="Groom's Aadhaar Card",
            document_name="aadhaar-front.jpg",
            reason="Image is blurry",
            display_name="Rahul Sen",
        )

    @pytest.mark.parametrize(
        "notification_type",
        [Notification.TYPE_CERTIFICATE_READY, Notification.TYPE_APPLICATION_VERIFIED, None],
    )
    def test_other_types_are_ignored(self, email_service, notification_type):
        result = handle_notification_created(
            {"id": "n-1", "type": notification_type}, email_service=email_service
        )

        assert result["success"] is True
        email_service.send_document_rejected.assert_not_called()

    @pytest.mark.parametrize("notification_id", ["00000000-0000-0000-0000-000000000000", "garbage"])
    def test_unknown_notification(self, email_service, db, notification_id):
        result = handle_notification_created(
            {"id": notification_id, "type": Notification.TYPE_DOCUMENT_REJECTED},
            email_service=email_service,
        )

        assert result["success"] is False
        email_service.send_document_rejected.assert_not_called()

    def test_owner_without_email(self, rejection, email_service):
        rejection.application.owner_email = ""
        rejection.application.save()

        result = handle_notification_created(rejection.to_event(), email_service=email_service)

        assert result == {"success": False, "message": "Owner has no e-mail"}
        email_service.send_document_rejected.assert_not_called()


@pytest.mark.django_db
class TestEmailService:
    def test_send_document_rejected_posts_to_resend(self, mocker, settings):
        post = mocker.patch("registration.services.email_service.requests.post")
        post.return_value.status_code = 200
        post.return_value.json.return_value = {"id": "re_123"}

        result = EmailService(api_key="key").send_document_rejected(
            to="rahul@example.com",
            document_label="Groom's Aadhaar Card",
            document_name="aadhaar.pdf",
            reason="Image is blurry",
            display_name="Rahul Sen",
        )

        assert result == {"success": True, "message": "re_123"}
        kwargs = post.call_args.kwargs
        assert post.call_args.args[0] == settings.RESEND_API_URL
        assert kwargs["timeout"] == 10
        assert kwargs["headers"]["Authorization"] == "Bearer key"
        assert kwargs["json"]["to"] == ["rahul@example.com"]
        assert kwargs["json"]["subject"] == "Document Rejection Notice - Groom's Aadhaar Card"
        assert "Image is blurry" in kwargs["json"]["html"]
        assert "Rahul Sen" in kwargs["json"]["html"]

    def test_missing_api_key(self, mocker):
        post = mocker.patch("registration.services.email_service.requests.post")

        result = EmailService(api_key="").send("rahul@example.com", "Subject", "<p>Hi</p>")

        assert result["success"] is False
        post.assert_not_called()

    def test_timeout(self, mocker):
        mocker.patch(
            "registration.services.email_service.requests.post",
            side_effect=requests.exceptions.Timeout(),
        )

        result = EmailService(api_key="key").send("rahul@example.com", "Subject", "<p>Hi</p>")

        assert result == {"success": False, "message": "E-mail provider timed out"}

    def test_provider_error(self, mocker):
        post = mocker.patch("registration.services.email_service.requests.post")
        post.return_value.status_code = 422
        post.return_value.text = "invalid from address"

        result = EmailService(api_key="key").send("rahul@example.com", "Subject", "<p>Hi</p>")

        assert result == {"success": False, "message": "invalid from address"}
