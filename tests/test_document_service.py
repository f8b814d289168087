"""
Tests for document upload and review.
"""

from unittest.mock import MagicMock

import pytest

from registration.exceptions import ConflictError, NotFoundError, ValidationError
from registration.models import AuditLogEntry, Document, document_label
from registration.services.document_service import DocumentService
from tests.conftest import ADMIN_ID, ADMIN_NAME, FailingNotifier, FakeStorage


class TestDocumentLabels:
    @pytest.mark.parametrize(
        "doc_type,belongs_to,expected",
        [
            ("aadhaar", "user", "Groom's Aadhaar Card"),
            ("aadhaar", "partner", "Bride's Aadhaar Card"),
            ("tenth_certificate", "user", "Groom's 10th Certificate"),
            ("voter_id", "joint", "Joint Voter ID"),
            ("photo", None, "Photo"),
            ("id", "", "ID Document"),
            ("other", "partner", "Bride's Other"),
        ],
    )
    def test_document_label(self, doc_type, belongs_to, expected):
        assert document_label(doc_type, belongs_to) == expected


@pytest.mark.django_db
class TestApproveDocument:
    def test_approve_pending_document(self, document_service, create_application, create_document):
        document = create_document(create_application())

        result = document_service.approve_document(document.id, ADMIN_ID, ADMIN_NAME)

        assert result.status == Document.STATUS_APPROVED
        entry = AuditLogEntry.objects.get(action=AuditLogEntry.DOCUMENT_APPROVED)
        assert entry.resource_type == "document"
        assert entry.resource_id == str(document.id)

    @pytest.mark.parametrize("status", [Document.STATUS_APPROVED, Document.STATUS_REJECTED])
    def test_approve_requires_pending(self, document_service, create_application, create_document, status):
        document = create_document(create_application(), status=status)

        with pytest.raises(ConflictError):
            document_service.approve_document(document.id, ADMIN_ID, ADMIN_NAME)

        assert not AuditLogEntry.objects.exists()

    def test_approve_unknown_document(self, document_service, db):
        with pytest.raises(NotFoundError):
            document_service.approve_document(
                "00000000-0000-0000-0000-000000000000", ADMIN_ID, ADMIN_NAME
            )


@pytest.mark.django_db
class TestRejectDocument:
    def test_reject_notifies_owner(self, document_service, create_application, create_document, notifier):
        application = create_application()
        document = create_document(application)

        result = document_service.reject_document(
            document.id, "Image is blurry", ADMIN_ID, ADMIN_NAME, notify=True
        )

        assert result.status == Document.STATUS_REJECTED
        assert result.is_reuploaded is False
        assert notifier.sent == [
            {
                "user_id": "user-1",
                "type": "document_rejected",
                "title": "Document Rejected: Groom's Aadhaar Card",
                "message": "Image is blurry",
                "application_id": application.id,
                "document_id": document.id,
            }
        ]
        entry = AuditLogEntry.objects.get(action=AuditLogEntry.DOCUMENT_REJECTED)
        assert entry.details == {"reason": "Image is blurry", "notify": True}

    def test_reject_survives_failing_notifier(self, storage, audit, create_application, create_document):
        """A notifier that always throws does not affect the rejection or its audit entry."""
        notifier = FailingNotifier()
        service = DocumentService(storage=storage, notifier=notifier, audit=audit)
        document = create_document(create_application())

        result = service.reject_document(document.id, "Wrong document", ADMIN_ID, ADMIN_NAME)

        assert result.status == Document.STATUS_REJECTED
        assert notifier.calls == 1
        assert AuditLogEntry.objects.filter(action=AuditLogEntry.DOCUMENT_REJECTED).count() == 1
        document.refresh_from_db()
        assert document.status == Document.STATUS_REJECTED

    def test_reject_records_notification_row(self, audit, storage, create_application, create_document):
        """With the default dispatcher the notification lands in the outbox table."""
        service = DocumentService(storage=storage, audit=audit)
        application = create_application()
        document = create_document(application)

        service.reject_document(document.id, "Wrong document", ADMIN_ID, ADMIN_NAME)

        notification = application.notifications.get()
        assert notification.type == "document_rejected"
        assert notification.document_id == document.id
        assert notification.dispatched_at is None

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reject_requires_reason(self, document_service, create_application, create_document, reason):
        document = create_document(create_application())

        with pytest.raises(ValidationError):
            document_service.reject_document(document.id, reason, ADMIN_ID, ADMIN_NAME)

        document.refresh_from_db()
        assert document.status == Document.STATUS_PENDING

    def test_reject_already_rejected(self, document_service, create_application, create_document):
        document = create_document(create_application(), status=Document.STATUS_REJECTED)

        with pytest.raises(ConflictError):
            document_service.reject_document(document.id, "Again", ADMIN_ID, ADMIN_NAME)

    def test_reject_after_reupload_clears_flag(
        self, document_service, create_application, create_document
    ):
        document = create_document(create_application())
        document_service.reject_document(document.id, "Blurry", ADMIN_ID, ADMIN_NAME)
        document_service.reupload_document(document.id, b"rescan", "image/png")

        result = document_service.reject_document(document.id, "Still blurry", ADMIN_ID, ADMIN_NAME)

        assert result.status == Document.STATUS_REJECTED
        assert result.is_reuploaded is False
        assert result.blocks_verification is True


@pytest.mark.django_db
class TestReuploadDocument:
    def test_reupload_after_rejection(self, document_service, storage, create_application, create_document):
        document = create_document(create_application(), status=Document.STATUS_REJECTED)

        result = document_service.reupload_document(
            document.id, b"new content", "image/jpeg", name="aadhaar-new.jpg"
        )

        assert result.status == Document.STATUS_PENDING
        assert result.is_reuploaded is True
        assert result.url in storage.objects
        assert result.size == len(b"new content")
        assert result.mime_type == "image/jpeg"
        assert result.name == "aadhaar-new.jpg"
        assert storage.deleted == ["memory://original"]

        entry = AuditLogEntry.objects.get(action=AuditLogEntry.DOCUMENT_REUPLOADED)
        assert entry.details == {"afterRejection": True}
        assert entry.actor_role == AuditLogEntry.ROLE_CLIENT

    def test_reupload_pending_replaces_content_only(
        self, document_service, create_application, create_document
    ):
        document = create_document(create_application())

        result = document_service.reupload_document(
            document.id, b"replacement", "application/pdf", actor_id=ADMIN_ID, actor_name=ADMIN_NAME
        )

        assert result.status == Document.STATUS_PENDING
        assert result.is_reuploaded is False
        entry = AuditLogEntry.objects.get(action=AuditLogEntry.DOCUMENT_REUPLOADED)
        assert entry.actor_role == AuditLogEntry.ROLE_ADMIN
        assert entry.details == {"afterRejection": False}

    def test_reupload_approved_is_refused(self, document_service, storage, create_application, create_document):
        document = create_document(create_application(), status=Document.STATUS_APPROVED)

        with pytest.raises(ConflictError):
            document_service.reupload_document(document.id, b"x", "image/png")

        assert storage.objects == {}

    def test_reupload_storage_failure_leaves_document(self, audit, notifier, create_application, create_document):
        service = DocumentService(storage=FakeStorage(fail_store=True), notifier=notifier, audit=audit)
        document = create_document(create_application(), status=Document.STATUS_REJECTED)

        with pytest.raises(IOError):
            service.reupload_document(document.id, b"x", "image/png")

        document.refresh_from_db()
        assert document.status == Document.STATUS_REJECTED
        assert document.is_reuploaded is False


class UndeletableStorage(FakeStorage):
    def delete(self, url):
        raise IOError("storage unavailable")


@pytest.fixture
def failing_audit():
    audit = MagicMock()
    audit.append.side_effect = RuntimeError("audit table locked")
    return audit


@pytest.mark.django_db
class TestFailedWriteCleanup:
    def test_upload_keeps_original_error_when_cleanup_fails(self, notifier, failing_audit, create_application):
        service = DocumentService(storage=UndeletableStorage(), notifier=notifier, audit=failing_audit)

        with pytest.raises(RuntimeError, match="audit table locked"):
            service.upload_document(create_application().id, b"scan", "application/pdf", "aadhaar")

        assert not Document.objects.exists()

    def test_reupload_keeps_original_error_when_cleanup_fails(
        self, notifier, failing_audit, create_application, create_document
    ):
        service = DocumentService(storage=UndeletableStorage(), notifier=notifier, audit=failing_audit)
        document = create_document(create_application(), status=Document.STATUS_REJECTED)

        with pytest.raises(RuntimeError, match="audit table locked"):
            service.reupload_document(document.id, b"rescan", "image/png")

        document.refresh_from_db()
        assert document.status == Document.STATUS_REJECTED
        assert document.url == "memory://original"


@pytest.mark.django_db
class TestUploadDocument:
    def test_upload_creates_pending_document(self, document_service, storage, create_application):
        application = create_application(progress=0)

        document = document_service.upload_document(
            application.id, b"scan", "application/pdf", "aadhaar", belongs_to="partner", name="a.pdf"
        )

        assert document.status == Document.STATUS_PENDING
        assert document.label == "Bride's Aadhaar Card"
        assert document.url in storage.objects
        application.refresh_from_db()
        assert application.progress == 100
        entry = AuditLogEntry.objects.get(action=AuditLogEntry.DOCUMENT_UPLOADED)
        assert entry.actor_id == "user-1"
        assert entry.actor_role == AuditLogEntry.ROLE_CLIENT

    def test_upload_rejects_unknown_type(self, document_service, storage, create_application):
        application = create_application()

        with pytest.raises(ValidationError):
            document_service.upload_document(application.id, b"scan", "application/pdf", "passport")

        assert storage.objects == {}

    def test_upload_unknown_application(self, document_service, db):
        with pytest.raises(NotFoundError):
            document_service.upload_document(
                "00000000-0000-0000-0000-000000000000", b"scan", "application/pdf", "aadhaar"
            )
