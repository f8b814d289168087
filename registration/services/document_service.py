import logging

from django.db import transaction
from django.utils import timezone

from registration.exceptions import ConflictError, ValidationError
from registration.models import Application, AuditLogEntry, Document, Notification
from registration.services.audit_service import AuditService
from registration.services.lookups import first_or_not_found
from registration.services.notification_service import NotificationService, notify_best_effort
from registration.services.storage import DjangoStorage

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Service class for document upload and admin review.

    Document states: pending -> approved (terminal), pending -> rejected,
    rejected -> pending through a re-upload that marks is_reuploaded.
    """

    def __init__(self, storage=None, notifier=None, audit=None):
        self.storage = storage or DjangoStorage(folder="documents")
        self.notifier = notifier or NotificationService()
        self.audit = audit or AuditService()

    def get_document(self, document_id) -> Document:
        return first_or_not_found(
            Document.objects.select_related("application"), "document", document_id
        )

    def upload_document(
        self,
        application_id,
        content: bytes,
        content_type: str,
        doc_type: str,
        belongs_to: str = None,
        name: str = "",
        actor_id: str = None,
        actor_name: str = None,
    ) -> Document:
        """
        Store a new document for an application in pending state.

        The owner uploads as a client; an admin uploading on behalf of an
        offline applicant passes its own actor identity.
        """
        application = first_or_not_found(Application.objects.all(), "application", application_id)
        if doc_type not in dict(Document.TYPE_CHOICES):
            raise ValidationError(f"Unknown document type: {doc_type}")

        url = self.storage.store(content, content_type)
        try:
            with transaction.atomic():
                document = Document.objects.create(
                    application=application,
                    type=doc_type,
                    belongs_to=belongs_to or None,
                    name=name,
                    url=url,
                    size=len(content),
                    mime_type=content_type,
                )
                application.progress = application.compute_progress()
                application.save(update_fields=["progress", "last_updated"])
                self.audit.append(
                    actor_id=actor_id or application.owner_user_id,
                    actor_name=actor_name or application.applicant_display_name,
                    actor_role=AuditLogEntry.ROLE_ADMIN if actor_id else AuditLogEntry.ROLE_CLIENT,
                    action=AuditLogEntry.DOCUMENT_UPLOADED,
                    resource_type="document",
                    resource_id=document.pk,
                    details={"type": doc_type, "belongsTo": belongs_to},
                )
        except Exception:
            # Do not leave an orphaned file behind a failed insert
            self._discard_upload(url)
            raise

        logger.info(f"Uploaded {document.label} for application {application.pk}")
        return document

    def approve_document(self, document_id, actor_id: str, actor_name: str) -> Document:
        with transaction.atomic():
            document = self._lock(document_id)
            if document.status != Document.STATUS_PENDING:
                raise ConflictError(
                    f"Cannot approve {document.label}: document is {document.status}"
                )

            document.status = Document.STATUS_APPROVED
            document.save(update_fields=["status"])
            self.audit.append(
                actor_id=actor_id,
                actor_name=actor_name,
                action=AuditLogEntry.DOCUMENT_APPROVED,
                resource_type="document",
                resource_id=document.pk,
            )

        logger.info(f"Approved {document.label} ({document.pk})")
        return document

    def reject_document(
        self, document_id, reason: str, actor_id: str, actor_name: str, notify: bool = False
    ) -> Document:
        """
        Reject a pending document and tell the owner why.

        The owner notification is best-effort: it is recorded in a savepoint
        and any failure is logged without affecting the rejection. The
        rejection e-mail goes out for every rejection; `notify` is only
        recorded in the audit details.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")

        with transaction.atomic():
            document = self._lock(document_id)
            if document.status != Document.STATUS_PENDING:
                raise ConflictError(
                    f"Cannot reject {document.label}: document is {document.status}"
                )

            document.status = Document.STATUS_REJECTED
            # The rejection applies to the current content, previous re-uploads no longer count
            document.is_reuploaded = False
            document.save(update_fields=["status", "is_reuploaded"])

            self.audit.append(
                actor_id=actor_id,
                actor_name=actor_name,
                action=AuditLogEntry.DOCUMENT_REJECTED,
                resource_type="document",
                resource_id=document.pk,
                details={"reason": reason, "notify": notify},
            )

            notify_best_effort(
                self.notifier,
                user_id=document.application.owner_user_id,
                type=Notification.TYPE_DOCUMENT_REJECTED,
                title=f"Document Rejected: {document.label}",
                message=reason,
                application_id=document.application_id,
                document_id=document.pk,
            )

        logger.info(f"Rejected {document.label} ({document.pk}): {reason}")
        return document

    def reupload_document(
        self,
        document_id,
        content: bytes,
        content_type: str,
        name: str = None,
        actor_id: str = None,
        actor_name: str = None,
    ) -> Document:
        """
        Replace the content of a document.

        A rejected document goes back to pending with is_reuploaded set; a
        pending one only gets its content replaced. Approved documents are
        final. Whether the caller may re-upload (proxy applications only) is
        checked by the caller.
        """
        document = self.get_document(document_id)
        if document.status == Document.STATUS_APPROVED:
            raise ConflictError(f"Cannot re-upload {document.label}: document is approved")

        new_url = self.storage.store(content, content_type)

        try:
            with transaction.atomic():
                document = self._lock(document_id)
                if document.status == Document.STATUS_APPROVED:
                    raise ConflictError(f"Cannot re-upload {document.label}: document is approved")

                old_url = document.url
                was_rejected = document.status == Document.STATUS_REJECTED

                document.url = new_url
                document.size = len(content)
                document.mime_type = content_type
                document.name = name or document.name
                document.uploaded_at = timezone.now()
                if was_rejected:
                    document.status = Document.STATUS_PENDING
                    document.is_reuploaded = True
                document.save()

                application = document.application
                self.audit.append(
                    actor_id=actor_id or application.owner_user_id,
                    actor_name=actor_name or application.applicant_display_name,
                    actor_role=AuditLogEntry.ROLE_ADMIN if actor_id else AuditLogEntry.ROLE_CLIENT,
                    action=AuditLogEntry.DOCUMENT_REUPLOADED,
                    resource_type="document",
                    resource_id=document.pk,
                    details={"afterRejection": was_rejected},
                )
        except Exception:
            self._discard_upload(new_url)
            raise

        self._delete_old_content(old_url)
        logger.info(f"Re-uploaded {document.label} ({document.pk}), after_rejection={was_rejected}")
        return document

    def _lock(self, document_id) -> Document:
        return first_or_not_found(
            Document.objects.select_for_update().select_related("application"),
            "document",
            document_id,
        )

    def _delete_old_content(self, url: str):
        try:
            self.storage.delete(url)
        except Exception as e:
            logger.warning(f"Could not delete replaced document content {url}: {str(e)}")

    def _discard_upload(self, url: str):
        try:
            self.storage.delete(url)
        except Exception as e:
            logger.warning(f"Could not delete orphaned document content {url}: {str(e)}")
