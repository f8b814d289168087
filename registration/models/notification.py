import uuid

from django.db import models

from .application import Application
from .document import Document


class Notification(models.Model):
    """
    User notification, also serving as the outbox for event delivery.

    A row is committed together with the request that produced it; the
    notification.created event is published after commit and dispatched_at
    records a successful publish. Rows without it are retried by the relay.
    """

    TYPE_DOCUMENT_REJECTED = "document_rejected"
    TYPE_DOCUMENT_APPROVED = "document_approved"
    TYPE_APPLICATION_APPROVED = "application_approved"
    TYPE_APPLICATION_REJECTED = "application_rejected"
    TYPE_APPLICATION_VERIFIED = "application_verified"
    TYPE_CERTIFICATE_READY = "certificate_ready"
    TYPE_OTHER = "other"

    TYPE_CHOICES = [
        (TYPE_DOCUMENT_REJECTED, "Document Rejected"),
        (TYPE_DOCUMENT_APPROVED, "Document Approved"),
        (TYPE_APPLICATION_APPROVED, "Application Approved"),
        (TYPE_APPLICATION_REJECTED, "Application Rejected"),
        (TYPE_APPLICATION_VERIFIED, "Application Verified"),
        (TYPE_CERTIFICATE_READY, "Certificate Ready"),
        (TYPE_OTHER, "Other"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=100, db_index=True)
    application = models.ForeignKey(
        Application,
        on_delete=models.SET_NULL,
        related_name="notifications",
        blank=True,
        null=True,
    )
    document = models.ForeignKey(
        Document,
        on_delete=models.SET_NULL,
        related_name="notifications",
        blank=True,
        null=True,
    )
    type = models.CharField(max_length=30, choices=TYPE_CHOICES, default=TYPE_OTHER)
    title = models.CharField(max_length=255)
    message = models.TextField()
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    dispatched_at = models.DateTimeField(blank=True, null=True, db_index=True)
    dispatch_attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, null=True)

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user_id", "read"], name="notifications_user_read_idx"),
        ]

    def __str__(self):
        return f"{self.type} for {self.user_id}: {self.title}"

    def to_event(self) -> dict:
        """Payload of the notification.created event."""
        return {
            "id": str(self.id),
            "userId": self.user_id,
            "applicationId": str(self.application_id) if self.application_id else None,
            "documentId": str(self.document_id) if self.document_id else None,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
