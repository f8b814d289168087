import uuid

from django.db import models
from django.utils import timezone

from .application import Application


DOCUMENT_TYPE_LABELS = {
    "aadhaar": "Aadhaar Card",
    "tenth_certificate": "10th Certificate",
    "voter_id": "Voter ID",
    "id": "ID Document",
    "photo": "Photo",
    "certificate": "Certificate",
    "other": "Other",
}

PERSON_LABELS = {
    "user": "Groom's",
    "partner": "Bride's",
    "joint": "Joint",
}


def document_label(doc_type: str, belongs_to: str = None) -> str:
    """Human label such as "Groom's Aadhaar Card" used in notices and errors."""
    type_label = DOCUMENT_TYPE_LABELS.get(doc_type, doc_type)
    person_label = PERSON_LABELS.get(belongs_to or "", "")
    return f"{person_label} {type_label}" if person_label else type_label


class Document(models.Model):
    """A single uploaded proof tied to the groom, the bride, or both."""

    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    TYPE_CHOICES = list(DOCUMENT_TYPE_LABELS.items())

    BELONGS_TO_USER = "user"
    BELONGS_TO_PARTNER = "partner"
    BELONGS_TO_JOINT = "joint"

    BELONGS_TO_CHOICES = [
        (BELONGS_TO_USER, "Groom"),
        (BELONGS_TO_PARTNER, "Bride"),
        (BELONGS_TO_JOINT, "Joint"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    application = models.ForeignKey(
        Application,
        on_delete=models.CASCADE,
        related_name="documents",
        help_text="Application owning this document",
    )
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    belongs_to = models.CharField(
        max_length=10, choices=BELONGS_TO_CHOICES, blank=True, null=True
    )
    status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True
    )
    is_reuploaded = models.BooleanField(
        default=False, help_text="Content was replaced after a rejection"
    )
    name = models.CharField(max_length=255, blank=True, default="")
    url = models.CharField(max_length=500, blank=True, default="")
    size = models.PositiveIntegerField(default=0)
    mime_type = models.CharField(max_length=100, blank=True, default="")
    uploaded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "documents"
        ordering = ["-uploaded_at"]
        indexes = [
            models.Index(fields=["application", "status"], name="documents_app_status_idx"),
        ]

    def __str__(self):
        return f"{self.label} ({self.status})"

    @property
    def label(self) -> str:
        return document_label(self.type, self.belongs_to)

    @property
    def blocks_verification(self) -> bool:
        return self.status == self.STATUS_REJECTED and not self.is_reuploaded
