import uuid

from django.db import models


def full_name(details: dict, default: str = "N/A") -> str:
    """Join first and last name of a person record stored on the application."""
    details = details or {}
    first_name = (details.get("first_name") or "").strip()
    last_name = (details.get("last_name") or "").strip()
    if not first_name:
        return default
    return f"{first_name} {last_name}".strip()


class Application(models.Model):
    """
    Model representing a marriage registration application.
    Tracks the applicant's submitted details, the review status and the
    admin verification that gates certificate issuance.
    """

    STATUS_DRAFT = "draft"
    STATUS_SUBMITTED = "submitted"
    STATUS_UNDER_REVIEW = "under_review"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SUBMITTED, "Submitted"),
        (STATUS_UNDER_REVIEW, "Under Review"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    PENDING_STATUSES = (STATUS_SUBMITTED, STATUS_UNDER_REVIEW)

    # Fields an admin may edit through update_application
    EDITABLE_FIELDS = (
        "user_details",
        "partner_details",
        "user_address",
        "user_current_address",
        "partner_address",
        "partner_current_address",
        "declarations",
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_user_id = models.CharField(
        max_length=100, db_index=True, help_text="User account that owns the application"
    )
    owner_email = models.EmailField(
        blank=True, default="", help_text="Contact e-mail of the owner for notifications"
    )
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True
    )
    progress = models.PositiveSmallIntegerField(default=0, help_text="Completion percentage")

    user_details = models.JSONField(default=dict, blank=True, help_text="Groom's details")
    partner_details = models.JSONField(default=dict, blank=True, help_text="Bride's details")
    user_address = models.JSONField(default=dict, blank=True)
    user_current_address = models.JSONField(default=dict, blank=True)
    partner_address = models.JSONField(default=dict, blank=True)
    partner_current_address = models.JSONField(default=dict, blank=True)
    declarations = models.JSONField(default=dict, blank=True)

    verified = models.BooleanField(
        default=False, db_index=True, help_text="Whether an admin verified the application"
    )
    verified_at = models.DateTimeField(blank=True, null=True)
    verified_by = models.CharField(max_length=100, blank=True, null=True)
    certificate_number = models.CharField(
        max_length=100, blank=True, null=True, db_index=True,
        help_text="Certificate number set by the admin during verification",
    )
    registration_date = models.DateField(blank=True, null=True)

    is_proxy_application = models.BooleanField(
        default=False, help_text="Created by an admin on behalf of an offline applicant"
    )
    created_by_admin_id = models.CharField(max_length=100, blank=True, null=True)

    submitted_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "applications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "verified"], name="app_status_verified_idx"),
        ]

    def __str__(self):
        return f"Application {self.id} ({self.status}, verified={self.verified})"

    @property
    def groom_name(self) -> str:
        return full_name(self.user_details)

    @property
    def bride_name(self) -> str:
        return full_name(self.partner_details)

    @property
    def applicant_display_name(self) -> str:
        return full_name(self.user_details, default="Applicant")

    def compute_progress(self) -> int:
        """
        Completion percentage: 20 points each for groom details, bride details,
        at least one permanent address and answered declarations (capped at 80),
        plus 20 once a document has been uploaded.
        """
        progress = 0

        user = self.user_details or {}
        if all(user.get(key) for key in ("first_name", "date_of_birth", "aadhaar_number", "mobile_number")):
            progress += 20

        partner = self.partner_details or {}
        if (
            partner.get("first_name")
            and partner.get("date_of_birth")
            and (partner.get("aadhaar_number") or partner.get("id_number"))
        ):
            progress += 20

        def _has_address(address):
            address = address or {}
            return bool((address.get("village_street") or address.get("street")) and address.get("state"))

        if _has_address(self.user_address) or _has_address(self.partner_address):
            progress += 20

        declarations = self.declarations or {}
        if all(isinstance(declarations.get(key), bool) for key in ("consent", "accuracy", "legal")):
            progress += 20

        progress = min(progress, 80)

        if not self._state.adding and self.documents.exists():
            progress += 20

        return progress
