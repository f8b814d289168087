import uuid

from django.db import models

from .application import Application


class Certificate(models.Model):
    """
    Issued marriage registration certificate.

    The OneToOneField puts a UNIQUE constraint on application_id, so the
    database refuses a second certificate for the same application.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    application = models.OneToOneField(
        Application,
        on_delete=models.PROTECT,
        related_name="certificate",
    )
    verification_id = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255, default="Marriage Registration Certificate")
    certificate_number = models.CharField(max_length=100, db_index=True)
    registration_date = models.DateField()
    groom_name = models.CharField(max_length=255, default="N/A")
    bride_name = models.CharField(max_length=255, default="N/A")
    pdf_url = models.CharField(max_length=500)
    can_download = models.BooleanField(
        default=False, help_text="Admin-controlled permission for the owner to download"
    )
    issued_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "certificates"
        ordering = ["-issued_at"]

    def __str__(self):
        return f"{self.certificate_number} ({self.verification_id})"
