import logging
import uuid

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Value
from django.db.models.functions import Replace
from django.utils import timezone

from registration.exceptions import ConflictError
from registration.models import Application, AuditLogEntry, Certificate, Notification
from registration.services.audit_service import AuditService
from registration.services.lookups import first_or_not_found
from registration.services.notification_service import NotificationService, notify_best_effort
from registration.services.renderer import CertificateRenderer
from registration.services.storage import DjangoStorage

logger = logging.getLogger(__name__)

ADDRESS_PARTS = ("village_street", "post_office", "police_station", "district", "state", "zip_code")


def format_address(address: dict) -> str:
    address = address or {}
    return ", ".join(str(address[part]) for part in ADDRESS_PARTS if address.get(part))


class CertificateService:
    """
    Service class for certificate issuance and download permission.

    Issuance is idempotent per application: the UNIQUE constraint on
    certificates.application_id decides which insert wins and the loser's
    IntegrityError is handled as "already issued".
    """

    def __init__(self, storage=None, renderer=None, notifier=None, audit=None):
        self.storage = storage or DjangoStorage(folder="certificates")
        self.renderer = renderer or CertificateRenderer()
        self.notifier = notifier or NotificationService()
        self.audit = audit or AuditService()

    def get_by_application(self, application_id):
        return Certificate.objects.filter(application_id=application_id).first()

    def issue_if_absent(self, application: Application) -> Certificate:
        """
        Return the application's certificate, issuing it first if none exists.

        Renderer or storage errors propagate; callers that treat issuance as a
        side effect catch them.
        """
        existing = self.get_by_application(application.pk)
        if existing:
            logger.info(f"Certificate already issued for application {application.pk}, skipping")
            return existing

        self._check_issuable(application)
        verification_id, pdf_url = self._render_and_store(application)

        try:
            with transaction.atomic():
                certificate = self._create(application, verification_id, pdf_url)
        except IntegrityError:
            winner = self.get_by_application(application.pk)
            self._discard_upload(pdf_url)
            if winner is None:
                raise
            logger.info(
                f"Concurrent issuance for application {application.pk}, keeping {winner.verification_id}"
            )
            return winner

        logger.info(f"Issued certificate {verification_id} for application {application.pk}")
        return certificate

    def generate_certificate(self, application_id, actor_id: str, actor_name: str) -> Certificate:
        """
        Explicitly generate the certificate of a verified application.

        Unlike issue_if_absent this refuses with ConflictError when a
        certificate already exists, and renderer/storage failures reach the
        caller.
        """
        application = first_or_not_found(Application.objects.all(), "application", application_id)

        self._check_issuable(application)
        if Certificate.objects.filter(application=application).exists():
            raise ConflictError("Certificate already exists for this application.")

        verification_id, pdf_url = self._render_and_store(application)

        try:
            with transaction.atomic():
                certificate = self._create(application, verification_id, pdf_url)
                self.audit.append(
                    actor_id=actor_id,
                    actor_name=actor_name,
                    action=AuditLogEntry.CERTIFICATE_GENERATED,
                    resource_type="application",
                    resource_id=application.pk,
                    details={"certificateNumber": application.certificate_number},
                )
                notify_best_effort(
                    self.notifier,
                    user_id=application.owner_user_id,
                    type=Notification.TYPE_CERTIFICATE_READY,
                    title="Your Certificate is Ready!",
                    message=(
                        f"Dear {application.applicant_display_name}, your marriage certificate has "
                        f"been generated. Certificate Number: {application.certificate_number}."
                    ),
                    application_id=application.pk,
                )
        except IntegrityError:
            self._discard_upload(pdf_url)
            raise ConflictError("Certificate already exists for this application.")

        logger.info(f"Generated certificate {verification_id} for application {application.pk}")
        return certificate

    def enable_download(self, certificate_id, actor_id: str, actor_name: str) -> Certificate:
        return self._set_download(
            certificate_id, True, AuditLogEntry.CERTIFICATE_DOWNLOAD_ENABLED, actor_id, actor_name
        )

    def disable_download(self, certificate_id, actor_id: str, actor_name: str) -> Certificate:
        return self._set_download(
            certificate_id, False, AuditLogEntry.CERTIFICATE_DOWNLOAD_DISABLED, actor_id, actor_name
        )

    def lookup_by_certificate_number(self, certificate_number: str):
        """
        Public verification lookup. Hyphens are ignored so both printed
        formats (WB-MSD-BRW-... and WBMSDBRW...) resolve.
        """
        normalized = (certificate_number or "").strip().replace("-", "")
        if not normalized:
            return None
        return (
            Certificate.objects.select_related("application")
            .filter(application__verified=True)
            .annotate(normalized_number=Replace("certificate_number", Value("-"), Value("")))
            .filter(normalized_number=normalized)
            .first()
        )

    def build_snapshot(self, application: Application, verification_id: str) -> dict:
        """Plain data handed to the renderer."""
        declarations = application.declarations or {}
        return {
            "application_id": str(application.pk),
            "verification_id": verification_id,
            "certificate_number": application.certificate_number,
            "registration_date": str(application.registration_date),
            "marriage_date": declarations.get("marriage_date"),
            "groom": {
                "name": application.groom_name,
                "date_of_birth": (application.user_details or {}).get("date_of_birth"),
                "address": format_address(application.user_address),
            },
            "bride": {
                "name": application.bride_name,
                "date_of_birth": (application.partner_details or {}).get("date_of_birth"),
                "address": format_address(application.partner_address),
            },
        }

    def _check_issuable(self, application: Application):
        if not application.verified:
            raise ConflictError("Cannot generate certificate. Application must be verified first.")
        if not application.certificate_number or not application.registration_date:
            raise ConflictError(
                "Cannot generate certificate. Certificate number and registration date "
                "must be set during verification."
            )

    def _render_and_store(self, application: Application):
        verification_id = self._new_verification_id()
        pdf_bytes = self.renderer.render_certificate_pdf(
            self.build_snapshot(application, verification_id)
        )
        pdf_url = self.storage.store(
            pdf_bytes, "application/pdf", name=f"{application.pk}/{verification_id}.pdf"
        )
        return verification_id, pdf_url

    def _create(self, application, verification_id, pdf_url) -> Certificate:
        return Certificate.objects.create(
            application=application,
            verification_id=verification_id,
            certificate_number=application.certificate_number,
            registration_date=application.registration_date,
            groom_name=application.groom_name,
            bride_name=application.bride_name,
            pdf_url=pdf_url,
            can_download=False,
        )

    def _set_download(self, certificate_id, can_download, action, actor_id, actor_name):
        with transaction.atomic():
            certificate = first_or_not_found(
                Certificate.objects.select_for_update(), "certificate", certificate_id
            )

            certificate.can_download = can_download
            certificate.save(update_fields=["can_download"])
            self.audit.append(
                actor_id=actor_id,
                actor_name=actor_name,
                action=action,
                resource_type="certificate",
                resource_id=certificate.pk,
                details={"certificateNumber": certificate.certificate_number},
            )

        logger.info(f"Certificate {certificate.pk} can_download={can_download}")
        return certificate

    def _discard_upload(self, pdf_url: str):
        try:
            self.storage.delete(pdf_url)
        except Exception as e:
            logger.warning(f"Could not delete orphaned certificate file {pdf_url}: {str(e)}")

    def _new_verification_id(self) -> str:
        prefix = settings.CERTIFICATE_VERIFICATION_PREFIX
        return f"{prefix}-{timezone.now().year}-{uuid.uuid4().hex[:6].upper()}"
