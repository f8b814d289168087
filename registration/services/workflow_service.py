import datetime
import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_date

from registration.exceptions import (
    BlockedByRejectedDocuments,
    SecondaryEffectFailure,
    ValidationError,
)
from registration.models import Application, AuditLogEntry, Certificate, Document, Notification
from registration.services.audit_service import AuditService
from registration.services.certificate_service import CertificateService
from registration.services.lookups import first_or_not_found
from registration.services.notification_service import NotificationService, notify_best_effort

logger = logging.getLogger(__name__)


def parse_registration_date(value) -> datetime.date:
    """Accept a date or an ISO YYYY-MM-DD string, raise ValidationError otherwise."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        parsed = parse_date(str(value or "").strip())
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"Invalid registration date: {value!r}")
    return parsed


class WorkflowService:
    """
    Service class for the admin verification workflow.

    Every state-changing method follows the same sequence: lock and validate
    inside one transaction, mutate, append exactly one audit entry in that
    same transaction, then run best-effort side effects whose failures are
    logged and never reach the caller.
    """

    def __init__(self, notifier=None, audit=None, certificates=None):
        self.notifier = notifier or NotificationService()
        self.audit = audit or AuditService()
        self.certificates = certificates or CertificateService(
            notifier=self.notifier, audit=self.audit
        )

    def get_application(self, application_id) -> Application:
        return first_or_not_found(Application.objects.all(), "application", application_id)

    def blocking_document_labels(self, application_id) -> list:
        """Labels of rejected documents that have not been re-uploaded."""
        blocking = Document.objects.filter(
            application_id=application_id,
            status=Document.STATUS_REJECTED,
            is_reuploaded=False,
        ).order_by("uploaded_at")
        return [document.label for document in blocking]

    def verify_application(
        self,
        application_id,
        actor_id: str,
        actor_name: str,
        certificate_number: str,
        registration_date,
    ) -> Application:
        """
        Verify an application and issue its certificate.

        Raises:
            ValidationError: Empty certificate number or unparsable date
            BlockedByRejectedDocuments: Rejected documents still await re-upload
            NotFoundError: Unknown application
        """
        certificate_number = (certificate_number or "").strip()
        if not certificate_number:
            raise ValidationError("Certificate number is required")
        registration_date = parse_registration_date(registration_date)

        with transaction.atomic():
            application = self._lock(application_id)

            labels = self.blocking_document_labels(application.pk)
            if labels:
                logger.info(f"Verification of {application.pk} blocked by: {', '.join(labels)}")
                raise BlockedByRejectedDocuments(labels)

            application.verified = True
            application.verified_at = timezone.now()
            application.verified_by = actor_id
            application.certificate_number = certificate_number
            application.registration_date = registration_date
            application.save(
                update_fields=[
                    "verified",
                    "verified_at",
                    "verified_by",
                    "certificate_number",
                    "registration_date",
                    "last_updated",
                ]
            )

            self.audit.append(
                actor_id=actor_id,
                actor_name=actor_name,
                action=AuditLogEntry.APPLICATION_VERIFIED,
                resource_type="application",
                resource_id=application.pk,
                details={
                    "certificateNumber": certificate_number,
                    "registrationDate": registration_date.isoformat(),
                },
            )

            notify_best_effort(
                self.notifier,
                user_id=application.owner_user_id,
                type=Notification.TYPE_APPLICATION_VERIFIED,
                title="Congratulations! Your Application is Verified",
                message=(
                    f"Dear {application.applicant_display_name}, your marriage registration "
                    f"application has been verified successfully! Certificate Number: "
                    f"{certificate_number}. You will receive another notification when your "
                    f"certificate is ready for download."
                ),
                application_id=application.pk,
            )

        logger.info(f"Application {application.pk} verified by {actor_name} ({certificate_number})")

        try:
            self.certificates.issue_if_absent(application)
        except Exception as e:
            failure = SecondaryEffectFailure("certificate issuance", e)
            logger.error(
                f"Application {application.pk} verified but {failure}. "
                f"Retry with generate_certificate."
            )

        return application

    def unverify_application(self, application_id, actor_id: str, actor_name: str) -> Application:
        """
        Clear the verification flag. An issued certificate and its download
        permission are left as they are.
        """
        with transaction.atomic():
            application = self._lock(application_id)
            application.verified = False
            application.verified_at = None
            application.verified_by = None
            application.save(
                update_fields=["verified", "verified_at", "verified_by", "last_updated"]
            )
            self.audit.append(
                actor_id=actor_id,
                actor_name=actor_name,
                action=AuditLogEntry.APPLICATION_UNVERIFIED,
                resource_type="application",
                resource_id=application.pk,
            )

        logger.info(f"Application {application.pk} unverified by {actor_name}")
        return application

    def update_application(
        self, application_id, partial_fields: dict, actor_id: str, actor_name: str
    ) -> Application:
        """
        Apply an admin edit to the applicant's details.

        Args:
            partial_fields: Validated values keyed by Application.EDITABLE_FIELDS

        Only the names of the changed fields are written to the audit log.
        """
        partial_fields = dict(partial_fields or {})
        unknown = sorted(set(partial_fields) - set(Application.EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(unknown)}")
        if not partial_fields:
            raise ValidationError("No fields to update")

        with transaction.atomic():
            application = self._lock(application_id)
            for field, value in partial_fields.items():
                setattr(application, field, value)
            application.progress = application.compute_progress()
            application.save()

            updated_fields = sorted(partial_fields)
            self.audit.append(
                actor_id=actor_id,
                actor_name=actor_name,
                action=AuditLogEntry.APPLICATION_UPDATED,
                resource_type="application",
                resource_id=application.pk,
                details={"updatedFields": updated_fields},
            )

        logger.info(f"Application {application.pk} updated by {actor_name}: {updated_fields}")
        return application

    def approve_application(self, application_id, actor_id: str, actor_name: str) -> Application:
        """Set status to approved. Independent of the verified flag."""
        return self._set_status(
            application_id,
            Application.STATUS_APPROVED,
            AuditLogEntry.APPLICATION_APPROVED,
            actor_id,
            actor_name,
            notification=(
                Notification.TYPE_APPLICATION_APPROVED,
                "Your Application is Approved",
                "Your marriage registration application has been approved.",
            ),
        )

    def reject_application(
        self, application_id, reason: str, actor_id: str, actor_name: str
    ) -> Application:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")
        return self._set_status(
            application_id,
            Application.STATUS_REJECTED,
            AuditLogEntry.APPLICATION_REJECTED,
            actor_id,
            actor_name,
            details={"reason": reason},
            notification=(
                Notification.TYPE_APPLICATION_REJECTED,
                "Your Application was Rejected",
                reason,
            ),
        )

    def list_applications(self, search: str = None, verified_filter: str = None):
        """
        Admin console listing, newest first.

        verified_filter: "verified", "unverified" (pending review and not
        verified), "submitted" (submitted and not verified) or "draft".
        """
        applications = Application.objects.prefetch_related("documents")

        if search:
            applications = applications.filter(
                Q(id__icontains=search) | Q(certificate_number__icontains=search)
            )

        if verified_filter == "verified":
            applications = applications.filter(verified=True)
        elif verified_filter == "unverified":
            applications = applications.filter(
                status__in=Application.PENDING_STATUSES, verified=False
            )
        elif verified_filter == "submitted":
            applications = applications.filter(
                status=Application.STATUS_SUBMITTED, verified=False
            )
        elif verified_filter == "draft":
            applications = applications.filter(status=Application.STATUS_DRAFT)

        return applications.order_by("-created_at")

    def get_application_stats(self) -> dict:
        pending = Application.objects.filter(status__in=Application.PENDING_STATUSES)
        return {
            "total": Application.objects.count(),
            "pending": pending.count(),
            "verified": Application.objects.filter(verified=True).count(),
            "unverified": pending.filter(verified=False).count(),
        }

    def is_certificate_number_taken(self, certificate_number: str, exclude_application_id=None) -> bool:
        """
        Whether another verified application or certificate already uses the number.
        """
        applications = Application.objects.filter(
            certificate_number=certificate_number, verified=True
        )
        certificates = Certificate.objects.filter(certificate_number=certificate_number)
        if exclude_application_id:
            applications = applications.exclude(pk=exclude_application_id)
            certificates = certificates.exclude(application_id=exclude_application_id)
        return applications.exists() or certificates.exists()

    def _set_status(
        self, application_id, status, action, actor_id, actor_name, details=None, notification=None
    ) -> Application:
        with transaction.atomic():
            application = self._lock(application_id)
            application.status = status
            application.save(update_fields=["status", "last_updated"])
            self.audit.append(
                actor_id=actor_id,
                actor_name=actor_name,
                action=action,
                resource_type="application",
                resource_id=application.pk,
                details=details,
            )
            if notification:
                notification_type, title, message = notification
                notify_best_effort(
                    self.notifier,
                    user_id=application.owner_user_id,
                    type=notification_type,
                    title=title,
                    message=message,
                    application_id=application.pk,
                )

        logger.info(f"Application {application.pk} status set to {status} by {actor_name}")
        return application

    def _lock(self, application_id) -> Application:
        """Fetch the application row with a per-application lock for this transaction."""
        return first_or_not_found(
            Application.objects.select_for_update(), "application", application_id
        )
