"""
Append-only audit log of administrative actions.

Rows are written once by AuditService.append and never changed afterwards:
instance save() on an existing row, instance delete() and the queryset
update()/delete() bulk paths all raise ImmutableRecordError.
"""

import uuid

from django.db import models

from registration.exceptions import ImmutableRecordError


class AuditLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableRecordError("Audit log entries cannot be updated")

    def delete(self):
        raise ImmutableRecordError("Audit log entries cannot be deleted")


class AuditLogEntry(models.Model):
    ROLE_ADMIN = "admin"
    ROLE_CLIENT = "client"
    ROLE_SYSTEM = "system"

    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_CLIENT, "Client"),
        (ROLE_SYSTEM, "System"),
    ]

    # Actions recorded by the workflow
    APPLICATION_VERIFIED = "application_verified"
    APPLICATION_UNVERIFIED = "application_unverified"
    APPLICATION_UPDATED = "application_updated"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    DOCUMENT_UPLOADED = "document_uploaded"
    DOCUMENT_APPROVED = "document_approved"
    DOCUMENT_REJECTED = "document_rejected"
    DOCUMENT_REUPLOADED = "document_reuploaded"
    CERTIFICATE_GENERATED = "certificate_generated"
    CERTIFICATE_DOWNLOAD_ENABLED = "certificate_download_enabled"
    CERTIFICATE_DOWNLOAD_DISABLED = "certificate_download_disabled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    actor_id = models.CharField(max_length=100)
    actor_name = models.CharField(max_length=255)
    actor_role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_ADMIN)
    action = models.CharField(max_length=100, db_index=True)
    resource_type = models.CharField(max_length=50)
    resource_id = models.CharField(max_length=100, db_index=True)
    details = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = "audit_logs"
        ordering = ["-timestamp"]
        verbose_name = "Audit log entry"
        verbose_name_plural = "Audit log entries"

    def __str__(self):
        return f"{self.actor_name} {self.action} {self.resource_type}:{self.resource_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError(f"Audit log entry {self.pk} cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(f"Audit log entry {self.pk} cannot be deleted")
