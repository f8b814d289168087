import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Application",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "owner_user_id",
                    models.CharField(
                        db_index=True, help_text="User account that owns the application", max_length=100
                    ),
                ),
                (
                    "owner_email",
                    models.EmailField(
                        blank=True,
                        default="",
                        help_text="Contact e-mail of the owner for notifications",
                        max_length=254,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("submitted", "Submitted"),
                            ("under_review", "Under Review"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("progress", models.PositiveSmallIntegerField(default=0, help_text="Completion percentage")),
                ("user_details", models.JSONField(blank=True, default=dict, help_text="Groom's details")),
                ("partner_details", models.JSONField(blank=True, default=dict, help_text="Bride's details")),
                ("user_address", models.JSONField(blank=True, default=dict)),
                ("user_current_address", models.JSONField(blank=True, default=dict)),
                ("partner_address", models.JSONField(blank=True, default=dict)),
                ("partner_current_address", models.JSONField(blank=True, default=dict)),
                ("declarations", models.JSONField(blank=True, default=dict)),
                (
                    "verified",
                    models.BooleanField(
                        db_index=True, default=False, help_text="Whether an admin verified the application"
                    ),
                ),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                ("verified_by", models.CharField(blank=True, max_length=100, null=True)),
                (
                    "certificate_number",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Certificate number set by the admin during verification",
                        max_length=100,
                        null=True,
                    ),
                ),
                ("registration_date", models.DateField(blank=True, null=True)),
                (
                    "is_proxy_application",
                    models.BooleanField(
                        default=False, help_text="Created by an admin on behalf of an offline applicant"
                    ),
                ),
                ("created_by_admin_id", models.CharField(blank=True, max_length=100, null=True)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("last_updated", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "applications",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status", "verified"], name="app_status_verified_idx")],
            },
        ),
        migrations.CreateModel(
            name="AuditLogEntry",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("actor_id", models.CharField(max_length=100)),
                ("actor_name", models.CharField(max_length=255)),
                (
                    "actor_role",
                    models.CharField(
                        choices=[("admin", "Admin"), ("client", "Client"), ("system", "System")],
                        default="admin",
                        max_length=10,
                    ),
                ),
                ("action", models.CharField(db_index=True, max_length=100)),
                ("resource_type", models.CharField(max_length=50)),
                ("resource_id", models.CharField(db_index=True, max_length=100)),
                ("details", models.JSONField(blank=True, default=dict)),
                ("timestamp", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                "verbose_name": "Audit log entry",
                "verbose_name_plural": "Audit log entries",
                "db_table": "audit_logs",
                "ordering": ["-timestamp"],
            },
        ),
        migrations.CreateModel(
            name="Certificate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("verification_id", models.CharField(max_length=50, unique=True)),
                ("name", models.CharField(default="Marriage Registration Certificate", max_length=255)),
                ("certificate_number", models.CharField(db_index=True, max_length=100)),
                ("registration_date", models.DateField()),
                ("groom_name", models.CharField(default="N/A", max_length=255)),
                ("bride_name", models.CharField(default="N/A", max_length=255)),
                ("pdf_url", models.CharField(max_length=500)),
                (
                    "can_download",
                    models.BooleanField(
                        default=False, help_text="Admin-controlled permission for the owner to download"
                    ),
                ),
                ("issued_at", models.DateTimeField(auto_now_add=True)),
                (
                    "application",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="certificate",
                        to="registration.application",
                    ),
                ),
            ],
            options={
                "db_table": "certificates",
                "ordering": ["-issued_at"],
            },
        ),
        migrations.CreateModel(
            name="Document",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("aadhaar", "Aadhaar Card"),
                            ("tenth_certificate", "10th Certificate"),
                            ("voter_id", "Voter ID"),
                            ("id", "ID Document"),
                            ("photo", "Photo"),
                            ("certificate", "Certificate"),
                            ("other", "Other"),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    "belongs_to",
                    models.CharField(
                        blank=True,
                        choices=[("user", "Groom"), ("partner", "Bride"), ("joint", "Joint")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")],
                        db_index=True,
                        default="pending",
                        max_length=10,
                    ),
                ),
                (
                    "is_reuploaded",
                    models.BooleanField(default=False, help_text="Content was replaced after a rejection"),
                ),
                ("name", models.CharField(blank=True, default="", max_length=255)),
                ("url", models.CharField(blank=True, default="", max_length=500)),
                ("size", models.PositiveIntegerField(default=0)),
                ("mime_type", models.CharField(blank=True, default="", max_length=100)),
                ("uploaded_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "application",
                    models.ForeignKey(
                        help_text="Application owning this document",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="documents",
                        to="registration.application",
                    ),
                ),
            ],
            options={
                "db_table": "documents",
                "ordering": ["-uploaded_at"],
                "indexes": [models.Index(fields=["application", "status"], name="documents_app_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(db_index=True, max_length=100)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("document_rejected", "Document Rejected"),
                            ("document_approved", "Document Approved"),
                            ("application_approved", "Application Approved"),
                            ("application_rejected", "Application Rejected"),
                            ("application_verified", "Application Verified"),
                            ("certificate_ready", "Certificate Ready"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=30,
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField()),
                ("read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("dispatched_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("dispatch_attempts", models.PositiveIntegerField(default=0)),
                ("last_error", models.TextField(blank=True, null=True)),
                (
                    "application",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="registration.application",
                    ),
                ),
                (
                    "document",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="registration.document",
                    ),
                ),
            ],
            options={
                "db_table": "notifications",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["user_id", "read"], name="notifications_user_read_idx")],
            },
        ),
    ]
