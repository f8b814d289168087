from django.contrib import admin

from registration.models import Application, AuditLogEntry, Certificate, Document, Notification


class DocumentInline(admin.TabularInline):
    model = Document
    extra = 0
    fields = ("type", "belongs_to", "status", "is_reuploaded", "name", "uploaded_at")
    readonly_fields = ("uploaded_at",)


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ("id", "owner_user_id", "status", "verified", "certificate_number", "created_at")
    list_filter = ("status", "verified", "is_proxy_application", "created_at")
    search_fields = ("id", "owner_user_id", "owner_email", "certificate_number")
    readonly_fields = ("created_at", "last_updated", "verified_at", "verified_by", "progress")
    inlines = [DocumentInline]
    fieldsets = (
        ("Owner", {"fields": ("owner_user_id", "owner_email", "is_proxy_application", "created_by_admin_id")}),
        ("Status", {"fields": ("status", "progress", "submitted_at", "created_at", "last_updated")}),
        (
            "Verification",
            {"fields": ("verified", "verified_at", "verified_by", "certificate_number", "registration_date")},
        ),
        (
            "Details",
            {
                "fields": (
                    "user_details",
                    "partner_details",
                    "user_address",
                    "user_current_address",
                    "partner_address",
                    "partner_current_address",
                    "declarations",
                ),
                "classes": ("collapse",),
            },
        ),
    )


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ("id", "application", "type", "belongs_to", "status", "is_reuploaded", "uploaded_at")
    list_filter = ("status", "type", "is_reuploaded")
    search_fields = ("id", "application__id", "name")
    readonly_fields = ("uploaded_at",)


@admin.register(Certificate)
class CertificateAdmin(admin.ModelAdmin):
    list_display = ("certificate_number", "verification_id", "application", "can_download", "issued_at")
    list_filter = ("can_download", "issued_at")
    search_fields = ("certificate_number", "verification_id", "groom_name", "bride_name")
    readonly_fields = ("verification_id", "pdf_url", "issued_at")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("type", "user_id", "title", "read", "dispatched_at", "dispatch_attempts", "created_at")
    list_filter = ("type", "read", "created_at")
    search_fields = ("user_id", "title")
    readonly_fields = ("created_at", "dispatched_at", "dispatch_attempts", "last_error")


@admin.register(AuditLogEntry)
class AuditLogEntryAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "actor_name", "actor_role", "action", "resource_type", "resource_id")
    list_filter = ("actor_role", "action", "timestamp")
    search_fields = ("actor_name", "action", "resource_id")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
