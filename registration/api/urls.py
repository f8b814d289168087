from django.urls import path

from registration.api.views import (
    ApplicationDetailView,
    ApplicationListView,
    ApplicationStatsView,
    ApproveApplicationView,
    ApproveDocumentView,
    AuditLogListView,
    CertificateNumberAvailabilityView,
    DisableDownloadView,
    EnableDownloadView,
    GenerateCertificateView,
    RejectApplicationView,
    RejectDocumentView,
    ReuploadDocumentView,
    UnverifyApplicationView,
    UploadDocumentView,
    VerifyApplicationView,
    VerifyCertificateView,
)

urlpatterns = [
    # Applications
    path("applications/", ApplicationListView.as_view(), name="application-list"),
    path("applications/stats/", ApplicationStatsView.as_view(), name="application-stats"),
    path(
        "applications/<uuid:application_id>/",
        ApplicationDetailView.as_view(),
        name="application-detail",
    ),
    path(
        "applications/<uuid:application_id>/verify/",
        VerifyApplicationView.as_view(),
        name="application-verify",
    ),
    path(
        "applications/<uuid:application_id>/unverify/",
        UnverifyApplicationView.as_view(),
        name="application-unverify",
    ),
    path(
        "applications/<uuid:application_id>/approve/",
        ApproveApplicationView.as_view(),
        name="application-approve",
    ),
    path(
        "applications/<uuid:application_id>/reject/",
        RejectApplicationView.as_view(),
        name="application-reject",
    ),
    path(
        "applications/<uuid:application_id>/certificate/",
        GenerateCertificateView.as_view(),
        name="application-certificate",
    ),
    path(
        "applications/<uuid:application_id>/documents/",
        UploadDocumentView.as_view(),
        name="application-documents",
    ),
    path(
        "certificate-numbers/<str:certificate_number>/availability/",
        CertificateNumberAvailabilityView.as_view(),
        name="certificate-number-availability",
    ),
    # Documents
    path(
        "documents/<uuid:document_id>/approve/", ApproveDocumentView.as_view(), name="document-approve"
    ),
    path(
        "documents/<uuid:document_id>/reject/", RejectDocumentView.as_view(), name="document-reject"
    ),
    path(
        "documents/<uuid:document_id>/reupload/",
        ReuploadDocumentView.as_view(),
        name="document-reupload",
    ),
    # Certificates
    path(
        "certificates/verify/<str:certificate_number>/",
        VerifyCertificateView.as_view(),
        name="certificate-verify",
    ),
    path(
        "certificates/<uuid:certificate_id>/enable-download/",
        EnableDownloadView.as_view(),
        name="certificate-enable-download",
    ),
    path(
        "certificates/<uuid:certificate_id>/disable-download/",
        DisableDownloadView.as_view(),
        name="certificate-disable-download",
    ),
    # Audit log
    path("audit-logs/", AuditLogListView.as_view(), name="audit-log-list"),
]
