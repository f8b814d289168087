from rest_framework import generics, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from registration.api.serializers import (
    ApplicationSerializer,
    ApplicationUpdateSerializer,
    AuditLogEntrySerializer,
    CertificateSerializer,
    DocumentReuploadSerializer,
    DocumentSerializer,
    DocumentUploadSerializer,
    PublicCertificateSerializer,
    RejectSerializer,
    VerifyApplicationSerializer,
)
from registration.exceptions import (
    ConflictError,
    ImmutableRecordError,
    NotFoundError,
    RegistrationError,
    ValidationError,
)
from registration.services.audit_service import AuditService
from registration.services.certificate_service import CertificateService
from registration.services.document_service import DocumentService
from registration.services.workflow_service import WorkflowService

ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ImmutableRecordError, status.HTTP_409_CONFLICT),
)


def get_actor(request):
    """
    Acting admin from the headers set by the authenticating gateway.

    Returns:
        tuple: (actor_id, actor_name)
    """
    actor_id = (request.headers.get("X-Actor-Id") or "").strip()
    if not actor_id:
        raise ValidationError("Missing X-Actor-Id header")
    actor_name = (request.headers.get("X-Actor-Name") or "").strip() or actor_id
    return actor_id, actor_name


class RegistrationAPIView(APIView):
    """APIView that answers workflow errors with their HTTP status and error body."""

    def handle_exception(self, exc):
        if isinstance(exc, RegistrationError):
            for error_class, http_status in ERROR_STATUS:
                if isinstance(exc, error_class):
                    return Response(exc.to_dict(), status=http_status)
        return super().handle_exception(exc)


class ApplicationListView(generics.ListAPIView):
    """
    Admin console listing of applications, newest first.

    GET /api/v1/applications/?search=<text>&verified=verified|unverified|submitted|draft
    """

    serializer_class = ApplicationSerializer

    def get_queryset(self):
        return WorkflowService().list_applications(
            search=self.request.query_params.get("search"),
            verified_filter=self.request.query_params.get("verified"),
        ).select_related("certificate")


class ApplicationStatsView(RegistrationAPIView):
    """
    Dashboard counters.

    GET /api/v1/applications/stats/
    """

    def get(self, request):
        return Response(WorkflowService().get_application_stats(), status=status.HTTP_200_OK)


class ApplicationDetailView(RegistrationAPIView):
    """
    GET   /api/v1/applications/{application_id}/
    PATCH /api/v1/applications/{application_id}/

    PATCH body: any of userDetails, partnerDetails, userAddress,
    userCurrentAddress, partnerAddress, partnerCurrentAddress, declarations.
    """

    def get(self, request, application_id):
        application = WorkflowService().get_application(application_id)
        return Response(ApplicationSerializer(application).data, status=status.HTTP_200_OK)

    def patch(self, request, application_id):
        actor_id, actor_name = get_actor(request)
        serializer = ApplicationUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        application = WorkflowService().update_application(
            application_id, serializer.validated_data, actor_id, actor_name
        )
        return Response(ApplicationSerializer(application).data, status=status.HTTP_200_OK)


class VerifyApplicationView(RegistrationAPIView):
    """
    Verify an application and issue its certificate.

    POST /api/v1/applications/{application_id}/verify/

    Request body:
    {
        "certificateNumber": "WB-MSD-BRW-I-1-C-2024-16-2025-21",
        "registrationDate": "2025-01-15"
    }

    400 with blockedDocuments when rejected documents await re-upload.
    """

    def post(self, request, application_id):
        actor_id, actor_name = get_actor(request)
        serializer = VerifyApplicationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        service = WorkflowService()
        service.verify_application(
            application_id,
            actor_id,
            actor_name,
            certificate_number=serializer.validated_data["certificateNumber"],
            registration_date=serializer.validated_data["registrationDate"],
        )
        application = service.get_application(application_id)
        return Response(ApplicationSerializer(application).data, status=status.HTTP_200_OK)


class UnverifyApplicationView(RegistrationAPIView):
    """POST /api/v1/applications/{application_id}/unverify/"""

    def post(self, request, application_id):
        actor_id, actor_name = get_actor(request)
        application = WorkflowService().unverify_application(application_id, actor_id, actor_name)
        return Response(ApplicationSerializer(application).data, status=status.HTTP_200_OK)


class ApproveApplicationView(RegistrationAPIView):
    """POST /api/v1/applications/{application_id}/approve/"""

    def post(self, request, application_id):
        actor_id, actor_name = get_actor(request)
        application = WorkflowService().approve_application(application_id, actor_id, actor_name)
        return Response(ApplicationSerializer(application).data, status=status.HTTP_200_OK)


class RejectApplicationView(RegistrationAPIView):
    """
    POST /api/v1/applications/{application_id}/reject/

    Request body: {"reason": "..."}
    """

    def post(self, request, application_id):
        actor_id, actor_name = get_actor(request)
        serializer = RejectSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        application = WorkflowService().reject_application(
            application_id, serializer.validated_data["reason"], actor_id, actor_name
        )
        return Response(ApplicationSerializer(application).data, status=status.HTTP_200_OK)


class GenerateCertificateView(RegistrationAPIView):
    """
    Explicit certificate generation, used when issuance after verification failed.

    POST /api/v1/applications/{application_id}/certificate/
    """

    def post(self, request, application_id):
        actor_id, actor_name = get_actor(request)
        certificate = CertificateService().generate_certificate(
            application_id, actor_id, actor_name
        )
        return Response(CertificateSerializer(certificate).data, status=status.HTTP_201_CREATED)


class UploadDocumentView(RegistrationAPIView):
    """
    Upload a document on behalf of an offline applicant (proxy applications only).

    POST /api/v1/applications/{application_id}/documents/
    multipart: file, type, belongsTo
    """

    def post(self, request, application_id):
        actor_id, actor_name = get_actor(request)
        serializer = DocumentUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        application = WorkflowService().get_application(application_id)
        if not application.is_proxy_application:
            return Response(
                {"message": "Documents can only be uploaded by admins for proxy applications"},
                status=status.HTTP_403_FORBIDDEN,
            )

        upload = serializer.validated_data["file"]
        document = DocumentService().upload_document(
            application.pk,
            upload.read(),
            upload.content_type,
            doc_type=serializer.validated_data["type"],
            belongs_to=serializer.validated_data.get("belongsTo"),
            name=upload.name,
            actor_id=actor_id,
            actor_name=actor_name,
        )
        return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)


class CertificateNumberAvailabilityView(RegistrationAPIView):
    """
    Check whether a certificate number is already used before verifying.

    GET /api/v1/certificate-numbers/{certificate_number}/availability/?excludeApplication=<id>
    """

    def get(self, request, certificate_number):
        exclude = request.query_params.get("excludeApplication")
        if exclude:
            exclude = WorkflowService().get_application(exclude).pk
        taken = WorkflowService().is_certificate_number_taken(
            certificate_number, exclude_application_id=exclude
        )
        return Response(
            {"certificateNumber": certificate_number, "available": not taken},
            status=status.HTTP_200_OK,
        )


class ApproveDocumentView(RegistrationAPIView):
    """POST /api/v1/documents/{document_id}/approve/"""

    def post(self, request, document_id):
        actor_id, actor_name = get_actor(request)
        document = DocumentService().approve_document(document_id, actor_id, actor_name)
        return Response(DocumentSerializer(document).data, status=status.HTTP_200_OK)


class RejectDocumentView(RegistrationAPIView):
    """
    POST /api/v1/documents/{document_id}/reject/

    Request body: {"reason": "Image is blurry", "notify": true}
    """

    def post(self, request, document_id):
        actor_id, actor_name = get_actor(request)
        serializer = RejectSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        document = DocumentService().reject_document(
            document_id,
            serializer.validated_data["reason"],
            actor_id,
            actor_name,
            notify=serializer.validated_data["notify"],
        )
        return Response(DocumentSerializer(document).data, status=status.HTTP_200_OK)


class ReuploadDocumentView(RegistrationAPIView):
    """
    Replace a document's content on behalf of an offline applicant.

    POST /api/v1/documents/{document_id}/reupload/
    multipart: file

    403 unless the document belongs to a proxy application.
    """

    def post(self, request, document_id):
        actor_id, actor_name = get_actor(request)
        serializer = DocumentReuploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        service = DocumentService()
        document = service.get_document(document_id)
        if not document.application.is_proxy_application:
            return Response(
                {"message": "Documents can only be re-uploaded by admins for proxy applications"},
                status=status.HTTP_403_FORBIDDEN,
            )

        upload = serializer.validated_data["file"]
        document = service.reupload_document(
            document.pk,
            upload.read(),
            upload.content_type,
            name=upload.name,
            actor_id=actor_id,
            actor_name=actor_name,
        )
        return Response(DocumentSerializer(document).data, status=status.HTTP_200_OK)


class EnableDownloadView(RegistrationAPIView):
    """POST /api/v1/certificates/{certificate_id}/enable-download/"""

    def post(self, request, certificate_id):
        actor_id, actor_name = get_actor(request)
        certificate = CertificateService().enable_download(certificate_id, actor_id, actor_name)
        return Response(CertificateSerializer(certificate).data, status=status.HTTP_200_OK)


class DisableDownloadView(RegistrationAPIView):
    """POST /api/v1/certificates/{certificate_id}/disable-download/"""

    def post(self, request, certificate_id):
        actor_id, actor_name = get_actor(request)
        certificate = CertificateService().disable_download(certificate_id, actor_id, actor_name)
        return Response(CertificateSerializer(certificate).data, status=status.HTTP_200_OK)


class VerifyCertificateView(RegistrationAPIView):
    """
    Public certificate verification by certificate number.

    GET /api/v1/certificates/verify/{certificate_number}/
    """

    permission_classes = [AllowAny]

    def get(self, request, certificate_number):
        certificate = CertificateService().lookup_by_certificate_number(certificate_number)
        if certificate is None:
            return Response(
                {"valid": False, "message": "No verified certificate with this number"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(
            {"valid": True, "certificate": PublicCertificateSerializer(certificate).data},
            status=status.HTTP_200_OK,
        )


class AuditLogListView(generics.ListAPIView):
    """
    GET /api/v1/audit-logs/?actorRole=admin&action=document&search=<text>
    """

    serializer_class = AuditLogEntrySerializer

    def get_queryset(self):
        return AuditService().query(
            actor_role=self.request.query_params.get("actorRole"),
            action=self.request.query_params.get("action"),
            search=self.request.query_params.get("search"),
        )
