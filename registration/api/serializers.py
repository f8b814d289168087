from rest_framework import serializers

from registration.models import Application, AuditLogEntry, Certificate, Document


class IsoDateField(serializers.DateField):
    """Date validated like DateField but kept as an ISO string for JSON storage."""

    def to_internal_value(self, value):
        return super().to_internal_value(value).isoformat()

    def to_representation(self, value):
        return value


class JSONObjectSerializer(serializers.Serializer):
    """Nested object stored in a JSONField under the fields' source keys."""

    def to_representation(self, instance):
        instance = instance or {}
        return {
            field.field_name: field.to_representation(instance[field.source])
            for field in self._readable_fields
            if instance.get(field.source) is not None
        }


class PersonDetailsSerializer(JSONObjectSerializer):
    """Groom's (user) or bride's (partner) personal details."""

    firstName = serializers.CharField(source="first_name", max_length=100)
    lastName = serializers.CharField(source="last_name", max_length=100, required=False, allow_blank=True)
    dateOfBirth = IsoDateField(source="date_of_birth", required=False)
    aadhaarNumber = serializers.RegexField(
        r"^\d{12}$",
        source="aadhaar_number",
        required=False,
        allow_blank=True,
        error_messages={"invalid": "Aadhaar number must be 12 digits."},
    )
    idNumber = serializers.CharField(source="id_number", max_length=50, required=False, allow_blank=True)
    mobileNumber = serializers.CharField(
        source="mobile_number", max_length=20, required=False, allow_blank=True
    )
    email = serializers.EmailField(required=False, allow_blank=True)
    voterOrRollNo = serializers.CharField(
        source="voter_or_roll_no", max_length=50, required=False, allow_blank=True
    )


class AddressSerializer(JSONObjectSerializer):
    villageStreet = serializers.CharField(source="village_street", max_length=255, allow_blank=True)
    postOffice = serializers.CharField(source="post_office", max_length=100, required=False, allow_blank=True)
    policeStation = serializers.CharField(
        source="police_station", max_length=100, required=False, allow_blank=True
    )
    district = serializers.CharField(max_length=100, required=False, allow_blank=True)
    state = serializers.CharField(max_length=100)
    zipCode = serializers.RegexField(
        r"^\d{6}$", source="zip_code", required=False, allow_blank=True,
        error_messages={"invalid": "PIN code must be 6 digits."},
    )
    country = serializers.CharField(max_length=100, required=False, default="India")


class DeclarationsSerializer(JSONObjectSerializer):
    consent = serializers.BooleanField(required=False)
    accuracy = serializers.BooleanField(required=False)
    legal = serializers.BooleanField(required=False)
    marriageDate = IsoDateField(source="marriage_date", required=False)


class ApplicationUpdateSerializer(serializers.Serializer):
    """
    Admin edit of an application. Each present key replaces the stored
    object; validated_data is keyed by the model field names.
    """

    userDetails = PersonDetailsSerializer(source="user_details", required=False)
    partnerDetails = PersonDetailsSerializer(source="partner_details", required=False)
    userAddress = AddressSerializer(source="user_address", required=False)
    userCurrentAddress = AddressSerializer(source="user_current_address", required=False)
    partnerAddress = AddressSerializer(source="partner_address", required=False)
    partnerCurrentAddress = AddressSerializer(source="partner_current_address", required=False)
    declarations = DeclarationsSerializer(required=False)

    def validate(self, attrs):
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError(f"Fields cannot be edited: {', '.join(unknown)}")
        if not attrs:
            raise serializers.ValidationError("No fields to update")
        return attrs


class DocumentSerializer(serializers.ModelSerializer):
    """Serializer for Document model."""

    applicationId = serializers.UUIDField(source="application_id", read_only=True)
    belongsTo = serializers.CharField(source="belongs_to", read_only=True)
    isReuploaded = serializers.BooleanField(source="is_reuploaded", read_only=True)
    mimeType = serializers.CharField(source="mime_type", read_only=True)
    uploadedAt = serializers.DateTimeField(source="uploaded_at", read_only=True)
    label = serializers.CharField(read_only=True)

    class Meta:
        model = Document
        fields = [
            "id",
            "applicationId",
            "type",
            "belongsTo",
            "label",
            "status",
            "isReuploaded",
            "name",
            "url",
            "size",
            "mimeType",
            "uploadedAt",
        ]
        read_only_fields = fields


class CertificateSerializer(serializers.ModelSerializer):
    """Serializer for Certificate model."""

    applicationId = serializers.UUIDField(source="application_id", read_only=True)
    verificationId = serializers.CharField(source="verification_id", read_only=True)
    certificateNumber = serializers.CharField(source="certificate_number", read_only=True)
    registrationDate = serializers.DateField(source="registration_date", read_only=True)
    groomName = serializers.CharField(source="groom_name", read_only=True)
    brideName = serializers.CharField(source="bride_name", read_only=True)
    pdfUrl = serializers.CharField(source="pdf_url", read_only=True)
    canDownload = serializers.BooleanField(source="can_download", read_only=True)
    issuedAt = serializers.DateTimeField(source="issued_at", read_only=True)

    class Meta:
        model = Certificate
        fields = [
            "id",
            "applicationId",
            "verificationId",
            "name",
            "certificateNumber",
            "registrationDate",
            "groomName",
            "brideName",
            "pdfUrl",
            "canDownload",
            "issuedAt",
        ]
        read_only_fields = fields


class PublicCertificateSerializer(serializers.ModelSerializer):
    """What the public verification page may show: no file URL."""

    verificationId = serializers.CharField(source="verification_id", read_only=True)
    certificateNumber = serializers.CharField(source="certificate_number", read_only=True)
    registrationDate = serializers.DateField(source="registration_date", read_only=True)
    groomName = serializers.CharField(source="groom_name", read_only=True)
    brideName = serializers.CharField(source="bride_name", read_only=True)

    class Meta:
        model = Certificate
        fields = ["verificationId", "certificateNumber", "registrationDate", "groomName", "brideName"]
        read_only_fields = fields


class ApplicationSerializer(serializers.ModelSerializer):
    """Serializer for Application model, with its documents and certificate."""

    userId = serializers.CharField(source="owner_user_id", read_only=True)
    userDetails = PersonDetailsSerializer(source="user_details", read_only=True)
    partnerDetails = PersonDetailsSerializer(source="partner_details", read_only=True)
    userAddress = AddressSerializer(source="user_address", read_only=True)
    userCurrentAddress = AddressSerializer(source="user_current_address", read_only=True)
    partnerAddress = AddressSerializer(source="partner_address", read_only=True)
    partnerCurrentAddress = AddressSerializer(source="partner_current_address", read_only=True)
    declarations = DeclarationsSerializer(read_only=True)
    verifiedAt = serializers.DateTimeField(source="verified_at", read_only=True)
    verifiedBy = serializers.CharField(source="verified_by", read_only=True)
    certificateNumber = serializers.CharField(source="certificate_number", read_only=True)
    registrationDate = serializers.DateField(source="registration_date", read_only=True)
    isProxyApplication = serializers.BooleanField(source="is_proxy_application", read_only=True)
    submittedAt = serializers.DateTimeField(source="submitted_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    lastUpdated = serializers.DateTimeField(source="last_updated", read_only=True)
    documents = DocumentSerializer(many=True, read_only=True)
    certificate = CertificateSerializer(read_only=True)

    class Meta:
        model = Application
        fields = [
            "id",
            "userId",
            "status",
            "progress",
            "userDetails",
            "partnerDetails",
            "userAddress",
            "userCurrentAddress",
            "partnerAddress",
            "partnerCurrentAddress",
            "declarations",
            "verified",
            "verifiedAt",
            "verifiedBy",
            "certificateNumber",
            "registrationDate",
            "isProxyApplication",
            "submittedAt",
            "createdAt",
            "lastUpdated",
            "documents",
            "certificate",
        ]
        read_only_fields = fields


class AuditLogEntrySerializer(serializers.ModelSerializer):
    """Serializer for AuditLogEntry model."""

    actorId = serializers.CharField(source="actor_id", read_only=True)
    actorName = serializers.CharField(source="actor_name", read_only=True)
    actorRole = serializers.CharField(source="actor_role", read_only=True)
    resourceType = serializers.CharField(source="resource_type", read_only=True)
    resourceId = serializers.CharField(source="resource_id", read_only=True)

    class Meta:
        model = AuditLogEntry
        fields = [
            "id",
            "actorId",
            "actorName",
            "actorRole",
            "action",
            "resourceType",
            "resourceId",
            "details",
            "timestamp",
        ]
        read_only_fields = fields


class VerifyApplicationSerializer(serializers.Serializer):
    certificateNumber = serializers.CharField(max_length=100)
    registrationDate = serializers.DateField()


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField()
    notify = serializers.BooleanField(required=False, default=False)


class DocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    type = serializers.ChoiceField(choices=Document.TYPE_CHOICES)
    belongsTo = serializers.ChoiceField(
        choices=Document.BELONGS_TO_CHOICES, required=False, allow_null=True
    )


class DocumentReuploadSerializer(serializers.Serializer):
    file = serializers.FileField()
