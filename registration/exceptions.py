"""
Error taxonomy for the verification and certificate issuance workflow.

Primary-operation errors (gate failures, unknown ids, explicit conflicts)
propagate to the caller. SecondaryEffectFailure is internal: it wraps
notify/render/upload failures that happen after a primary transition has
committed and is always caught and logged at that boundary.
"""


class RegistrationError(Exception):
    """Base class for all workflow errors."""

    code = "registration_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(RegistrationError):
    """Input or state precondition failed; the caller must fix it first."""

    code = "validation_error"


class BlockedByRejectedDocuments(ValidationError):
    """Verification refused while rejected, not re-uploaded documents exist."""

    code = "blocked_by_rejected_documents"

    def __init__(self, labels):
        self.labels = list(labels)
        super().__init__(
            "Cannot verify application. The following document(s) have been rejected "
            f"and not re-uploaded: {', '.join(self.labels)}. "
            "Please wait for the client to re-upload these documents."
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["blockedDocuments"] = self.labels
        return data


class NotFoundError(RegistrationError):
    """Unknown application, document or certificate id."""

    code = "not_found"

    def __init__(self, resource_type: str, resource_id):
        self.resource_type = resource_type
        self.resource_id = str(resource_id)
        super().__init__(f"{resource_type.capitalize()} {resource_id} not found")


class ConflictError(RegistrationError):
    """The requested transition conflicts with the current state."""

    code = "conflict"


class ImmutableRecordError(RegistrationError):
    """Attempt to update or delete an append-only record."""

    code = "immutable_record"


class SecondaryEffectFailure(RegistrationError):
    """A best-effort side effect failed after the primary commit."""

    code = "secondary_effect_failure"

    def __init__(self, effect: str, cause: Exception):
        self.effect = effect
        self.cause = cause
        super().__init__(f"{effect} failed: {cause}")
