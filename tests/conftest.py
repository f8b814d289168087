"""
Pytest configuration and shared fixtures for the test suite.
"""

import datetime

import pytest

from registration.models import Application, Certificate, Document
from registration.services.audit_service import AuditService
from registration.services.certificate_service import CertificateService
from registration.services.document_service import DocumentService
from registration.services.workflow_service import WorkflowService

ADMIN_ID = "admin-1"
ADMIN_NAME = "Registrar Das"


class FakeStorage:
    """In-memory storage collaborator that records stored and deleted URLs."""

    def __init__(self, fail_store=False):
        self.objects = {}
        self.deleted = []
        self.fail_store = fail_store
        self.counter = 0

    def store(self, content, content_type, name=None):
        if self.fail_store:
            raise IOError("storage unavailable")
        self.counter += 1
        url = f"memory://{name or self.counter}"
        self.objects[url] = (content, content_type)
        return url

    def delete(self, url):
        self.deleted.append(url)
        self.objects.pop(url, None)


class FakeRenderer:
    def __init__(self, fail=False):
        self.snapshots = []
        self.fail = fail

    def render_certificate_pdf(self, snapshot):
        if self.fail:
            raise RuntimeError("renderer crashed")
        self.snapshots.append(snapshot)
        return b"%PDF-1.4 fake"


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, **kwargs):
        self.sent.append(kwargs)
        return kwargs


class FailingNotifier:
    def __init__(self):
        self.calls = 0

    def notify(self, **kwargs):
        self.calls += 1
        raise ConnectionError("notification backend down")


@pytest.fixture
def sample_user_details():
    return {
        "first_name": "Rahul",
        "last_name": "Sen",
        "date_of_birth": "1995-04-12",
        "aadhaar_number": "123412341234",
        "mobile_number": "9876543210",
    }


@pytest.fixture
def sample_partner_details():
    return {
        "first_name": "Priya",
        "last_name": "Roy",
        "date_of_birth": "1997-08-30",
        "aadhaar_number": "432143214321",
    }


@pytest.fixture
def sample_address():
    return {
        "village_street": "12 Station Road",
        "post_office": "Burwan",
        "police_station": "Burwan",
        "district": "Murshidabad",
        "state": "West Bengal",
        "zip_code": "742132",
    }


@pytest.fixture
def create_application(db, sample_user_details, sample_partner_details, sample_address):
    """Factory fixture to create a submitted application."""

    def _create_application(**kwargs):
        data = {
            "owner_user_id": "user-1",
            "owner_email": "rahul@example.com",
            "status": Application.STATUS_SUBMITTED,
            "user_details": sample_user_details,
            "partner_details": sample_partner_details,
            "user_address": sample_address,
            "partner_address": sample_address,
            "declarations": {"consent": True, "accuracy": True, "legal": True, "marriage_date": "2024-11-20"},
            **kwargs,
        }
        return Application.objects.create(**data)

    return _create_application


@pytest.fixture
def create_document(db):
    """Factory fixture to create a document for an application."""

    def _create_document(application, **kwargs):
        data = {
            "type": "aadhaar",
            "belongs_to": "user",
            "status": Document.STATUS_PENDING,
            "name": "aadhaar.pdf",
            "url": "memory://original",
            "size": 10,
            "mime_type": "application/pdf",
            **kwargs,
        }
        return Document.objects.create(application=application, **data)

    return _create_document


@pytest.fixture
def verified_application(create_application):
    """Verified application without a certificate yet."""
    return create_application(
        verified=True,
        verified_by=ADMIN_ID,
        certificate_number="WB-MSD-BRW-I-1-C-2024-16-2025-21",
        registration_date=datetime.date(2025, 1, 15),
    )


@pytest.fixture
def create_certificate(db):
    def _create_certificate(application, **kwargs):
        data = {
            "verification_id": "MMR-BW-2025-ABC123",
            "certificate_number": application.certificate_number or "CERT-1",
            "registration_date": application.registration_date or datetime.date(2025, 1, 15),
            "groom_name": application.groom_name,
            "bride_name": application.bride_name,
            "pdf_url": "memory://cert.pdf",
            **kwargs,
        }
        return Certificate.objects.create(application=application, **data)

    return _create_certificate


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def audit():
    return AuditService()


@pytest.fixture
def certificate_service(storage, renderer, notifier, audit):
    return CertificateService(storage=storage, renderer=renderer, notifier=notifier, audit=audit)


@pytest.fixture
def workflow(notifier, audit, certificate_service):
    return WorkflowService(notifier=notifier, audit=audit, certificates=certificate_service)


@pytest.fixture
def document_service(storage, notifier, audit):
    return DocumentService(storage=storage, notifier=notifier, audit=audit)


@pytest.fixture
def mock_publisher(mocker):
    """Mock RabbitMQ publication so tests never reach a broker."""
    return mocker.patch(
        "registration.rabbitmq.publisher.publish_notification_created", return_value=True
    )
