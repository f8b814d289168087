from .application import Application
from .document import Document, document_label
from .certificate import Certificate
from .audit import AuditLogEntry
from .notification import Notification

__all__ = [
    "Application",
    "Document",
    "document_label",
    "Certificate",
    "AuditLogEntry",
    "Notification",
]
