import logging

import requests
from django.conf import settings
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


class EmailService:
    """Transactional e-mail through the Resend HTTP API."""

    def __init__(self, api_url: str = None, api_key: str = None, from_email: str = None):
        self.api_url = api_url or settings.RESEND_API_URL
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.from_email = from_email or settings.NOTIFICATION_FROM_EMAIL

    def send(self, to: str, subject: str, html: str) -> dict:
        """
        Send one HTML e-mail.

        Returns:
            dict: Contains 'success' boolean and 'message' string (the provider id on success)
        """
        if not self.api_key:
            logger.warning(f"RESEND_API_KEY not configured, e-mail to {to} not sent")
            return {"success": False, "message": "E-mail provider not configured"}

        try:
            response = requests.post(
                self.api_url,
                json={
                    "from": f"MMR Burwan <{self.from_email}>",
                    "to": [to],
                    "subject": subject,
                    "html": html,
                },
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=10,
            )
        except requests.exceptions.Timeout:
            logger.error(f"Timeout sending e-mail to {to}")
            return {"success": False, "message": "E-mail provider timed out"}
        except requests.RequestException as e:
            logger.error(f"Error sending e-mail to {to}: {str(e)}")
            return {"success": False, "message": str(e)}

        if response.status_code in (200, 201):
            email_id = response.json().get("id", "")
            logger.info(f"E-mail '{subject}' sent to {to} ({email_id})")
            return {"success": True, "message": email_id}

        logger.error(f"E-mail provider rejected message to {to}: {response.status_code} {response.text}")
        return {"success": False, "message": response.text}

    def send_document_rejected(
        self, to: str, document_label: str, document_name: str, reason: str, display_name: str = None
    ) -> dict:
        html = render_to_string(
            "registration/emails/document_rejected.html",
            {
                "display_name": display_name or "Applicant",
                "document_label": document_label,
                "document_name": document_name or document_label,
                "reason": reason,
                "site_url": settings.SITE_URL,
            },
        )
        return self.send(to, f"Document Rejection Notice - {document_label}", html)
