from io import BytesIO

from django.conf import settings
from reportlab.lib.colors import HexColor, black
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas


GOLD = HexColor("#d4af37")
NAVY = HexColor("#0f172a")


class CertificateRenderer:
    """Renders the marriage registration certificate PDF from an application snapshot."""

    def __init__(self, issuer_name: str = None):
        self.issuer_name = issuer_name or settings.CERTIFICATE_ISSUER_NAME

    def render_certificate_pdf(self, snapshot: dict) -> bytes:
        """
        Draw a single A4 page certificate.

        Args:
            snapshot: Plain data built by CertificateService.build_snapshot, with
                keys certificate_number, registration_date, verification_id,
                groom, bride (name/date_of_birth/address) and marriage_date

        Returns:
            bytes: The PDF document
        """
        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        width, height = A4

        pdf.setTitle(f"Marriage Certificate {snapshot['certificate_number']}")
        pdf.setStrokeColor(GOLD)
        pdf.setLineWidth(3)
        pdf.rect(0.5 * inch, 0.5 * inch, width - inch, height - inch)

        pdf.setFillColor(NAVY)
        pdf.setFont("Times-Bold", 22)
        pdf.drawCentredString(width / 2, height - 1.3 * inch, "CERTIFICATE OF MARRIAGE REGISTRATION")
        pdf.setFont("Times-Roman", 12)
        pdf.drawCentredString(
            width / 2, height - 1.6 * inch, "Registered under the Special Marriage Act, 1954"
        )

        pdf.setFillColor(black)
        y = height - 2.3 * inch
        for label, value in (
            ("Certificate Number", snapshot["certificate_number"]),
            ("Registration Date", snapshot["registration_date"]),
            ("Date of Marriage", snapshot.get("marriage_date") or "N/A"),
        ):
            y = self._draw_field(pdf, label, value, y)

        y -= 0.2 * inch
        for heading, person in (("Groom", snapshot["groom"]), ("Bride", snapshot["bride"])):
            pdf.setFont("Times-Bold", 14)
            pdf.drawString(inch, y, heading)
            y -= 0.3 * inch
            y = self._draw_field(pdf, "Name", person.get("name") or "N/A", y)
            y = self._draw_field(pdf, "Date of Birth", person.get("date_of_birth") or "N/A", y)
            y = self._draw_field(pdf, "Address", person.get("address") or "N/A", y)
            y -= 0.2 * inch

        pdf.setFont("Times-Roman", 10)
        pdf.drawString(inch, 1.3 * inch, f"Verification ID: {snapshot['verification_id']}")
        pdf.drawRightString(width - inch, 1.3 * inch, self.issuer_name)

        pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    def _draw_field(self, pdf, label, value, y):
        pdf.setFont("Times-Bold", 11)
        pdf.drawString(inch, y, f"{label}:")
        pdf.setFont("Times-Roman", 11)
        pdf.drawString(2.8 * inch, y, str(value))
        return y - 0.28 * inch
