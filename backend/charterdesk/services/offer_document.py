"""Offer document generator — renders a charter price quote as a fixed-layout PDF.

Rendering is split in two: build_layout() decides which lines and rows appear,
render() draws that layout with ReportLab. Both depend only on their inputs,
and the PDF is written in invariant mode so identical inputs give identical bytes.
"""

import io
import logging
from dataclasses import dataclass
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from charterdesk.config import settings
from charterdesk.data.currency import format_money, format_percent
from charterdesk.schemas.booking import CharterRequest
from charterdesk.services.pricing import PriceBreakdown

logger = logging.getLogger(__name__)

LUXURY_BLUE = colors.HexColor("#002366")
LUXURY_GOLD = colors.HexColor("#D4AF37")
TEXT_DARK = colors.HexColor("#333333")
TEXT_MUTED = colors.HexColor("#666666")
TEXT_FAINT = colors.HexColor("#999999")

DOCUMENT_TITLE = "Charter Booking Offer"
DISCLAIMER = (
    "This is an estimate. Final pricing may vary based on specific requirements and availability."
)


@dataclass(frozen=True)
class Branding:
    provider_name: str
    tagline: str = ""
    phone: str = ""
    tax_label: str = "IVA"

    @classmethod
    def from_settings(cls) -> "Branding":
        return cls(
            provider_name=settings.provider_name,
            tagline=settings.provider_tagline,
            phone=settings.provider_phone,
            tax_label=settings.tax_label,
        )


@dataclass(frozen=True)
class OfferDocument:
    content: bytes
    generated: bool = True

    @property
    def content_length(self) -> int:
        return len(self.content)

    @classmethod
    def unavailable(cls) -> "OfferDocument":
        return cls(content=b"", generated=False)


@dataclass(frozen=True)
class PriceRow:
    label: str
    amount: str
    caption: str | None = None


@dataclass(frozen=True)
class OfferLayout:
    header: tuple[str, ...]
    title: str
    client_lines: tuple[str, ...]
    charter_lines: tuple[str, ...]
    price_rows: tuple[PriceRow, ...]
    total: PriceRow
    footer: tuple[str, ...]


def build_layout(request: CharterRequest, breakdown: PriceBreakdown, branding: Branding) -> OfferLayout:
    """Decide the content of every section. Optional data omits its line or row."""
    currency = request.currency

    header = [branding.provider_name]
    if branding.tagline:
        header.append(branding.tagline)
    if branding.phone:
        header.append(f"Phone: {branding.phone}")

    client_lines = [f"Name: {request.name}", f"Email: {request.email}"]
    if request.phone:
        client_lines.append(f"Phone: {request.phone}")

    night_word = "night" if breakdown.nights == 1 else "nights"
    charter_lines = [
        f"Yacht: {request.yacht_name}",
        f"Period: {request.start_date.isoformat()} to {request.end_date.isoformat()}",
        f"Duration: {breakdown.nights} {night_word}",
    ]
    if request.guests:
        charter_lines.append(f"Number of Guests: {request.guests}")
    charter_lines.append(f"Season: {breakdown.primary_season.value.upper()}")

    base_caption = None
    if breakdown.early_bird:
        base_caption = (
            f"Includes Early Bird discount of "
            f"{format_money(breakdown.early_bird.discount_amount, currency)}"
        )
    rows = [
        PriceRow("Base Charter Fee", format_money(breakdown.base_charter_fee, currency), base_caption),
        PriceRow(
            f"{branding.tax_label} ({format_percent(request.tax_percentage)}%)",
            format_money(breakdown.tax_amount, currency),
        ),
        PriceRow(
            f"APA ({format_percent(request.apa_percentage)}%)",
            format_money(breakdown.apa_amount, currency),
            "Advance Provisioning Allowance",
        ),
    ]
    if breakdown.fixed_fees != 0:
        fee_names = " + ".join(fee.label for fee in breakdown.fixed_fee_items) or None
        rows.append(PriceRow("Fixed Fees", format_money(breakdown.fixed_fees, currency), fee_names))

    footer = [DISCLAIMER]
    contact = " | ".join(part for part in (branding.provider_name, branding.phone) if part)
    if contact:
        footer.append(contact)

    return OfferLayout(
        header=tuple(header),
        title=DOCUMENT_TITLE,
        client_lines=tuple(client_lines),
        charter_lines=tuple(charter_lines),
        price_rows=tuple(rows),
        total=PriceRow("TOTAL ESTIMATE", format_money(breakdown.total_estimate, currency)),
        footer=tuple(footer),
    )


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "brand": ParagraphStyle("Brand", parent=base["Title"], fontSize=22, leading=26, textColor=LUXURY_BLUE),
        "tagline": ParagraphStyle("Tagline", parent=base["Normal"], alignment=TA_CENTER, textColor=TEXT_MUTED, fontSize=12),
        "contact": ParagraphStyle("Contact", parent=base["Normal"], alignment=TA_CENTER, textColor=TEXT_DARK),
        "title": ParagraphStyle("OfferTitle", parent=base["Title"], fontSize=20, textColor=LUXURY_BLUE),
        "section": ParagraphStyle("Section", parent=base["Heading2"], fontSize=14, textColor=TEXT_DARK),
        "line": ParagraphStyle("Line", parent=base["Normal"], fontSize=11, leading=15, textColor=TEXT_MUTED),
        "cell": ParagraphStyle("Cell", parent=base["Normal"], fontSize=11, leading=14, textColor=TEXT_DARK),
        "caption": ParagraphStyle("Caption", parent=base["Normal"], fontSize=9, leading=11, textColor=TEXT_FAINT),
        "amount": ParagraphStyle("Amount", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=11, alignment=TA_RIGHT),
        "total": ParagraphStyle("Total", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=16, leading=20, textColor=LUXURY_BLUE),
        "total_amount": ParagraphStyle("TotalAmount", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=18, leading=22, textColor=LUXURY_BLUE, alignment=TA_RIGHT),
        "footer": ParagraphStyle("Footer", parent=base["Normal"], fontSize=9, alignment=TA_CENTER, textColor=TEXT_FAINT),
    }


class OfferDocumentGenerator:
    """Renders offer PDFs for charter quotes."""

    def __init__(self, branding: Branding):
        self.branding = branding

    def render(self, request: CharterRequest, breakdown: PriceBreakdown) -> OfferDocument:
        layout = build_layout(request, breakdown, self.branding)
        content = self._draw(layout)
        logger.debug(f"Rendered offer for {request.yacht_id}: {len(content)} bytes")
        return OfferDocument(content=content)

    def _draw(self, layout: OfferLayout) -> bytes:
        styles = _styles()
        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            topMargin=0.7 * inch,
            bottomMargin=0.7 * inch,
            title=layout.title,
            author=self.branding.provider_name,
            creator=self.branding.provider_name,
            invariant=1,
        )
        elements = []

        # Header
        elements.append(Paragraph(escape(layout.header[0]), styles["brand"]))
        for line in layout.header[1:]:
            style = styles["contact"] if line.startswith("Phone:") else styles["tagline"]
            elements.append(Paragraph(escape(line), style))
        elements.append(Spacer(1, 6))
        elements.append(HRFlowable(width="100%", thickness=2, color=LUXURY_GOLD, spaceAfter=12))

        elements.append(Paragraph(escape(layout.title), styles["title"]))
        elements.append(Spacer(1, 12))

        elements.append(Paragraph("Client Information:", styles["section"]))
        for line in layout.client_lines:
            elements.append(Paragraph(escape(line), styles["line"]))
        elements.append(Spacer(1, 8))

        elements.append(Paragraph("Charter Details:", styles["section"]))
        for line in layout.charter_lines:
            elements.append(Paragraph(escape(line), styles["line"]))
        elements.append(Spacer(1, 16))

        # Price table
        elements.append(Paragraph("Price Breakdown", styles["title"]))
        data = []
        for row in layout.price_rows:
            label = [Paragraph(escape(row.label), styles["cell"])]
            if row.caption:
                label.append(Paragraph(escape(row.caption), styles["caption"]))
            data.append([label, Paragraph(escape(row.amount), styles["amount"])])
        table = Table(data, colWidths=[4.2 * inch, 2.2 * inch])
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
            ("LINEBELOW", (0, 0), (-1, -2), 0.25, colors.lightgrey),
        ]))
        elements.append(table)

        # Total, separated from the itemized rows
        total = Table(
            [[Paragraph(escape(layout.total.label), styles["total"]),
              Paragraph(escape(layout.total.amount), styles["total_amount"])]],
            colWidths=[4.2 * inch, 2.2 * inch],
        )
        total.setStyle(TableStyle([
            ("LINEABOVE", (0, 0), (-1, 0), 1, LUXURY_GOLD),
            ("TOPPADDING", (0, 0), (-1, -1), 10),
        ]))
        elements.append(Spacer(1, 6))
        elements.append(total)
        elements.append(Spacer(1, 36))

        for line in layout.footer:
            elements.append(Paragraph(escape(line), styles["footer"]))

        doc.build(elements)
        return buf.getvalue()


offer_document_generator = OfferDocumentGenerator(Branding.from_settings())
