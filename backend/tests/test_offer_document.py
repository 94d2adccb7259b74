"""Offer document layout and rendering tests."""

from datetime import date
from decimal import Decimal

from charterdesk.services.offer_document import (
    DISCLAIMER,
    DOCUMENT_TITLE,
    Branding,
    OfferDocument,
    OfferDocumentGenerator,
    build_layout,
)
from charterdesk.services.pricing import EarlyBirdOffer, compute

from conftest import BRANDING, make_rate_card, make_request


def _labels(layout):
    return [row.label for row in layout.price_rows]


def test_layout_sections():
    request = make_request()
    layout = build_layout(request, compute(request, make_rate_card()), BRANDING)

    assert layout.header == (
        "Balearic & Costa Blanca Charters",
        "Premium Yacht Charter Services",
        "Phone: +34 600 000 000",
    )
    assert layout.title == DOCUMENT_TITLE
    assert layout.client_lines == (
        "Name: Anna Berzina",
        "Email: anna@example.com",
        "Phone: +371 2000 0000",
    )
    assert layout.charter_lines == (
        "Yacht: Wide Dream",
        "Period: 2026-07-04 to 2026-07-11",
        "Duration: 7 nights",
        "Number of Guests: 6",
        "Season: HIGH",
    )
    assert _labels(layout) == ["Base Charter Fee", "IVA (21%)", "APA (30%)", "Fixed Fees"]
    assert layout.price_rows[2].caption == "Advance Provisioning Allowance"
    assert layout.price_rows[3].caption == "Crew service fee + Cleaning fee"
    assert layout.total.label == "TOTAL ESTIMATE"
    assert layout.total.amount == "€10,342"
    assert layout.footer == (DISCLAIMER, "Balearic & Costa Blanca Charters | +34 600 000 000")


def test_missing_phone_and_guests_omit_their_lines():
    request = make_request(phone=None, guests=None)
    layout = build_layout(request, compute(request, make_rate_card()), BRANDING)

    assert not any(line.startswith("Phone:") for line in layout.client_lines)
    assert not any(line.startswith("Number of Guests:") for line in layout.charter_lines)


def test_blank_phone_is_treated_as_missing():
    request = make_request(phone="   ")
    layout = build_layout(request, compute(request, make_rate_card()), BRANDING)

    assert len(layout.client_lines) == 2


def test_fixed_fees_row_omitted_when_zero():
    request = make_request()
    layout = build_layout(request, compute(request, make_rate_card(fees=())), BRANDING)

    assert "Fixed Fees" not in _labels(layout)


def test_single_night_wording():
    request = make_request(start_date=date(2026, 7, 4), end_date=date(2026, 7, 5))
    layout = build_layout(request, compute(request, make_rate_card()), BRANDING)

    assert "Duration: 1 night" in layout.charter_lines


def test_tax_label_follows_branding():
    request = make_request(tax_percentage=Decimal("20"))
    branding = Branding(provider_name="Riviera Yachts", tax_label="VAT")
    layout = build_layout(request, compute(request, make_rate_card()), branding)

    assert layout.price_rows[1].label == "VAT (20%)"
    assert layout.footer == (DISCLAIMER, "Riviera Yachts")


def test_early_bird_caption_on_base_fee():
    request = make_request()
    breakdown = compute(
        request, make_rate_card(),
        early_bird=EarlyBirdOffer(date(2026, 3, 31), Decimal("10")),
        quoted_on=date(2026, 3, 1),
    )
    layout = build_layout(request, breakdown, BRANDING)

    assert layout.price_rows[0].caption == "Includes Early Bird discount of €665"


def test_render_produces_pdf(generator):
    request = make_request()
    document = generator.render(request, compute(request, make_rate_card()))

    assert document.generated
    assert document.content.startswith(b"%PDF")
    assert document.content_length == len(document.content)


def test_render_is_deterministic():
    request = make_request(phone=None)
    breakdown = compute(request, make_rate_card())

    first = OfferDocumentGenerator(BRANDING).render(request, breakdown)
    second = OfferDocumentGenerator(BRANDING).render(request, breakdown)

    assert first.content == second.content


def test_markup_in_guest_text_is_escaped(generator):
    request = make_request(name="Ana <b>& Co", yacht_name="Wide <Dream>")
    document = generator.render(request, compute(request, make_rate_card()))

    assert document.content.startswith(b"%PDF")


def test_unavailable_document():
    document = OfferDocument.unavailable()

    assert not document.generated
    assert document.content_length == 0
