"""Notification dispatcher and Resend client tests."""

import asyncio
import base64
import json

import httpx
import pytest

from charterdesk.services.email_client import EmailAttachment, OutgoingEmail, ResendClient
from charterdesk.services.notification_service import (
    NotificationDispatcher,
    build_guest_email,
    build_internal_email,
    offer_filename,
)
from charterdesk.services.offer_document import OfferDocument
from charterdesk.services.pricing import compute

from conftest import RecordingSender, make_rate_card, make_request

OPS = "ops@charters.example.com"


def _quote(**overrides):
    request = make_request(**overrides)
    return request, compute(request, make_rate_card())


def test_no_email_capability_skips_both_channels():
    request, breakdown = _quote()
    dispatcher = NotificationDispatcher(sender=None, operations_email=OPS)

    result = asyncio.run(dispatcher.dispatch(request, breakdown))

    assert not result.guest.attempted
    assert not result.internal.attempted
    assert not result.guest.delivered


def test_internal_channel_skipped_without_operations_address():
    request, breakdown = _quote()
    sender = RecordingSender()
    dispatcher = NotificationDispatcher(sender=sender, operations_email="")

    result = asyncio.run(dispatcher.dispatch(request, breakdown))

    assert result.guest.delivered
    assert not result.internal.attempted
    assert [email.to for email in sender.sent] == ["anna@example.com"]


def test_both_channels_delivered():
    request, breakdown = _quote()
    sender = RecordingSender()
    dispatcher = NotificationDispatcher(sender=sender, operations_email=OPS, provider_name="Sea Co")

    result = asyncio.run(dispatcher.dispatch(request, breakdown, OfferDocument(b"%PDF-1.4 test")))

    assert result.guest.delivered and result.internal.delivered
    assert sorted(email.to for email in sender.sent) == sorted(["anna@example.com", OPS])


def test_guest_failure_does_not_block_internal():
    request, breakdown = _quote()
    sender = RecordingSender(fail_for={"anna@example.com"})
    dispatcher = NotificationDispatcher(sender=sender, operations_email=OPS)

    result = asyncio.run(dispatcher.dispatch(request, breakdown))

    assert result.guest.attempted and not result.guest.delivered
    assert "guest email failed" in result.guest.error
    assert result.internal.delivered
    assert [email.to for email in sender.sent] == [OPS]


def test_internal_failure_does_not_block_guest():
    request, breakdown = _quote()
    sender = RecordingSender(fail_for={OPS})
    dispatcher = NotificationDispatcher(sender=sender, operations_email=OPS)

    result = asyncio.run(dispatcher.dispatch(request, breakdown))

    assert result.guest.delivered
    assert not result.internal.delivered


def test_slow_provider_times_out():
    request, breakdown = _quote()
    dispatcher = NotificationDispatcher(
        sender=RecordingSender(delay=1.0), operations_email=OPS, timeout=0.05
    )

    result = asyncio.run(dispatcher.dispatch(request, breakdown))

    assert not result.guest.delivered
    assert "timed out" in result.guest.error
    assert not result.internal.delivered


def test_unexpected_sender_crash_is_contained():
    class BrokenSender(RecordingSender):
        async def send(self, email):
            raise RuntimeError("bad state")

    request, breakdown = _quote()
    dispatcher = NotificationDispatcher(sender=BrokenSender(), operations_email=OPS)

    result = asyncio.run(dispatcher.dispatch(request, breakdown))

    assert result.guest.attempted and not result.guest.delivered
    assert "RuntimeError" in result.guest.error
    assert not result.internal.delivered


def test_guest_email_attaches_generated_document():
    request, breakdown = _quote()
    email = build_guest_email(request, breakdown, OfferDocument(b"%PDF-1.4 test"), "Sea Co")

    assert email.to == "anna@example.com"
    assert email.subject == "Your charter offer: Wide Dream"
    assert email.attachments == (
        EmailAttachment("charter-offer-wide-dream-2026-07-04.pdf", b"%PDF-1.4 test"),
    )
    assert "€10,342" in email.html


def test_guest_email_without_document_has_no_attachment():
    request, breakdown = _quote()

    assert build_guest_email(request, breakdown, None, "Sea Co").attachments == ()
    assert build_guest_email(request, breakdown, OfferDocument.unavailable(), "Sea Co").attachments == ()


def test_internal_email_is_itemized():
    request, breakdown = _quote(message="Vegetarian <menu> please")
    email = build_internal_email(request, breakdown, OPS, "IVA")

    assert email.subject == "New Booking: Wide Dream"
    assert email.reply_to == "anna@example.com"
    assert "High season: 7 × €950" in email.html
    assert "IVA (21%)" in email.html
    assert "Crew service fee" in email.html
    assert "Vegetarian &lt;menu&gt; please" in email.html
    assert email.attachments == ()


def test_internal_email_omits_missing_optional_fields():
    request, breakdown = _quote(phone=None, message=None)
    email = build_internal_email(request, breakdown, OPS, "IVA")

    assert "Phone:" not in email.html
    assert "Message:" not in email.html


def test_offer_filename_slug():
    request = make_request(yacht_name="Mar Azul (Bavaria C45)")
    assert offer_filename(request) == "charter-offer-mar-azul--bavaria-c45-2026-07-04.pdf"


def test_resend_client_posts_email():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_123"})

    client = ResendClient(
        api_key="re_test", sender="Offers <offers@example.com>",
        transport=httpx.MockTransport(handler),
    )
    email = OutgoingEmail(
        to="anna@example.com",
        subject="Your charter offer",
        html="<p>Hi</p>",
        text="Hi",
        attachments=(EmailAttachment("offer.pdf", b"%PDF"),),
        reply_to="ops@example.com",
    )

    async def run():
        try:
            return await client.send(email)
        finally:
            await client.aclose()

    assert asyncio.run(run()) == "email_123"
    assert seen["path"] == "/emails"
    assert seen["auth"] == "Bearer re_test"
    assert seen["body"]["from"] == "Offers <offers@example.com>"
    assert seen["body"]["to"] == ["anna@example.com"]
    assert seen["body"]["reply_to"] == "ops@example.com"
    assert seen["body"]["attachments"] == [
        {"filename": "offer.pdf", "content": base64.b64encode(b"%PDF").decode("ascii")}
    ]


def test_resend_rejection_becomes_failed_outcome():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"message": "invalid from address"})

    client = ResendClient(api_key="re_test", sender="x@example.com", transport=httpx.MockTransport(handler))
    request, breakdown = _quote()
    dispatcher = NotificationDispatcher(sender=client, operations_email=OPS)

    result = asyncio.run(dispatcher.dispatch(request, breakdown))

    assert result.guest.error == "guest email rejected: HTTP 422"
    assert result.internal.error == "internal email rejected: HTTP 422"


def test_resend_raises_on_http_error():
    client = ResendClient(
        api_key="re_test", sender="x@example.com",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    email = OutgoingEmail(to="anna@example.com", subject="s", html="<p>h</p>")

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.send(email))


def test_offer_filename_is_ascii_for_any_yacht_name():
    assert offer_filename(make_request(yacht_name="Złota Łódź")) == "charter-offer-zota-odz-2026-07-04.pdf"
    assert offer_filename(make_request(yacht_name="Île Dorée")) == "charter-offer-ile-doree-2026-07-04.pdf"
    assert offer_filename(make_request(yacht_name="海风")) == "charter-offer-lagoon-42-wide-dream-2026-07-04.pdf"
