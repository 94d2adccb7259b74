"""Notification service — guest confirmation and internal alert emails for charter offers."""

import asyncio
import logging
import unicodedata
from dataclasses import dataclass
from html import escape
from typing import Protocol

import httpx

from charterdesk.config import settings
from charterdesk.data.currency import format_money, format_percent
from charterdesk.errors import NotificationError
from charterdesk.schemas.booking import CharterRequest
from charterdesk.services.email_client import EmailAttachment, OutgoingEmail, build_email_client
from charterdesk.services.offer_document import OfferDocument
from charterdesk.services.pricing import PriceBreakdown

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    async def send(self, email: OutgoingEmail) -> str | None: ...

    async def aclose(self) -> None: ...


@dataclass(frozen=True)
class NotificationOutcome:
    attempted: bool
    delivered: bool = False
    error: str | None = None

    @classmethod
    def skipped(cls) -> "NotificationOutcome":
        return cls(attempted=False)

    @classmethod
    def ok(cls) -> "NotificationOutcome":
        return cls(attempted=True, delivered=True)

    @classmethod
    def failed(cls, error: str) -> "NotificationOutcome":
        return cls(attempted=True, delivered=False, error=error)


@dataclass(frozen=True)
class DispatchResult:
    guest: NotificationOutcome
    internal: NotificationOutcome


def _ascii_slug(text: str) -> str:
    folded = unicodedata.normalize("NFKD", text.lower()).encode("ascii", "ignore").decode("ascii")
    return "".join(ch if ch.isalnum() else "-" for ch in folded).strip("-")


def offer_filename(request: CharterRequest) -> str:
    """ASCII-only attachment name; accents are folded and other letters dropped."""
    slug = _ascii_slug(request.yacht_name) or _ascii_slug(request.yacht_id) or "yacht"
    return f"charter-offer-{slug}-{request.start_date.isoformat()}.pdf"


def build_guest_email(
    request: CharterRequest,
    breakdown: PriceBreakdown,
    document: OfferDocument | None,
    provider_name: str,
) -> OutgoingEmail:
    total = format_money(breakdown.total_estimate, request.currency)
    attachments = ()
    if document is not None and document.generated:
        attachments = (EmailAttachment(offer_filename(request), document.content),)

    offer_note = (
        "<p>Your detailed offer is attached as a PDF.</p>"
        if attachments
        else "<p>Our team will send you the detailed offer shortly.</p>"
    )
    html = (
        f"<p>Dear {escape(request.name)},</p>"
        f"<p>Thank you for your interest in chartering <strong>{escape(request.yacht_name)}</strong> "
        f"from {request.start_date.isoformat()} to {request.end_date.isoformat()} "
        f"({breakdown.nights} nights).</p>"
        f"<p>Total estimate: <strong>{total}</strong></p>"
        f"{offer_note}"
        f"<p>This is a non-binding estimate. We will contact you to confirm availability.</p>"
        f"<p>{escape(provider_name)}</p>"
    )
    text = (
        f"Dear {request.name},\n\n"
        f"Thank you for your interest in chartering {request.yacht_name} from "
        f"{request.start_date.isoformat()} to {request.end_date.isoformat()} "
        f"({breakdown.nights} nights).\n"
        f"Total estimate: {total}\n\n"
        f"{provider_name}"
    )
    return OutgoingEmail(
        to=request.email,
        subject=f"Your charter offer: {request.yacht_name}",
        html=html,
        text=text,
        attachments=attachments,
    )


def build_internal_email(
    request: CharterRequest,
    breakdown: PriceBreakdown,
    operations_email: str,
    tax_label: str,
) -> OutgoingEmail:
    currency = request.currency
    rows = [
        f"<tr><td>{line.season.value.title()} season: {line.nights} × "
        f"{format_money(line.daily_rate, currency)}</td>"
        f"<td>{format_money(line.subtotal, currency)}</td></tr>"
        for line in breakdown.season_lines
    ]
    if breakdown.early_bird:
        rows.append(
            f"<tr><td>Early Bird discount</td>"
            f"<td>-{format_money(breakdown.early_bird.discount_amount, currency)}</td></tr>"
        )
    rows.extend([
        f"<tr><td>Base charter fee</td><td>{format_money(breakdown.base_charter_fee, currency)}</td></tr>",
        f"<tr><td>{escape(tax_label)} ({format_percent(request.tax_percentage)}%)</td>"
        f"<td>{format_money(breakdown.tax_amount, currency)}</td></tr>",
        f"<tr><td>APA ({format_percent(request.apa_percentage)}%)</td>"
        f"<td>{format_money(breakdown.apa_amount, currency)}</td></tr>",
    ])
    for fee in breakdown.fixed_fee_items:
        rows.append(f"<tr><td>{escape(fee.label)}</td><td>{format_money(fee.amount, currency)}</td></tr>")
    rows.append(
        f"<tr><td><strong>Total estimate</strong></td>"
        f"<td><strong>{format_money(breakdown.total_estimate, currency)}</strong></td></tr>"
    )

    details = [
        f"<p><strong>Name:</strong> {escape(request.name)}</p>",
        f"<p><strong>Email:</strong> {escape(request.email)}</p>",
    ]
    if request.phone:
        details.append(f"<p><strong>Phone:</strong> {escape(request.phone)}</p>")
    details.append(f"<p><strong>Yacht:</strong> {escape(request.yacht_name)} ({escape(request.yacht_id)})</p>")
    details.append(
        f"<p><strong>Period:</strong> {request.start_date.isoformat()} to {request.end_date.isoformat()} "
        f"({breakdown.nights} nights, primary season {breakdown.primary_season.value})</p>"
    )
    if request.guests:
        details.append(f"<p><strong>Guests:</strong> {request.guests}</p>")
    if request.message:
        details.append(f"<p><strong>Message:</strong> {escape(request.message)}</p>")

    return OutgoingEmail(
        to=operations_email,
        subject=f"New Booking: {request.yacht_name}",
        html="".join(details) + f"<table>{''.join(rows)}</table>",
        reply_to=request.email,
    )


class NotificationDispatcher:
    """Sends the guest confirmation and the internal alert independently of each other."""

    def __init__(
        self,
        sender: EmailSender | None,
        operations_email: str = "",
        provider_name: str = "",
        tax_label: str = "IVA",
        timeout: float = 5.0,
    ):
        self.sender = sender
        self.operations_email = operations_email
        self.provider_name = provider_name
        self.tax_label = tax_label
        self.timeout = timeout

    @property
    def guest_enabled(self) -> bool:
        return self.sender is not None

    @property
    def internal_enabled(self) -> bool:
        return self.sender is not None and bool(self.operations_email)

    async def dispatch(
        self,
        request: CharterRequest,
        breakdown: PriceBreakdown,
        document: OfferDocument | None = None,
    ) -> DispatchResult:
        guest_coro = self._notify_guest(request, breakdown, document)
        internal_coro = self._notify_internal(request, breakdown)
        results = await asyncio.gather(guest_coro, internal_coro, return_exceptions=True)

        outcomes = []
        for channel, result in zip(("guest", "internal"), results):
            if isinstance(result, BaseException):
                logger.error(f"{channel} notification crashed: {result}", exc_info=result)
                outcomes.append(NotificationOutcome.failed(f"{type(result).__name__}: {result}"))
            else:
                outcomes.append(result)
        return DispatchResult(guest=outcomes[0], internal=outcomes[1])

    async def _notify_guest(
        self, request: CharterRequest, breakdown: PriceBreakdown, document: OfferDocument | None
    ) -> NotificationOutcome:
        if not self.guest_enabled:
            return NotificationOutcome.skipped()
        email = build_guest_email(request, breakdown, document, self.provider_name)
        return await self._deliver("guest", email)

    async def _notify_internal(self, request: CharterRequest, breakdown: PriceBreakdown) -> NotificationOutcome:
        if not self.internal_enabled:
            return NotificationOutcome.skipped()
        email = build_internal_email(request, breakdown, self.operations_email, self.tax_label)
        return await self._deliver("internal", email)

    async def _deliver(self, channel: str, email: OutgoingEmail) -> NotificationOutcome:
        try:
            await asyncio.wait_for(self.sender.send(email), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = NotificationError(f"{channel} email timed out after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            error = NotificationError(f"{channel} email rejected: HTTP {e.response.status_code}")
        except (httpx.HTTPError, NotificationError) as e:
            error = NotificationError(f"{channel} email failed: {e}")
        else:
            return NotificationOutcome.ok()

        logger.warning(f"[{error.kind.value}] {error.message}")
        return NotificationOutcome.failed(error.message)


notification_dispatcher = NotificationDispatcher(
    sender=build_email_client(),
    operations_email=settings.operations_email,
    provider_name=settings.provider_name,
    tax_label=settings.tax_label,
    timeout=settings.stage_timeout_seconds,
)
