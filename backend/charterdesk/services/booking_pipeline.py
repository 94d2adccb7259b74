"""Booking pipeline — turns a charter request into a quote, a record, an offer PDF and notifications.

Stages:
  1. validate  (fatal)        recompute the quote server-side and check it
  2. document  (best-effort)  render the offer PDF
  3. persist   (best-effort)  record the inquiry        } run concurrently
  4. notify    (best-effort)  guest + internal emails   }
  5. assemble                 fold every stage outcome into one response
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from charterdesk.config import settings
from charterdesk.data.seasons import balearic_season_of
from charterdesk.database import async_session_factory
from charterdesk.errors import (
    BookingError,
    CurrencyMismatchError,
    DocumentGenerationError,
    ErrorKind,
    NotificationError,
    PersistenceError,
    PriceConsistencyError,
    UnknownYachtError,
)
from charterdesk.schemas.booking import CharterRequest, ClientPriceBreakdown
from charterdesk.services.inquiry_gateway import BookingPersistenceGateway, PersistenceResult
from charterdesk.services.notification_service import (
    DispatchResult,
    NotificationDispatcher,
    NotificationOutcome,
    notification_dispatcher,
)
from charterdesk.services.offer_document import (
    OfferDocument,
    OfferDocumentGenerator,
    offer_document_generator,
)
from charterdesk.services.pricing import (
    EarlyBirdOffer,
    PriceBreakdown,
    RateCard,
    SeasonLookup,
    assert_consistent,
    check_client_breakdown,
    compute,
    diff_client_breakdown,
)
from charterdesk.services.rate_card_service import rate_card_service

logger = logging.getLogger(__name__)

RateCardLookup = Callable[[str], Awaitable[RateCard | None]]

# Extra time the dispatcher gets over its own per-channel timeout
NOTIFY_GRACE_SECONDS = 1.0


class Stage(str, Enum):
    VALIDATE = "validate"
    DOCUMENT = "document"
    PERSIST = "persist"
    NOTIFY_GUEST = "notify_guest"
    NOTIFY_INTERNAL = "notify_internal"


class StageStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StageResult:
    stage: Stage
    status: StageStatus
    error_kind: ErrorKind | None = None
    error: str | None = None

    @classmethod
    def succeeded(cls, stage: Stage) -> "StageResult":
        return cls(stage, StageStatus.SUCCEEDED)

    @classmethod
    def skipped(cls, stage: Stage) -> "StageResult":
        return cls(stage, StageStatus.SKIPPED)

    @classmethod
    def failed(cls, stage: Stage, error: BookingError) -> "StageResult":
        return cls(stage, StageStatus.FAILED, error.kind, error.message)


@dataclass(frozen=True)
class Quote:
    """Stage 1 output: the validated request and its server-side breakdown."""

    request: CharterRequest
    breakdown: PriceBreakdown
    price_mismatch: tuple[str, ...] = ()


@dataclass(frozen=True)
class BookingOutcome:
    quote: Quote
    document: OfferDocument
    inquiry_id: uuid.UUID | None
    guest: NotificationOutcome
    internal: NotificationOutcome
    stages: tuple[StageResult, ...]

    @property
    def partial(self) -> bool:
        return any(result.status == StageStatus.FAILED for result in self.stages)

    def to_response(self) -> dict:
        body = {
            "success": True,
            "partial": self.partial,
            "documentAttached": self.document.generated,
            "notified": {
                "guest": self.guest.delivered,
                "internal": self.internal.delivered,
            },
            "stages": {result.stage.value: result.status.value for result in self.stages},
            "errors": [
                {"stage": result.stage.value, "kind": result.error_kind.value, "detail": result.error}
                for result in self.stages
                if result.status == StageStatus.FAILED
            ],
            "priceBreakdown": self.quote.breakdown.to_dict(),
            "priceMismatch": bool(self.quote.price_mismatch),
        }
        if self.inquiry_id is not None:
            body["inquiryId"] = str(self.inquiry_id)
        return body


def _notification_stage(stage: Stage, outcome: NotificationOutcome) -> StageResult:
    if not outcome.attempted:
        return StageResult.skipped(stage)
    if outcome.delivered:
        return StageResult.succeeded(stage)
    return StageResult.failed(stage, NotificationError(outcome.error or "delivery failed"))


class BookingPipeline:
    """Runs the staged booking-offer flow; only stage 1 can abort a request."""

    def __init__(
        self,
        rate_cards: RateCardLookup,
        gateway: BookingPersistenceGateway,
        dispatcher: NotificationDispatcher,
        generator: OfferDocumentGenerator,
        season_of: SeasonLookup = balearic_season_of,
        early_bird: EarlyBirdOffer | None = None,
        stage_timeout: float = 5.0,
        reject_price_mismatch: bool = True,
        today: Callable[[], date] = date.today,
    ):
        self.rate_cards = rate_cards
        self.gateway = gateway
        self.dispatcher = dispatcher
        self.generator = generator
        self.season_of = season_of
        self.early_bird = early_bird
        self.stage_timeout = stage_timeout
        self.reject_price_mismatch = reject_price_mismatch
        self.today = today

    async def run(
        self, request: CharterRequest, client_breakdown: ClientPriceBreakdown | None = None
    ) -> BookingOutcome:
        quote = await self.validate(request, client_breakdown)

        document, document_stage = await self.generate_document(quote)

        (inquiry_id, persist_stage), dispatch = await asyncio.gather(
            self.persist(quote),
            self.notify(quote, document),
        )

        outcome = BookingOutcome(
            quote=quote,
            document=document,
            inquiry_id=inquiry_id,
            guest=dispatch.guest,
            internal=dispatch.internal,
            stages=(
                StageResult.succeeded(Stage.VALIDATE),
                document_stage,
                persist_stage,
                _notification_stage(Stage.NOTIFY_GUEST, dispatch.guest),
                _notification_stage(Stage.NOTIFY_INTERNAL, dispatch.internal),
            ),
        )
        summary = ", ".join(f"{r.stage.value}={r.status.value}" for r in outcome.stages)
        logger.info(f"Booking for {request.yacht_id} ({request.email}): {summary}")
        return outcome

    # ── Stage 1 ──

    async def validate(
        self, request: CharterRequest, client_breakdown: ClientPriceBreakdown | None = None
    ) -> Quote:
        """Price the request from the yacht's rate card. Raises a fatal BookingError."""
        rates = await self.rate_cards(request.yacht_id)
        if rates is None:
            raise UnknownYachtError(f"Unknown yacht '{request.yacht_id}'")
        # No conversion: the quote is only valid in the rate card's own currency
        if request.currency != rates.currency.upper():
            raise CurrencyMismatchError(
                f"Yacht '{request.yacht_id}' is priced in {rates.currency}, not {request.currency}"
            )

        breakdown = compute(
            request,
            rates,
            season_of=self.season_of,
            early_bird=self.early_bird,
            quoted_on=self.today(),
        )
        assert_consistent(breakdown, request)

        mismatched: list[str] = []
        if client_breakdown is not None:
            check_client_breakdown(client_breakdown)
            mismatched = diff_client_breakdown(breakdown, client_breakdown)
            if mismatched:
                detail = f"Submitted price differs from the quote in: {', '.join(mismatched)}"
                if self.reject_price_mismatch:
                    raise PriceConsistencyError(detail)
                logger.warning(f"{detail} (yacht {request.yacht_id}, {request.email})")

        return Quote(request=request, breakdown=breakdown, price_mismatch=tuple(mismatched))

    # ── Stage 2 ──

    async def generate_document(self, quote: Quote) -> tuple[OfferDocument, StageResult]:
        try:
            document = await asyncio.wait_for(
                asyncio.to_thread(self.generator.render, quote.request, quote.breakdown),
                timeout=self.stage_timeout,
            )
        except asyncio.TimeoutError:
            error = DocumentGenerationError(f"Offer rendering timed out after {self.stage_timeout}s")
        except Exception as e:
            logger.exception("Offer rendering failed")
            error = DocumentGenerationError(f"Offer rendering failed: {e}")
        else:
            return document, StageResult.succeeded(Stage.DOCUMENT)

        logger.warning(f"[{error.kind.value}] {error.message}")
        return OfferDocument.unavailable(), StageResult.failed(Stage.DOCUMENT, error)

    # ── Stage 3 ──

    async def persist(self, quote: Quote) -> tuple[uuid.UUID | None, StageResult]:
        try:
            result: PersistenceResult = await asyncio.wait_for(
                self.gateway.save(quote.request, quote.breakdown),
                timeout=self.stage_timeout,
            )
        except asyncio.TimeoutError:
            error = PersistenceError(f"Recording the inquiry timed out after {self.stage_timeout}s")
        except Exception as e:
            logger.exception("Inquiry persistence crashed")
            error = PersistenceError(f"Recording the inquiry failed: {e}")
        else:
            if result.ok:
                return result.inquiry_id, StageResult.succeeded(Stage.PERSIST)
            error = result.error or PersistenceError("Recording the inquiry failed")

        logger.warning(f"[{error.kind.value}] {error.message}")
        return None, StageResult.failed(Stage.PERSIST, error)

    # ── Stage 4 ──

    async def notify(self, quote: Quote, document: OfferDocument) -> DispatchResult:
        attachment = document if document.generated else None
        try:
            return await asyncio.wait_for(
                self.dispatcher.dispatch(quote.request, quote.breakdown, attachment),
                timeout=self.stage_timeout + NOTIFY_GRACE_SECONDS,
            )
        except asyncio.TimeoutError:
            message = f"Notifications timed out after {self.stage_timeout}s"
        except Exception as e:
            logger.exception("Notification dispatch crashed")
            message = f"Notification dispatch failed: {e}"

        logger.warning(f"[{ErrorKind.NOTIFICATION.value}] {message}")
        failed = NotificationOutcome.failed(message)
        skipped = NotificationOutcome.skipped()
        return DispatchResult(
            guest=failed if self.dispatcher.guest_enabled else skipped,
            internal=failed if self.dispatcher.internal_enabled else skipped,
        )


booking_pipeline = BookingPipeline(
    rate_cards=rate_card_service.get_rate_card,
    gateway=BookingPersistenceGateway(async_session_factory),
    dispatcher=notification_dispatcher,
    generator=offer_document_generator,
    early_bird=EarlyBirdOffer(
        deadline=settings.early_bird_deadline,
        discount_pct=settings.early_bird_discount_pct,
    ) if settings.early_bird_deadline else None,
    stage_timeout=settings.stage_timeout_seconds,
    reject_price_mismatch=settings.reject_price_mismatch,
)


def get_booking_pipeline() -> BookingPipeline:
    return booking_pipeline
