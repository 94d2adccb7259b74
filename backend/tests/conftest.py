"""Shared builders and fakes for the charter booking tests."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import charterdesk.models  # noqa: F401
from charterdesk.data.seasons import SeasonLabel
from charterdesk.database import Base
from charterdesk.schemas.booking import CharterRequest
from charterdesk.services.inquiry_gateway import PersistenceResult
from charterdesk.services.offer_document import Branding, OfferDocumentGenerator
from charterdesk.services.pricing import FixedFee, RateCard

BRANDING = Branding(
    provider_name="Balearic & Costa Blanca Charters",
    tagline="Premium Yacht Charter Services",
    phone="+34 600 000 000",
)


def make_request(**overrides) -> CharterRequest:
    data = {
        "name": "Anna Berzina",
        "email": "anna@example.com",
        "phone": "+371 2000 0000",
        "yacht_id": "lagoon-42-wide-dream",
        "yacht_name": "Wide Dream",
        "start_date": date(2026, 7, 4),
        "end_date": date(2026, 7, 11),
        "guests": 6,
        "message": "We would love a stop in Cala Mondrago.",
        "currency": "EUR",
        "tax_percentage": Decimal("21"),
        "apa_percentage": Decimal("30"),
    }
    data.update(overrides)
    return CharterRequest(**data)


def make_rate_card(
    low: str | None = "400",
    medium: str | None = "600",
    high: str | None = "950",
    fees: tuple[FixedFee, ...] = (
        FixedFee("Crew service fee", Decimal("200")),
        FixedFee("Cleaning fee", Decimal("100")),
    ),
) -> RateCard:
    return RateCard(
        yacht_id="lagoon-42-wide-dream",
        daily_rates={
            SeasonLabel.LOW: Decimal(low) if low is not None else None,
            SeasonLabel.MEDIUM: Decimal(medium) if medium is not None else None,
            SeasonLabel.HIGH: Decimal(high) if high is not None else None,
        },
        fixed_fees=fees,
    )


def rate_card_lookup(card: RateCard | None):
    async def lookup(yacht_id: str) -> RateCard | None:
        return card
    return lookup


class RecordingSender:
    """Email sender that keeps every message instead of delivering it."""

    def __init__(self, fail_for: set[str] | None = None, delay: float = 0.0):
        self.sent = []
        self.fail_for = fail_for or set()
        self.delay = delay

    async def send(self, email):
        if self.delay:
            await asyncio.sleep(self.delay)
        if email.to in self.fail_for:
            import httpx
            raise httpx.ConnectError("connection refused")
        self.sent.append(email)
        return f"msg-{len(self.sent)}"

    async def aclose(self):
        return None


class FakeGateway:
    def __init__(self, result: PersistenceResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls = []

    async def save(self, request, breakdown=None):
        self.calls.append((request, breakdown))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def generator() -> OfferDocumentGenerator:
    return OfferDocumentGenerator(BRANDING)


def make_sqlite_store(db_path):
    """Engine and session factory over a SQLite file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    return engine, async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def sqlite_factory(tmp_path):
    engine, factory = make_sqlite_store(tmp_path / "test.db")
    yield factory
    asyncio.run(engine.dispose())
