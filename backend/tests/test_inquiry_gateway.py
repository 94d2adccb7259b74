"""Booking persistence gateway and inquiry lifecycle tests (SQLite via aiosqlite)."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from charterdesk.errors import InvalidStatusTransitionError
from charterdesk.models.inquiry import InquiryStatus
from charterdesk.services.inquiry_gateway import BookingPersistenceGateway, inquiry_service
from charterdesk.services.pricing import PriceBreakdown, compute

from conftest import make_rate_card, make_request


def test_save_records_pending_inquiry(sqlite_factory):
    request = make_request()
    breakdown = compute(request, make_rate_card())
    gateway = BookingPersistenceGateway(sqlite_factory)

    async def run():
        result = await gateway.save(request, breakdown)
        async with sqlite_factory() as db:
            return result, await inquiry_service.get_inquiry(db, result.inquiry_id)

    result, inquiry = asyncio.run(run())

    assert result.ok
    assert result.error is None
    assert inquiry.status == InquiryStatus.PENDING.value
    assert inquiry.email == "anna@example.com"
    assert inquiry.yacht_id == "lagoon-42-wide-dream"
    assert inquiry.total_estimate == Decimal("10341.5")
    assert PriceBreakdown.from_dict(inquiry.price_breakdown) == breakdown


def test_duplicate_submissions_create_separate_rows(sqlite_factory):
    request = make_request()
    gateway = BookingPersistenceGateway(sqlite_factory)

    async def run():
        first = await gateway.save(request)
        second = await gateway.save(request)
        async with sqlite_factory() as db:
            return first, second, await inquiry_service.list_inquiries(db)

    first, second, inquiries = asyncio.run(run())

    assert first.inquiry_id != second.inquiry_id
    assert len(inquiries) == 2
    assert all(inquiry.price_breakdown is None for inquiry in inquiries)


def test_store_failure_is_returned_not_raised():
    class BrokenSession:
        def __init__(self):
            self.added = []

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

        def add(self, obj):
            self.added.append(obj)

        async def commit(self):
            raise OperationalError("INSERT", {}, Exception("database is locked"))

    gateway = BookingPersistenceGateway(BrokenSession)

    result = asyncio.run(gateway.save(make_request()))

    assert not result.ok
    assert result.inquiry_id is None
    assert result.error.message == "Could not record inquiry: OperationalError"


def test_status_lifecycle(sqlite_factory):
    gateway = BookingPersistenceGateway(sqlite_factory)

    async def run():
        saved = await gateway.save(make_request())
        async with sqlite_factory() as db:
            inquiry = await inquiry_service.get_inquiry(db, saved.inquiry_id)
            await inquiry_service.update_status(db, inquiry, InquiryStatus.CONTACTED)
            await inquiry_service.update_status(db, inquiry, InquiryStatus.CONFIRMED)
        async with sqlite_factory() as db:
            return await inquiry_service.get_inquiry(db, saved.inquiry_id)

    assert asyncio.run(run()).status == "confirmed"


@pytest.mark.parametrize(
    "path, rejected",
    [
        ([], InquiryStatus.CONFIRMED),
        ([InquiryStatus.CANCELLED], InquiryStatus.CONTACTED),
        ([InquiryStatus.CONTACTED, InquiryStatus.CONFIRMED], InquiryStatus.CANCELLED),
    ],
)
def test_disallowed_transitions(sqlite_factory, path, rejected):
    gateway = BookingPersistenceGateway(sqlite_factory)

    async def run():
        saved = await gateway.save(make_request())
        async with sqlite_factory() as db:
            inquiry = await inquiry_service.get_inquiry(db, saved.inquiry_id)
            for status in path:
                await inquiry_service.update_status(db, inquiry, status)
            await inquiry_service.update_status(db, inquiry, rejected)

    with pytest.raises(InvalidStatusTransitionError):
        asyncio.run(run())


def test_list_filters_by_status(sqlite_factory):
    gateway = BookingPersistenceGateway(sqlite_factory)

    async def run():
        first = await gateway.save(make_request())
        await gateway.save(make_request(email="second@example.com"))
        async with sqlite_factory() as db:
            inquiry = await inquiry_service.get_inquiry(db, first.inquiry_id)
            await inquiry_service.update_status(db, inquiry, InquiryStatus.CANCELLED)
            return (
                await inquiry_service.list_inquiries(db, status=InquiryStatus.PENDING),
                await inquiry_service.list_inquiries(db, status=InquiryStatus.CANCELLED),
            )

    pending, cancelled = asyncio.run(run())

    assert [inquiry.email for inquiry in pending] == ["second@example.com"]
    assert [inquiry.email for inquiry in cancelled] == ["anna@example.com"]
