"""Booking persistence gateway — records charter requests as pending inquiries."""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from charterdesk.errors import InvalidStatusTransitionError, PersistenceError
from charterdesk.models.inquiry import ALLOWED_TRANSITIONS, BookingInquiry, InquiryStatus
from charterdesk.schemas.booking import CharterRequest
from charterdesk.services.pricing import PriceBreakdown

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistenceResult:
    inquiry_id: uuid.UUID | None = None
    error: PersistenceError | None = None

    @property
    def ok(self) -> bool:
        return self.inquiry_id is not None


class BookingPersistenceGateway:
    """
    Single-insert writer for booking inquiries.

    Every call creates a new row; duplicate submissions are left for a human
    to reconcile. Failures come back as a PersistenceResult and are never retried here.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def save(
        self, request: CharterRequest, breakdown: PriceBreakdown | None = None
    ) -> PersistenceResult:
        inquiry = BookingInquiry(
            id=uuid.uuid4(),
            name=request.name,
            email=request.email,
            phone=request.phone,
            yacht_id=request.yacht_id,
            yacht_name=request.yacht_name,
            start_date=request.start_date,
            end_date=request.end_date,
            guests=request.guests,
            message=request.message,
            currency=request.currency,
            tax_percentage=request.tax_percentage,
            apa_percentage=request.apa_percentage,
            status=InquiryStatus.PENDING.value,
            total_estimate=breakdown.total_estimate if breakdown else None,
            price_breakdown=breakdown.to_dict() if breakdown else None,
        )
        try:
            async with self._session_factory() as db:
                db.add(inquiry)
                await db.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Failed to record inquiry for {request.email}: {e}")
            return PersistenceResult(error=PersistenceError(f"Could not record inquiry: {type(e).__name__}"))

        logger.info(f"Recorded inquiry {inquiry.id} for yacht {request.yacht_id}")
        return PersistenceResult(inquiry_id=inquiry.id)


class InquiryService:
    """Read and status-lifecycle operations used by operations staff."""

    async def list_inquiries(
        self, db: AsyncSession, status: InquiryStatus | None = None, limit: int = 100
    ) -> list[BookingInquiry]:
        query = select(BookingInquiry).order_by(BookingInquiry.created_at.desc()).limit(limit)
        if status is not None:
            query = query.where(BookingInquiry.status == status.value)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_inquiry(self, db: AsyncSession, inquiry_id: uuid.UUID) -> BookingInquiry | None:
        result = await db.execute(select(BookingInquiry).where(BookingInquiry.id == inquiry_id))
        return result.scalar_one_or_none()

    async def update_status(
        self, db: AsyncSession, inquiry: BookingInquiry, new_status: InquiryStatus
    ) -> BookingInquiry:
        current = InquiryStatus(inquiry.status)
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(current.value, new_status.value)

        inquiry.status = new_status.value
        await db.commit()
        await db.refresh(inquiry)
        logger.info(f"Inquiry {inquiry.id}: {current.value} -> {new_status.value}")
        return inquiry


inquiry_service = InquiryService()
