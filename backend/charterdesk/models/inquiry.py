import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, Date, DateTime, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base


class InquiryStatus(str, Enum):
    PENDING = "pending"
    CONTACTED = "contacted"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# pending -> contacted -> confirmed | cancelled; a pending lead may also be dropped
ALLOWED_TRANSITIONS: dict[InquiryStatus, frozenset[InquiryStatus]] = {
    InquiryStatus.PENDING: frozenset({InquiryStatus.CONTACTED, InquiryStatus.CANCELLED}),
    InquiryStatus.CONTACTED: frozenset({InquiryStatus.CONFIRMED, InquiryStatus.CANCELLED}),
    InquiryStatus.CONFIRMED: frozenset(),
    InquiryStatus.CANCELLED: frozenset(),
}


class BookingInquiry(Base):
    __tablename__ = "booking_inquiries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    yacht_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    yacht_name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    guests: Mapped[int | None] = mapped_column(Integer)
    message: Mapped[str | None] = mapped_column(Text)
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    apa_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=InquiryStatus.PENDING.value, index=True)
    total_estimate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    price_breakdown: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
