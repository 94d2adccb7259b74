"""Yacht rate card model — seasonal daily prices and flat add-on fees."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base


class Yacht(Base):
    __tablename__ = "yachts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    low_season_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    medium_season_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    high_season_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    crew_service_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    cleaning_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    capacity: Mapped[int | None] = mapped_column()
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
