"""Rate card service — in-memory rate cards built from yacht configuration.

Cards are loaded at startup and refreshed by the background scheduler, so quoting
a charter never waits on the database. A failed refresh keeps the last good set.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from charterdesk.data.seasons import SeasonLabel
from charterdesk.database import async_session_factory
from charterdesk.models.yacht import Yacht
from charterdesk.services.pricing import FixedFee, RateCard

logger = logging.getLogger(__name__)


def rate_card_from_yacht(yacht: Yacht) -> RateCard:
    fees = []
    if yacht.crew_service_fee:
        fees.append(FixedFee("Crew service fee", Decimal(yacht.crew_service_fee)))
    if yacht.cleaning_fee:
        fees.append(FixedFee("Cleaning fee", Decimal(yacht.cleaning_fee)))

    return RateCard(
        yacht_id=yacht.id,
        daily_rates={
            SeasonLabel.LOW: yacht.low_season_price,
            SeasonLabel.MEDIUM: yacht.medium_season_price,
            SeasonLabel.HIGH: yacht.high_season_price,
        },
        fixed_fees=tuple(fees),
        currency=yacht.currency,
    )


class RateCardService:
    """Serves the active fleet's rate cards from memory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._cards: dict[str, RateCard] = {}
        self.loaded_at: datetime | None = None

    @property
    def loaded(self) -> bool:
        return self.loaded_at is not None

    async def refresh(self) -> int:
        """Reload every active yacht. Raises if the store cannot be read."""
        async with self._session_factory() as db:
            result = await db.execute(select(Yacht).where(Yacht.is_active == True))
            yachts = result.scalars().all()

        self._cards = {yacht.id: rate_card_from_yacht(yacht) for yacht in yachts}
        self.loaded_at = datetime.now(timezone.utc)
        logger.info(f"Loaded {len(self._cards)} rate cards")
        return len(self._cards)

    async def refresh_safely(self) -> None:
        """Scheduler entry point: a store outage leaves the cached cards in place."""
        try:
            await self.refresh()
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Rate card refresh failed, serving {len(self._cards)} cached cards: {e}")

    async def get_rate_card(self, yacht_id: str) -> RateCard | None:
        # First use before the startup load has succeeded
        if not self.loaded:
            await self.refresh()

        card = self._cards.get(yacht_id)
        if card is None:
            logger.info(f"No active rate card for yacht {yacht_id}")
        return card


rate_card_service = RateCardService(async_session_factory)
