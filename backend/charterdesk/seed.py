"""Seed script for the Charterdesk development database."""

import asyncio
from decimal import Decimal

from sqlalchemy import select

from charterdesk.database import async_session_factory
from charterdesk.models.yacht import Yacht

# ── Fleet ──────────────────────────────────────────────────────────────────────

YACHTS = [
    {
        "id": "lagoon-42-wide-dream",
        "name": "Wide Dream (Lagoon 42)",
        "low_season_price": Decimal("400"),
        "medium_season_price": Decimal("600"),
        "high_season_price": Decimal("950"),
        "crew_service_fee": Decimal("200"),
        "cleaning_fee": Decimal("100"),
        "capacity": 10,
    },
    {
        "id": "bavaria-c45-mar-azul",
        "name": "Mar Azul (Bavaria C45)",
        "low_season_price": Decimal("320"),
        "medium_season_price": Decimal("480"),
        "high_season_price": Decimal("720"),
        "crew_service_fee": None,
        "cleaning_fee": Decimal("150"),
        "capacity": 8,
    },
    {
        "id": "sunseeker-76-sirocco",
        "name": "Sirocco (Sunseeker 76)",
        "low_season_price": None,
        "medium_season_price": Decimal("3200"),
        "high_season_price": Decimal("4500"),
        "crew_service_fee": Decimal("1200"),
        "cleaning_fee": Decimal("250"),
        "capacity": 12,
    },
]


async def seed():
    async with async_session_factory() as db:
        result = await db.execute(select(Yacht).limit(1))
        if result.scalar_one_or_none():
            print("Fleet already seeded. Skipping.")
            return

        for data in YACHTS:
            db.add(Yacht(currency="EUR", is_active=True, **data))
        await db.commit()
        print(f"Created {len(YACHTS)} yachts")
        print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
