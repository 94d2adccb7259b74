"""Season labels and the default Balearic charter calendar."""

from datetime import date
from enum import Enum


class SeasonLabel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Ordering used for line items and as the last tie-breaker
SEASON_ORDER: tuple[SeasonLabel, ...] = (SeasonLabel.LOW, SeasonLabel.MEDIUM, SeasonLabel.HIGH)
SEASON_RANK: dict[SeasonLabel, int] = {season: i for i, season in enumerate(SEASON_ORDER)}


def balearic_season_of(day: date) -> SeasonLabel:
    """
    Resolve the pricing season for a calendar date in the Balearics.

    High: July, August and 1 September.
    Medium: June, 2-31 May and 2-30 September.
    Low: everything else (October through 1 May).
    """
    month = day.month
    if month in (7, 8):
        return SeasonLabel.HIGH
    if month == 9:
        return SeasonLabel.HIGH if day.day == 1 else SeasonLabel.MEDIUM
    if month == 6:
        return SeasonLabel.MEDIUM
    if month == 5 and day.day > 1:
        return SeasonLabel.MEDIUM
    return SeasonLabel.LOW
