"""Seasonal price calculator — turns a charter date range and a yacht rate card into a quote.

All arithmetic stays in Decimal. Nothing is rounded here; rounding for display
happens in data.currency.format_money.
"""

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from charterdesk.data.seasons import SEASON_ORDER, SEASON_RANK, SeasonLabel, balearic_season_of
from charterdesk.errors import InvalidRangeError, MissingRateError, PriceConsistencyError
from charterdesk.schemas.booking import CharterRequest, ClientPriceBreakdown

SeasonLookup = Callable[[date], SeasonLabel]

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Client figures are computed in binary floating point in the browser
PRICE_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class FixedFee:
    label: str
    amount: Decimal


@dataclass(frozen=True)
class RateCard:
    """Per-yacht daily rate for each season plus flat add-on fees."""

    yacht_id: str
    daily_rates: dict[SeasonLabel, Decimal | None]
    fixed_fees: tuple[FixedFee, ...] = ()
    currency: str = "EUR"

    def daily_rate(self, season: SeasonLabel) -> Decimal:
        rate = self.daily_rates.get(season)
        if rate is None:
            raise MissingRateError(
                f"Yacht '{self.yacht_id}' has no daily rate for the {season.value} season"
            )
        return Decimal(rate)


@dataclass(frozen=True)
class EarlyBirdOffer:
    """Percentage off the base fee for quotes issued on or before the deadline."""

    deadline: date
    discount_pct: Decimal

    def applies(self, quoted_on: date) -> bool:
        return quoted_on <= self.deadline


@dataclass(frozen=True)
class EarlyBirdDiscount:
    original_base_fee: Decimal
    discount_amount: Decimal


@dataclass(frozen=True)
class SeasonLine:
    season: SeasonLabel
    nights: int
    daily_rate: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    nights: int
    primary_season: SeasonLabel
    base_charter_fee: Decimal
    tax_amount: Decimal
    apa_amount: Decimal
    fixed_fees: Decimal
    total_estimate: Decimal
    season_lines: tuple[SeasonLine, ...] = ()
    fixed_fee_items: tuple[FixedFee, ...] = ()
    price_per_day: Decimal | None = None
    early_bird: EarlyBirdDiscount | None = field(default=None)

    def to_dict(self) -> dict:
        """JSON-safe snapshot. Money is kept as decimal strings so it survives storage exactly."""
        return {
            "nights": self.nights,
            "primary_season": self.primary_season.value,
            "base_charter_fee": str(self.base_charter_fee),
            "tax_amount": str(self.tax_amount),
            "apa_amount": str(self.apa_amount),
            "fixed_fees": str(self.fixed_fees),
            "total_estimate": str(self.total_estimate),
            "price_per_day": str(self.price_per_day) if self.price_per_day is not None else None,
            "season_lines": [
                {
                    "season": line.season.value,
                    "nights": line.nights,
                    "daily_rate": str(line.daily_rate),
                    "subtotal": str(line.subtotal),
                }
                for line in self.season_lines
            ],
            "fixed_fee_items": [
                {"label": fee.label, "amount": str(fee.amount)} for fee in self.fixed_fee_items
            ],
            "early_bird": {
                "original_base_fee": str(self.early_bird.original_base_fee),
                "discount_amount": str(self.early_bird.discount_amount),
            } if self.early_bird else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PriceBreakdown":
        early_bird = data.get("early_bird")
        price_per_day = data.get("price_per_day")
        return cls(
            nights=int(data["nights"]),
            primary_season=SeasonLabel(data["primary_season"]),
            base_charter_fee=Decimal(data["base_charter_fee"]),
            tax_amount=Decimal(data["tax_amount"]),
            apa_amount=Decimal(data["apa_amount"]),
            fixed_fees=Decimal(data["fixed_fees"]),
            total_estimate=Decimal(data["total_estimate"]),
            price_per_day=Decimal(price_per_day) if price_per_day is not None else None,
            season_lines=tuple(
                SeasonLine(
                    season=SeasonLabel(line["season"]),
                    nights=int(line["nights"]),
                    daily_rate=Decimal(line["daily_rate"]),
                    subtotal=Decimal(line["subtotal"]),
                )
                for line in data.get("season_lines", [])
            ),
            fixed_fee_items=tuple(
                FixedFee(label=fee["label"], amount=Decimal(fee["amount"]))
                for fee in data.get("fixed_fee_items", [])
            ),
            early_bird=EarlyBirdDiscount(
                original_base_fee=Decimal(early_bird["original_base_fee"]),
                discount_amount=Decimal(early_bird["discount_amount"]),
            ) if early_bird else None,
        )


def count_nights(start_date: date, end_date: date) -> int:
    return (end_date - start_date).days


def compute(
    request: CharterRequest,
    rates: RateCard,
    season_of: SeasonLookup = balearic_season_of,
    early_bird: EarlyBirdOffer | None = None,
    quoted_on: date | None = None,
) -> PriceBreakdown:
    """
    Price a charter over the half-open night range [start_date, end_date).

    The checkout day is not charged. Each night is priced at the daily rate of
    its own season; the primary season is the one with the most nights, and a
    tie goes to the higher-priced season.
    """
    nights = count_nights(request.start_date, request.end_date)
    if nights < 1:
        raise InvalidRangeError(
            f"Charter must cover at least one night (got {nights} from "
            f"{request.start_date.isoformat()} to {request.end_date.isoformat()})"
        )

    nights_by_season: Counter[SeasonLabel] = Counter(
        season_of(request.start_date + timedelta(days=offset)) for offset in range(nights)
    )

    season_lines = []
    base_charter_fee = ZERO
    for season in SEASON_ORDER:
        season_nights = nights_by_season.get(season, 0)
        if not season_nights:
            continue
        daily_rate = rates.daily_rate(season)
        subtotal = daily_rate * season_nights
        base_charter_fee += subtotal
        season_lines.append(SeasonLine(season, season_nights, daily_rate, subtotal))

    primary = max(
        season_lines,
        key=lambda line: (line.nights, line.daily_rate, SEASON_RANK[line.season]),
    )

    discount = None
    if early_bird and early_bird.applies(quoted_on or date.today()):
        discount_amount = base_charter_fee * early_bird.discount_pct / HUNDRED
        discount = EarlyBirdDiscount(base_charter_fee, discount_amount)
        base_charter_fee -= discount_amount

    # APA is charged on the base fee only, never on tax
    tax_amount = base_charter_fee * request.tax_percentage / HUNDRED
    apa_amount = base_charter_fee * request.apa_percentage / HUNDRED
    fixed_fees = sum((Decimal(fee.amount) for fee in rates.fixed_fees), ZERO)

    return PriceBreakdown(
        nights=nights,
        primary_season=primary.season,
        base_charter_fee=base_charter_fee,
        tax_amount=tax_amount,
        apa_amount=apa_amount,
        fixed_fees=fixed_fees,
        total_estimate=base_charter_fee + tax_amount + apa_amount + fixed_fees,
        season_lines=tuple(season_lines),
        fixed_fee_items=tuple(rates.fixed_fees),
        price_per_day=primary.daily_rate,
        early_bird=discount,
    )


def assert_consistent(breakdown: PriceBreakdown, request: CharterRequest | None = None) -> None:
    """Raise PriceConsistencyError unless the breakdown satisfies the quote invariants."""
    parts = (
        breakdown.base_charter_fee + breakdown.tax_amount
        + breakdown.apa_amount + breakdown.fixed_fees
    )
    if breakdown.total_estimate != parts:
        raise PriceConsistencyError(
            f"Total {breakdown.total_estimate} does not equal the sum of its parts ({parts})"
        )
    if breakdown.nights < 1:
        raise PriceConsistencyError(f"Breakdown covers {breakdown.nights} nights")
    if request is not None:
        expected = count_nights(request.start_date, request.end_date)
        if breakdown.nights != expected:
            raise PriceConsistencyError(
                f"Breakdown covers {breakdown.nights} nights but the request spans {expected}"
            )


def check_client_breakdown(client: ClientPriceBreakdown) -> None:
    """A submitted breakdown must at least add up before it is compared."""
    parts = client.base_charter_fee + client.tax_amount + client.apa_amount + client.fixed_fees
    if abs(client.total_estimate - parts) > PRICE_TOLERANCE:
        raise PriceConsistencyError(
            f"Submitted total {client.total_estimate} does not equal the sum of its parts ({parts})"
        )


def diff_client_breakdown(server: PriceBreakdown, client: ClientPriceBreakdown) -> list[str]:
    """Names of the fields where the client figure differs from the server quote."""
    mismatched = [
        name
        for name in ("base_charter_fee", "tax_amount", "apa_amount", "fixed_fees", "total_estimate")
        if abs(getattr(server, name) - getattr(client, name)) > PRICE_TOLERANCE
    ]
    if client.nights is not None and client.nights != server.nights:
        mismatched.append("nights")
    return mismatched
