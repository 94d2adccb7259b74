"""Currency utilities — symbols and whole-unit money formatting for offers."""

from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS: dict[str, str] = {
    "EUR": "€", "USD": "$", "GBP": "£", "CHF": "CHF ",
    "CAD": "CA$", "AUD": "A$", "JPY": "¥", "SEK": "SEK ",
    "NOK": "NOK ", "DKK": "DKK ", "AED": "AED ", "TRY": "TRY ",
}


def currency_symbol(currency: str) -> str:
    """Symbol for a currency code. Unknown codes render as 'XXX '."""
    code = (currency or "").upper()
    return CURRENCY_SYMBOLS.get(code, f"{code} ")


def format_money(amount: Decimal, currency: str = "EUR") -> str:
    """Format an amount with its currency symbol and zero decimal places."""
    whole = Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if whole < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(whole):,}"


def format_percent(value: Decimal) -> str:
    """Render a percentage without trailing zeros: 21 -> '21', 12.50 -> '12.5'."""
    return format(Decimal(value).normalize(), "f")
