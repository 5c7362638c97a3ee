"""Money, period and label formatting helpers."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from rentals.core.config import settings
from rentals.models.enums import DistributionMethod

CENTS = Decimal("0.01")

DISTRIBUTION_LABELS: dict[DistributionMethod, str] = {
    DistributionMethod.PER_APARTMENT: "Per apartment",
    DistributionMethod.PER_PERSON: "Per person",
    DistributionMethod.PER_AREA: "Per area",
    DistributionMethod.PER_CONSUMPTION: "Per consumption",
    DistributionMethod.FIXED_SPLIT: "Fixed",
}

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


def to_cents(value: Decimal) -> Decimal:
    """Round a money value to two places."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(
    amount: Decimal,
    thousands_separator: str | None = None,
    decimal_separator: str | None = None,
    symbol: str | None = None,
) -> str:
    """Format an amount with two fixed decimals, e.g. ``1 234,50 €``."""
    thousands = settings.THOUSANDS_SEPARATOR if thousands_separator is None else thousands_separator
    decimal_sep = settings.DECIMAL_SEPARATOR if decimal_separator is None else decimal_separator
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol

    plain = f"{to_cents(amount):,.2f}"
    whole, fraction = plain.split(".")
    text = f"{whole.replace(',', thousands)}{decimal_sep}{fraction}"
    return f"{text} {symbol}" if symbol else text


def distribution_label(method: DistributionMethod | None) -> str:
    """Human-readable name of a distribution method."""
    if method is None:
        return DISTRIBUTION_LABELS[DistributionMethod.PER_APARTMENT]
    return DISTRIBUTION_LABELS[method]


def current_period(today: date) -> str:
    """Billing period (YYYY-MM) containing ``today``."""
    return f"{today.year}-{today.month:02d}"


def previous_period(period: str) -> str:
    """Billing period immediately before ``period``."""
    year, month = (int(part) for part in period.split("-"))
    if month == 1:
        return f"{year - 1}-12"
    return f"{year}-{month - 1:02d}"


def format_period(period: str) -> str:
    """Render ``2024-03`` as ``March 2024``."""
    year, month = period.split("-")
    return f"{MONTH_NAMES[int(month) - 1]} {year}"
