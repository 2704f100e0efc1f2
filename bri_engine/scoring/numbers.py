"""Decimal helpers — every money, multiple and score value passes through here."""
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')
SCORE_PLACES = Decimal('0.0001')
MULTIPLE_PLACES = Decimal('0.0001')
FRACTION_PLACES = Decimal('0.000001')
POINTS_PLACES = Decimal('0.01')


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without binary-float artifacts."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        raise ValueError("Expected a number, got None")
    return Decimal(str(value))


def quantize_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_score(value) -> Decimal:
    return to_decimal(value).quantize(SCORE_PLACES, rounding=ROUND_HALF_UP)


def quantize_multiple(value) -> Decimal:
    return to_decimal(value).quantize(MULTIPLE_PLACES, rounding=ROUND_HALF_UP)


def quantize_fraction(value) -> Decimal:
    return to_decimal(value).quantize(FRACTION_PLACES, rounding=ROUND_HALF_UP)


def quantize_points(value) -> Decimal:
    return to_decimal(value).quantize(POINTS_PLACES, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    """Dollar amount → integer cents (half-up)."""
    return int(quantize_money(value) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)
