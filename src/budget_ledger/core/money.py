"""Conversions between provider decimal amounts and stored minor units."""

from decimal import ROUND_HALF_UP, Decimal

from budget_ledger.config import settings


def to_minor_units(amount: Decimal | float | int | None, minor_unit: int | None = None) -> int | None:
    """Convert a major-unit amount (12.34) to integer minor units (1234)."""
    if amount is None:
        return None
    digits = settings.currency_minor_unit if minor_unit is None else minor_unit
    scaled = Decimal(str(amount)) * (Decimal(10) ** digits)
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
