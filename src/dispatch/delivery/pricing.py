"""Delivery pricing and the rider/platform commission split.

Pure functions over a settings snapshot; safe to call from any thread.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from dispatch.errors import ConfigurationError

# Share of every delivery price paid out to the rider. The platform keeps the rest.
COMMISSION_RATE = Decimal("0.70")

_MINOR_UNIT = Decimal("0.01")


@dataclass(frozen=True)
class Quote:
    price: float
    rider_commission: float
    platform_revenue: float


def to_money(value) -> Decimal:
    """Round to the currency's minor unit, halves away from zero."""
    return Decimal(str(value)).quantize(_MINOR_UNIT, rounding=ROUND_HALF_UP)


def split_price(price) -> Quote:
    amount = to_money(price)
    rider_commission = (amount * COMMISSION_RATE).quantize(_MINOR_UNIT, rounding=ROUND_HALF_UP)
    # Derived by subtraction so the two parts always add back to the price exactly
    platform_revenue = amount - rider_commission
    return Quote(
        price=float(amount),
        rider_commission=float(rider_commission),
        platform_revenue=float(platform_revenue),
    )


def resolve_price(delivery_type: str, settings) -> Quote:
    """Price ``delivery_type`` from ``settings.pricing``.

    Raises ``ConfigurationError`` when the settings carry no price for the type;
    no fallback price is invented here.
    """
    pricing = getattr(settings, "pricing", None)
    price = pricing.price_for(delivery_type) if pricing is not None else None
    if price is None:
        raise ConfigurationError(
            f"No price configured for delivery type {delivery_type!r}",
            delivery_type=delivery_type,
        )
    return split_price(price)
