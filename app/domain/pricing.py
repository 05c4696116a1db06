"""Rental pricing domain logic.

All amounts are ``Decimal`` values rounded half-up to the cent. Every function
here is pure: the platform tax rate and surcharge rules are passed in as a
``PricingConfig``, never read from a global.

Reversing a total (``calculate_base_from_total``) applies two independent
roundings, so ``base -> total -> base`` can drift by one cent. That drift is
expected rounding behaviour.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from app.core.exceptions import InvalidInput, RateUnavailable

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class RentalType(str, Enum):
    """Rental billing modes."""

    HOUR = "HOUR"
    KM = "KM"
    DAY = "DAY"


# Upper bounds on a single rental quantity per mode
MAX_RENTAL_QUANTITY: dict[RentalType, int] = {
    RentalType.HOUR: 720,  # 30 days in hours
    RentalType.KM: 5000,
    RentalType.DAY: 90,
}


@dataclass(frozen=True)
class RateCard:
    """Per-mode prices a vehicle offers. ``None`` means the mode is not offered."""

    price_per_hour: Decimal | None = None
    price_per_km: Decimal | None = None
    price_per_day: Decimal | None = None

    def rate_for(self, rental_type: RentalType) -> Decimal | None:
        rate = {
            RentalType.HOUR: self.price_per_hour,
            RentalType.KM: self.price_per_km,
            RentalType.DAY: self.price_per_day,
        }[rental_type]
        if rate is None or Decimal(rate) <= 0:
            return None
        return Decimal(rate)


@dataclass(frozen=True)
class PricingConfig:
    """Snapshot of platform settings used for one calculation."""

    tax_percentage: Decimal
    currency: str = "EUR"
    young_driver_min_age: int = 25
    young_driver_fee: Decimal = Decimal("0")


@dataclass(frozen=True)
class PriceBreakdown:
    """Tax-inclusive price split."""

    base_price: Decimal
    tax_amount: Decimal
    total_price: Decimal


def round2(value: Decimal | int | float | str) -> Decimal:
    """Round to 2 decimal places, half-up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _dec(value: Decimal | int | float | str) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def calculate_tax(amount: Decimal | int | float, tax_percentage: Decimal | int | float) -> Decimal:
    """Tax due on ``amount`` at ``tax_percentage`` percent."""
    amount = _dec(amount)
    tax_percentage = _dec(tax_percentage)
    if amount < 0:
        raise InvalidInput("Amount cannot be negative")
    if tax_percentage < 0:
        raise InvalidInput("Tax percentage cannot be negative")
    return round2(amount * tax_percentage / HUNDRED)


def calculate_total(base_price: Decimal | int | float, tax_amount: Decimal | int | float) -> Decimal:
    """Total price including tax."""
    base_price = _dec(base_price)
    tax_amount = _dec(tax_amount)
    if base_price < 0 or tax_amount < 0:
        raise InvalidInput("Prices cannot be negative")
    return round2(base_price + tax_amount)


def calculate_price(base_price: Decimal | int | float, tax_percentage: Decimal | int | float) -> PriceBreakdown:
    """Derive tax and total from a pre-tax base."""
    base = round2(base_price)
    tax = calculate_tax(base, tax_percentage)
    return PriceBreakdown(base_price=base, tax_amount=tax, total_price=calculate_total(base, tax))


def calculate_base_from_total(
    total_price: Decimal | int | float,
    tax_percentage: Decimal | int | float,
) -> PriceBreakdown:
    """Reverse a tax-inclusive total into base and tax.

    ``base = round2(total / (1 + pct/100))`` and ``tax = round2(base * pct/100)``.
    The returned ``total_price`` is recomputed from base and tax and may differ
    from the input by at most one cent.
    """
    total_price = _dec(total_price)
    tax_percentage = _dec(tax_percentage)
    if total_price < 0:
        raise InvalidInput("Total price cannot be negative")
    if tax_percentage < 0:
        raise InvalidInput("Tax percentage cannot be negative")

    base = round2(total_price / (1 + tax_percentage / HUNDRED))
    tax = round2(base * tax_percentage / HUNDRED)
    return PriceBreakdown(base_price=base, tax_amount=tax, total_price=calculate_total(base, tax))


def calculate_rental_cost(
    rental_type: RentalType | str,
    quantity: Decimal | int | float,
    rate_card: RateCard,
    vehicle_id=None,
) -> Decimal:
    """Cost of ``quantity`` units of ``rental_type`` at the vehicle's rate."""
    try:
        rental_type = RentalType(rental_type)
    except ValueError:
        raise InvalidInput(f"Invalid rental type: {rental_type}") from None

    quantity = _dec(quantity)
    if quantity <= 0:
        raise InvalidInput("Rental quantity must be positive")

    rate = rate_card.rate_for(rental_type)
    if rate is None:
        raise RateUnavailable(rental_type.value, vehicle_id)

    return round2(quantity * rate)


def validate_rental_quantity(rental_type: RentalType, quantity: Decimal | int) -> None:
    """Reject quantities above the per-mode ceiling."""
    ceiling = MAX_RENTAL_QUANTITY[rental_type]
    if _dec(quantity) > ceiling:
        raise InvalidInput(f"{rental_type.value} rental cannot exceed {ceiling}")


def rental_quantity(
    rental_type: RentalType,
    start: datetime,
    end: datetime,
    estimated_km: Decimal | int | None = None,
) -> Decimal:
    """Billable units for a rental window.

    DAY bills whole days (ceiling), HOUR whole hours (ceiling); KM bills the
    caller's distance estimate.
    """
    if end <= start:
        raise InvalidInput("End date must be after start date")

    hours = (end - start).total_seconds() / 3600
    if rental_type == RentalType.DAY:
        return Decimal(math.ceil(hours / 24))
    if rental_type == RentalType.HOUR:
        return Decimal(math.ceil(hours))

    if estimated_km is None or _dec(estimated_km) <= 0:
        raise InvalidInput("Estimated distance is required for KM rentals")
    return _dec(estimated_km)


def rental_days(start: datetime, end: datetime) -> int:
    """Whole days spanned by a rental, rounded up."""
    return math.ceil((end - start).total_seconds() / 86400)


def calculate_young_driver_surcharge(driver_age: int | None, config: PricingConfig) -> Decimal:
    """Flat surcharge for drivers younger than the configured minimum age."""
    if driver_age is None:
        return Decimal("0.00")
    if driver_age < 0:
        raise InvalidInput("Driver age cannot be negative")
    if driver_age < config.young_driver_min_age:
        return round2(config.young_driver_fee)
    return Decimal("0.00")


def calculate_extra_km_fee(
    distance_km: Decimal | int | float,
    days: int,
    daily_km_limit: Decimal | None,
    extra_km_charge: Decimal | None,
) -> Decimal:
    """Charge for distance driven beyond the included daily allowance."""
    distance_km = _dec(distance_km)
    if distance_km < 0:
        raise InvalidInput("Distance cannot be negative")
    if daily_km_limit is None or not extra_km_charge:
        return Decimal("0.00")

    allowance = _dec(daily_km_limit) * max(days, 1)
    extra = max(distance_km - allowance, Decimal("0"))
    return round2(extra * _dec(extra_km_charge))
