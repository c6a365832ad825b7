import math
from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from parkwise.errors import InvalidPayment, UnknownVehicleType
from parkwise.settings import BASE_HOURS, DISCOUNTS, RATE_PLANS
from parkwise.windows import Window

CENTS = Decimal("0.01")
ONE_HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class RatePlan:
    base_rate: Decimal
    hourly_rate: Decimal
    base_hours: int = BASE_HOURS


def rate_plan_for(vehicle_type: str) -> RatePlan:
    try:
        base_rate, hourly_rate = RATE_PLANS[vehicle_type.upper()]
    except KeyError:
        raise UnknownVehicleType(
            f"No rate plan for vehicle type {vehicle_type!r}",
            vehicle_type=vehicle_type,
            known=sorted(RATE_PLANS),
        ) from None
    return RatePlan(base_rate=base_rate, hourly_rate=hourly_rate)


def duration_hours(window: Window) -> float:
    return window.duration / ONE_HOUR


def price(window: Window, plan: RatePlan) -> Decimal:
    """Flat base rate up to ``plan.base_hours``; every started hour past that
    is charged at the hourly rate."""
    excess = window.duration - timedelta(hours=plan.base_hours)
    if excess <= timedelta(0):
        return Decimal(plan.base_rate).quantize(CENTS)
    extra_hours = math.ceil(excess / ONE_HOUR)
    return (Decimal(plan.base_rate) + extra_hours * Decimal(plan.hourly_rate)).quantize(CENTS)


def duration_minutes(window: Window) -> int:
    return int(window.duration.total_seconds() // 60)


def format_duration(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def apply_discount(amount: Decimal, discount_type: str) -> Decimal:
    try:
        rate = DISCOUNTS[discount_type]
    except KeyError:
        raise InvalidPayment(
            f"Unknown discount type {discount_type!r}",
            discount_type=discount_type,
            known=sorted(DISCOUNTS),
        ) from None
    return (amount * (1 - rate)).quantize(CENTS, rounding=ROUND_HALF_UP)
