"""Shared clock, windows and lookups for the test suite."""

from datetime import datetime, time, timedelta
from decimal import Decimal

from parkwise.models import Block, Floor, Reservation, ReservationStatus, Spot
from parkwise.pricing import RatePlan
from parkwise.windows import Window

NOW = datetime(2030, 5, 14, 8, 0)
CAR_PLAN = RatePlan(base_rate=Decimal("50"), hourly_rate=Decimal("10"), base_hours=8)

CUSTOMER = 1
OTHER_CUSTOMER = 2
VEHICLE = 11


def at(hour: int, minute: int = 0, days: int = 0) -> datetime:
    return datetime.combine(NOW.date() + timedelta(days=days), time(hour, minute))


def window(start_hour: int, end_hour: int, days: int = 0) -> Window:
    return Window(at(start_hour, days=days), at(end_hour, days=days))


def spot_named(db, name: str, floor: int = 1) -> Spot:
    block_name = name[0]
    return (
        db.query(Spot)
        .join(Block, Spot.block_id == Block.id)
        .join(Floor, Block.floor_id == Floor.id)
        .filter(Floor.number == floor, Block.name == block_name, Spot.name == name)
        .one()
    )


def active_count(db, spot_id: int) -> int:
    return db.query(Reservation).filter(
        Reservation.spot_id == spot_id,
        Reservation.status == ReservationStatus.ACTIVE,
    ).count()
