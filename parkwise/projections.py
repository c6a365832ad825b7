"""Read-only views for listings, the dashboard and receipts.

Nothing here takes locks or writes; a view may trail a concurrent commit.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session, joinedload

from parkwise.errors import AlreadyFinalized, BlockNotFound, FloorNotFound
from parkwise.ledger import get_reservation
from parkwise.models import Block, Floor, Reservation, ReservationStatus, Spot, SpotStatus
from parkwise.pricing import format_duration
from parkwise.status import resolve


@dataclass
class SpotView:
    spot_id: int
    spot_name: str
    block_id: int
    block_name: str
    floor_id: int
    floor_number: int
    floor_name: str
    flag: str
    status: str


@dataclass
class DashboardStats:
    todays_reservations: int
    active_reservations: int
    available_spots: int


@dataclass
class Receipt:
    reservation_id: int
    control_number: str
    customer_id: int
    customer_name: str | None
    vehicle_id: int
    floor_name: str
    floor_number: int
    block_name: str
    spot_name: str
    start_time: datetime
    end_time: datetime
    duration: str
    total_amount: Decimal
    status: str
    payment_method: str | None = None
    amount_paid: Decimal | None = None
    paid_at: datetime | None = None


def _active_by_spot(db: Session, now: datetime) -> dict[int, list[Reservation]]:
    rows = db.query(Reservation).filter(
        Reservation.status == ReservationStatus.ACTIVE,
        Reservation.end_time > now,
    )
    grouped = defaultdict(list)
    for reservation in rows:
        grouped[reservation.spot_id].append(reservation)
    return grouped


# -------------------------
# Spot listing
# -------------------------
def list_spots(
    db: Session,
    now: datetime,
    floor_number: int | None = None,
    block_name: str | None = None,
) -> list[SpotView]:
    query = (
        db.query(Spot, Block, Floor)
        .join(Block, Spot.block_id == Block.id)
        .join(Floor, Block.floor_id == Floor.id)
    )

    if floor_number is not None:
        if db.query(Floor).filter(Floor.number == floor_number).first() is None:
            raise FloorNotFound(f"Floor {floor_number} does not exist", floor_number=floor_number)
        query = query.filter(Floor.number == floor_number)

    if block_name is not None:
        blocks = db.query(Block).join(Floor, Block.floor_id == Floor.id).filter(
            Block.name == block_name
        )
        if floor_number is not None:
            blocks = blocks.filter(Floor.number == floor_number)
        if blocks.first() is None:
            where = f" on floor {floor_number}" if floor_number is not None else ""
            raise BlockNotFound(
                f"Block {block_name} does not exist{where}",
                floor_number=floor_number,
                block_name=block_name,
            )
        query = query.filter(Block.name == block_name)

    active = _active_by_spot(db, now)
    return [
        SpotView(
            spot_id=spot.id,
            spot_name=spot.name,
            block_id=block.id,
            block_name=block.name,
            floor_id=floor.id,
            floor_number=floor.number,
            floor_name=floor.name,
            flag=spot.status,
            status=resolve(spot, active.get(spot.id, ()), now),
        )
        for spot, block, floor in query.order_by(Floor.number, Block.name, Spot.number)
    ]


# -------------------------
# Dashboard
# -------------------------
def dashboard_stats(db: Session, now: datetime) -> DashboardStats:
    day_start = datetime.combine(now.date(), time.min)
    day_end = day_start + timedelta(days=1)

    todays = db.query(Reservation).filter(
        Reservation.start_time >= day_start,
        Reservation.start_time < day_end,
    ).count()
    active = db.query(Reservation).filter(
        Reservation.status == ReservationStatus.ACTIVE
    ).count()
    available = sum(1 for view in list_spots(db, now) if view.status == SpotStatus.AVAILABLE)

    return DashboardStats(
        todays_reservations=todays,
        active_reservations=active,
        available_spots=available,
    )


# -------------------------
# Receipt
# -------------------------
def receipt(
    db: Session,
    reservation_id: int,
    customer_id: int,
    customer_name: str | None = None,
) -> Receipt:
    reservation = get_reservation(db, reservation_id, customer_id)
    # Receipts cover active and completed reservations only
    if reservation.status == ReservationStatus.CANCELLED:
        raise AlreadyFinalized(
            f"Reservation {reservation_id} was cancelled and has no receipt",
            reservation_id=reservation_id,
            status=reservation.status,
        )
    spot = (
        db.query(Spot)
        .options(joinedload(Spot.block).joinedload(Block.floor))
        .filter(Spot.id == reservation.spot_id)
        .one()
    )
    payment = reservation.payment

    return Receipt(
        reservation_id=reservation.id,
        control_number=reservation.control_number,
        customer_id=reservation.customer_id,
        customer_name=customer_name,
        vehicle_id=reservation.vehicle_id,
        floor_name=spot.block.floor.name,
        floor_number=spot.block.floor.number,
        block_name=spot.block.name,
        spot_name=spot.name,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        duration=format_duration(reservation.duration_minutes),
        total_amount=reservation.total_amount,
        status=reservation.status,
        payment_method=payment.method if payment else None,
        amount_paid=payment.amount if payment else None,
        paid_at=payment.paid_at if payment else None,
    )
