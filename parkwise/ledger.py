"""Reservation ledger: the only writer of reservation, payment and spot-flag state.

Every write runs in one transaction that starts by locking the spot row, so
the overlap check and the insert are seen atomically by concurrent callers.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from parkwise.database import atomic
from parkwise.errors import (
    AlreadyFinalized,
    AlreadyPaid,
    DeletionNotAllowed,
    InvalidFilter,
    InvalidPayment,
    ReservationNotFound,
    SpotNotFound,
    SpotUnavailable,
    WindowConflict,
)
from parkwise.models import (
    Payment,
    PaymentStatus,
    Reservation,
    ReservationStatus,
    Spot,
    SpotFlag,
)
from parkwise.pricing import RatePlan, apply_discount, duration_minutes, price
from parkwise.settings import RECENT_DAYS
from parkwise.windows import Window, overlaps, validate_window

logger = logging.getLogger(__name__)


class ReservationFilter:
    ALL = "all"
    RECENT = "recent"
    PENDING = "pending"

    CHOICES = (ALL, RECENT, PENDING)


# -------------------------
# Helpers
# -------------------------
def _lock_spot(db: Session, spot_id: int) -> Spot:
    # Row lock on server databases, the write lock on SQLite; held to commit
    locked = db.query(Spot).filter(Spot.id == spot_id).update(
        {Spot.lock_version: Spot.lock_version + 1}, synchronize_session=False
    )
    if locked == 0:
        raise SpotNotFound(f"Parking spot {spot_id} not found", spot_id=spot_id)
    return db.get(Spot, spot_id, populate_existing=True)


def _active_reservations(db: Session, spot_id: int, exclude_id: int | None = None):
    query = db.query(Reservation).filter(
        Reservation.spot_id == spot_id,
        Reservation.status == ReservationStatus.ACTIVE,
    )
    if exclude_id is not None:
        query = query.filter(Reservation.id != exclude_id)
    return query.all()


def _window_of(reservation: Reservation) -> Window:
    return Window(reservation.start_time, reservation.end_time)


def _check_conflicts(spot: Spot, existing, window: Window) -> None:
    if not overlaps([_window_of(r) for r in existing], window):
        return
    clash = next(r for r in existing if _window_of(r).intersects(window))
    raise WindowConflict(
        f"Spot {spot.name} is already reserved for part of this time",
        spot_id=spot.id,
        spot_name=spot.name,
        start=window.start.isoformat(),
        end=window.end.isoformat(),
        reserved_start=clash.start_time.isoformat(),
        reserved_end=clash.end_time.isoformat(),
    )


def _check_not_held(spot: Spot, others, window: Window, now: datetime) -> None:
    # A spot carries at most one pending reservation
    if any(r.end_time > now for r in others):
        raise SpotUnavailable(
            f"Spot {spot.name} is not available",
            spot_id=spot.id,
            spot_name=spot.name,
            start=window.start.isoformat(),
            end=window.end.isoformat(),
        )


def _owned_reservation(db: Session, reservation_id: int, customer_id: int) -> Reservation:
    reservation = db.get(Reservation, reservation_id, populate_existing=True)
    # Someone else's reservation looks exactly like a missing one
    if reservation is None or reservation.customer_id != customer_id:
        raise ReservationNotFound(
            f"Reservation {reservation_id} not found", reservation_id=reservation_id
        )
    return reservation


def _lock_owned_reservation(db: Session, reservation_id: int, customer_id: int):
    reservation = _owned_reservation(db, reservation_id, customer_id)
    spot = _lock_spot(db, reservation.spot_id)
    # Re-read under the lock, a concurrent cancel/pay may have committed
    reservation = db.get(Reservation, reservation_id, populate_existing=True)
    return reservation, spot


def _require_active(reservation: Reservation) -> None:
    if reservation.status != ReservationStatus.ACTIVE:
        raise AlreadyFinalized(
            f"Reservation {reservation.id} is already {reservation.status.lower()}",
            reservation_id=reservation.id,
            status=reservation.status,
        )


def _pending(db: Session, now: datetime):
    return db.query(Reservation).filter(
        Reservation.status == ReservationStatus.ACTIVE,
        Reservation.end_time > now,
    )


def _has_pending(db: Session, spot_id: int, now: datetime) -> bool:
    return _pending(db, now).filter(Reservation.spot_id == spot_id).count() > 0


def _sync_flag(db: Session, spot: Spot, now: datetime) -> None:
    db.flush()
    spot.status = SpotFlag.RESERVED if _has_pending(db, spot.id, now) else SpotFlag.AVAILABLE


def _payment_amount(amount, reservation_id: int) -> Decimal:
    try:
        amount = Decimal(str(amount))
    except InvalidOperation:
        raise InvalidPayment(
            f"Payment amount {amount!r} is not a number", reservation_id=reservation_id
        ) from None
    if not amount.is_finite():
        raise InvalidPayment(
            f"Payment amount {amount} is not a finite number",
            reservation_id=reservation_id,
            amount=str(amount),
        )
    return amount


# -------------------------
# Create
# -------------------------
def create_reservation(
    db: Session,
    spot_id: int,
    customer_id: int,
    vehicle_id: int,
    window: Window,
    rate_plan: RatePlan,
    now: datetime | None = None,
) -> Reservation:
    now = now or datetime.now()
    validate_window(window, now)

    with atomic(db):
        spot = _lock_spot(db, spot_id)
        existing = _active_reservations(db, spot.id)
        _check_conflicts(spot, existing, window)

        if spot.status == SpotFlag.RESERVED:
            _check_not_held(spot, existing, window, now)
            logger.warning("Spot %s flagged Reserved with nothing pending, clearing", spot.id)

        reservation = Reservation(
            spot_id=spot.id,
            customer_id=customer_id,
            vehicle_id=vehicle_id,
            start_time=window.start,
            end_time=window.end,
            status=ReservationStatus.ACTIVE,
            duration_minutes=duration_minutes(window),
            total_amount=price(window, rate_plan),
            base_rate=rate_plan.base_rate,
            hourly_rate=rate_plan.hourly_rate,
            base_hours=rate_plan.base_hours,
            created_at=now,
        )
        db.add(reservation)
        spot.status = SpotFlag.RESERVED

    logger.info(
        "Reservation %s created on spot %s for customer %s (%s - %s)",
        reservation.id, spot_id, customer_id, window.start, window.end,
    )
    return reservation


# -------------------------
# Cancel
# -------------------------
def cancel_reservation(
    db: Session,
    reservation_id: int,
    customer_id: int,
    now: datetime | None = None,
) -> None:
    now = now or datetime.now()

    with atomic(db):
        reservation, spot = _lock_owned_reservation(db, reservation_id, customer_id)
        _require_active(reservation)
        reservation.status = ReservationStatus.CANCELLED
        reservation.cancelled_at = now
        _sync_flag(db, spot, now)

    logger.info("Reservation %s cancelled by customer %s", reservation_id, customer_id)


# -------------------------
# Reschedule
# -------------------------
def update_reservation_window(
    db: Session,
    reservation_id: int,
    customer_id: int,
    new_window: Window,
    now: datetime | None = None,
) -> Reservation:
    # Only the time changes; spot and vehicle stay as booked
    now = now or datetime.now()
    validate_window(new_window, now)

    with atomic(db):
        reservation, spot = _lock_owned_reservation(db, reservation_id, customer_id)
        _require_active(reservation)
        others = _active_reservations(db, spot.id, exclude_id=reservation.id)
        _check_conflicts(spot, others, new_window)
        # A lapsed reservation may not jump ahead of someone else's booking
        _check_not_held(spot, others, new_window, now)

        plan = RatePlan(
            base_rate=reservation.base_rate,
            hourly_rate=reservation.hourly_rate,
            base_hours=reservation.base_hours,
        )
        reservation.start_time = new_window.start
        reservation.end_time = new_window.end
        reservation.duration_minutes = duration_minutes(new_window)
        reservation.total_amount = price(new_window, plan)
        _sync_flag(db, spot, now)

    logger.info(
        "Reservation %s moved to %s - %s", reservation_id, new_window.start, new_window.end
    )
    return reservation


# -------------------------
# Pay
# -------------------------
def pay_reservation(
    db: Session,
    reservation_id: int,
    customer_id: int,
    amount,
    method: str,
    discount_type: str = "regular",
    now: datetime | None = None,
) -> Payment:
    now = now or datetime.now()
    amount = _payment_amount(amount, reservation_id)
    if not method or not method.strip():
        raise InvalidPayment("Payment method is required", reservation_id=reservation_id)

    with atomic(db):
        reservation, spot = _lock_owned_reservation(db, reservation_id, customer_id)
        if reservation.payment_id is not None:
            raise AlreadyPaid(
                f"Reservation {reservation_id} has already been paid",
                reservation_id=reservation_id,
                payment_id=reservation.payment_id,
            )
        _require_active(reservation)

        due = apply_discount(reservation.total_amount, discount_type)
        if amount < due:
            raise InvalidPayment(
                f"Payment of {amount} does not cover the {due} due",
                reservation_id=reservation_id,
                amount=str(amount),
                due=str(due),
            )

        payment = Payment(
            amount=amount,
            original_amount=reservation.total_amount,
            discount_type=discount_type,
            method=method.strip(),
            status=PaymentStatus.COMPLETED,
            paid_at=now,
        )
        db.add(payment)
        db.flush()
        reservation.payment_id = payment.id
        reservation.status = ReservationStatus.COMPLETED
        _sync_flag(db, spot, now)

    logger.info("Reservation %s paid (%s via %s)", reservation_id, amount, method)
    return payment


# -------------------------
# Reads
# -------------------------
def get_reservation(db: Session, reservation_id: int, customer_id: int) -> Reservation:
    return _owned_reservation(db, reservation_id, customer_id)


def list_reservations(
    db: Session,
    customer_id: int,
    view: str = ReservationFilter.ALL,
    now: datetime | None = None,
) -> list[Reservation]:
    if view not in ReservationFilter.CHOICES:
        raise InvalidFilter(
            f"Unknown reservation filter {view!r}",
            view=view,
            known=list(ReservationFilter.CHOICES),
        )
    now = now or datetime.now()

    query = db.query(Reservation).filter(Reservation.customer_id == customer_id)
    if view == ReservationFilter.RECENT:
        query = query.filter(Reservation.start_time >= now - timedelta(days=RECENT_DAYS))
    elif view == ReservationFilter.PENDING:
        query = query.filter(Reservation.status == ReservationStatus.ACTIVE)
    return query.order_by(Reservation.start_time.desc(), Reservation.id.desc()).all()


# -------------------------
# Legacy / maintenance
# -------------------------
def delete_reservation(db: Session, reservation_id: int, customer_id: int) -> None:
    _owned_reservation(db, reservation_id, customer_id)
    raise DeletionNotAllowed(
        "Reservations are never deleted, cancel it instead",
        reservation_id=reservation_id,
    )


def release_lapsed_spots(db: Session, now: datetime | None = None) -> int:
    """Clear Reserved flags on spots whose active reservations have all ended."""
    now = now or datetime.now()
    pending = _pending(db, now).with_entities(Reservation.spot_id)
    candidates = [
        spot_id
        for (spot_id,) in db.query(Spot.id).filter(
            Spot.status == SpotFlag.RESERVED,
            Spot.id.not_in(pending.scalar_subquery()),
        )
    ]

    released = 0
    for spot_id in candidates:
        with atomic(db):
            spot = _lock_spot(db, spot_id)
            if spot.status == SpotFlag.RESERVED and not _has_pending(db, spot_id, now):
                spot.status = SpotFlag.AVAILABLE
                released += 1

    if released:
        logger.info("Released %s lapsed spot(s)", released)
    return released
