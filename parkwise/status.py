from datetime import datetime, timedelta
from typing import Iterable

from parkwise.models import ReservationStatus, Spot, SpotStatus
from parkwise.settings import STATUS_LOOKAHEAD_HOURS

LOOKAHEAD = timedelta(hours=STATUS_LOOKAHEAD_HOURS)


def resolve(
    spot: Spot,
    reservations: Iterable,
    now: datetime,
    lookahead: timedelta = LOOKAHEAD,
) -> str:
    """Display status of ``spot`` at ``now``.

    Occupied while an active reservation covers ``now``; Reserved when the
    next active reservation starts within ``lookahead``; Available otherwise.
    Only reads, the stored flag is never touched here.
    """
    upcoming = False
    for reservation in reservations:
        if reservation.spot_id != spot.id or reservation.status != ReservationStatus.ACTIVE:
            continue
        if reservation.start_time <= now < reservation.end_time:
            return SpotStatus.OCCUPIED
        if now < reservation.start_time <= now + lookahead:
            upcoming = True
    return SpotStatus.RESERVED if upcoming else SpotStatus.AVAILABLE
