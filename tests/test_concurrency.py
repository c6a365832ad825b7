import threading
from concurrent.futures import ThreadPoolExecutor

from parkwise.errors import AlreadyFinalized, AlreadyPaid, WindowConflict
from parkwise.ledger import cancel_reservation, create_reservation, pay_reservation
from parkwise.models import Spot, SpotFlag
from tests.helpers import CAR_PLAN, CUSTOMER, NOW, VEHICLE, active_count, spot_named, window

WORKERS = 8


def run_together(count, task):
    barrier = threading.Barrier(count)

    def worker(index):
        barrier.wait()
        return task(index)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(worker, range(count)))


def test_simultaneous_creates_yield_one_reservation(db, session_factory):
    spot_id = spot_named(db, "A1").id

    def attempt(index):
        with session_factory() as session:
            try:
                create_reservation(
                    session, spot_id, 100 + index, VEHICLE + index, window(10, 12), CAR_PLAN, now=NOW
                )
                return "reserved"
            except WindowConflict:
                return "conflict"

    outcomes = run_together(WORKERS, attempt)

    assert outcomes.count("reserved") == 1
    assert outcomes.count("conflict") == WORKERS - 1
    assert active_count(db, spot_id) == 1
    assert db.get(Spot, spot_id).status == SpotFlag.RESERVED


def test_cancel_racing_payment_finalizes_once(db, session_factory):
    spot_id = spot_named(db, "B1").id
    reservation_id = create_reservation(
        db, spot_id, CUSTOMER, VEHICLE, window(10, 12), CAR_PLAN, now=NOW
    ).id

    def attempt(index):
        with session_factory() as session:
            try:
                if index % 2:
                    cancel_reservation(session, reservation_id, CUSTOMER, now=NOW)
                else:
                    pay_reservation(session, reservation_id, CUSTOMER, amount=50, method="cash", now=NOW)
                return "done"
            except (AlreadyFinalized, AlreadyPaid):
                return "rejected"

    outcomes = run_together(4, attempt)

    assert outcomes.count("done") == 1
    assert active_count(db, spot_id) == 0
    assert db.get(Spot, spot_id).status == SpotFlag.AVAILABLE
