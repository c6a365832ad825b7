import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from parkwise import ledger, projections
from parkwise.database import Base, SessionLocal
from parkwise.errors import (
    ConflictError,
    LedgerError,
    NotFoundError,
    StateError,
    StoreError,
    ValidationError,
)
from parkwise.inventory import bootstrap_inventory
from parkwise.logging_config import setup_logging
from parkwise.pricing import rate_plan_for
from parkwise.schemas import (
    DashboardOut,
    PaymentCreate,
    PaymentOut,
    ReceiptOut,
    ReservationCreate,
    ReservationOut,
    ReservationReschedule,
    SpotOut,
)
from parkwise.windows import Window

logger = logging.getLogger(__name__)

STATUS_CODES = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StateError, 409),
    (StoreError, 503),
)

router = APIRouter()


# -------------------------
# Dependencies
# -------------------------
def get_db(request: Request):
    with request.app.state.session_factory() as db:
        yield db


def get_now(request: Request) -> datetime:
    return request.app.state.clock()


def current_customer(x_customer_id: int | None = Header(None)) -> int:
    # Identity is issued by the auth gateway and trusted as is
    if x_customer_id is None:
        raise HTTPException(status_code=401, detail="Missing customer identity")
    return x_customer_id


# -------------------------
# Errors
# -------------------------
def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = next((code for cls, code in STATUS_CODES if isinstance(exc, cls)), 500)

    if isinstance(exc, StoreError):
        # Details stay in the server log
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.code, "message": "Please try again shortly", "details": {}},
        )

    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # The rejected input is left out, it may not even be valid JSON (NaN, Infinity)
    errors = [
        {"loc": list(error["loc"]), "type": error["type"], "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "error": "invalid_request",
            "message": "Request failed validation",
            "details": {"errors": errors},
        },
    )


# -------------------------
# Startup
# -------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # No inventory, no service: any failure here aborts startup
    with app.state.session_factory() as db:
        Base.metadata.create_all(bind=db.get_bind())
        bootstrap_inventory(db)
        ledger.release_lapsed_spots(db, now=app.state.clock())
    yield


# -------------------------
# Spots & dashboard
# -------------------------
@router.get("/")
def read_root():
    return {"message": "ParkWise reservation API is running"}


@router.get("/spots", response_model=list[SpotOut])
def list_spots(
    floor: int | None = None,
    block: str | None = None,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    views = projections.list_spots(db, now, floor_number=floor, block_name=block)
    return [SpotOut.model_validate(view) for view in views]


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    return DashboardOut.model_validate(projections.dashboard_stats(db, now))


# -------------------------
# Reservations
# -------------------------
@router.post("/reservations", response_model=ReservationOut, status_code=201)
def create_reservation(
    body: ReservationCreate,
    customer_id: int = Depends(current_customer),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    reservation = ledger.create_reservation(
        db,
        spot_id=body.spot_id,
        customer_id=customer_id,
        vehicle_id=body.vehicle_id,
        window=Window(body.start_time, body.end_time),
        rate_plan=rate_plan_for(body.vehicle_type),
        now=now,
    )
    return ReservationOut.model_validate(reservation)


@router.get("/reservations", response_model=list[ReservationOut])
def list_reservations(
    view: str = "all",
    customer_id: int = Depends(current_customer),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    reservations = ledger.list_reservations(db, customer_id, view=view, now=now)
    return [ReservationOut.model_validate(r) for r in reservations]


@router.get("/reservations/{reservation_id}", response_model=ReservationOut)
def get_reservation(
    reservation_id: int,
    customer_id: int = Depends(current_customer),
    db: Session = Depends(get_db),
):
    return ReservationOut.model_validate(ledger.get_reservation(db, reservation_id, customer_id))


@router.put("/reservations/{reservation_id}", response_model=ReservationOut)
def reschedule_reservation(
    reservation_id: int,
    body: ReservationReschedule,
    customer_id: int = Depends(current_customer),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    reservation = ledger.update_reservation_window(
        db,
        reservation_id,
        customer_id,
        Window(body.start_time, body.end_time),
        now=now,
    )
    return ReservationOut.model_validate(reservation)


@router.post("/reservations/{reservation_id}/cancel")
def cancel_reservation(
    reservation_id: int,
    customer_id: int = Depends(current_customer),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    ledger.cancel_reservation(db, reservation_id, customer_id, now=now)
    return {"message": "Reservation cancelled", "reservation_id": reservation_id}


@router.delete("/reservations/{reservation_id}")
def delete_reservation(
    reservation_id: int,
    customer_id: int = Depends(current_customer),
    db: Session = Depends(get_db),
):
    ledger.delete_reservation(db, reservation_id, customer_id)


@router.post("/reservations/{reservation_id}/payment", response_model=PaymentOut, status_code=201)
def pay_reservation(
    reservation_id: int,
    body: PaymentCreate,
    customer_id: int = Depends(current_customer),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    payment = ledger.pay_reservation(
        db,
        reservation_id,
        customer_id,
        amount=body.amount,
        method=body.method,
        discount_type=body.discount_type,
        now=now,
    )
    return PaymentOut.model_validate(payment)


@router.get("/reservations/{reservation_id}/receipt", response_model=ReceiptOut)
def reservation_receipt(
    reservation_id: int,
    customer_id: int = Depends(current_customer),
    x_customer_name: str | None = Header(None),
    db: Session = Depends(get_db),
):
    view = projections.receipt(db, reservation_id, customer_id, customer_name=x_customer_name)
    return ReceiptOut.model_validate(view)


# -------------------------
# App factory
# -------------------------
def create_app(session_factory=SessionLocal, clock=datetime.now) -> FastAPI:
    setup_logging()

    app = FastAPI(title="ParkWise Reservations", lifespan=lifespan)
    app.state.session_factory = session_factory
    app.state.clock = clock
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
