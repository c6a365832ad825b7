"""
Request and response bodies for the parkwise API.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WindowBody(BaseModel):
    start_time: datetime = Field(..., description="Window start (inclusive)")
    end_time: datetime = Field(..., description="Window end (exclusive), same day as start")

    @field_validator("start_time", "end_time")
    @classmethod
    def to_local_naive(cls, value: datetime) -> datetime:
        # The ledger works in naive local time
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value


class ReservationCreate(WindowBody):
    spot_id: int = Field(..., description="ID of the spot to reserve")
    vehicle_id: int = Field(..., description="Vehicle from the customer's registry")
    vehicle_type: str = Field("CAR", description="Selects the rate plan")


class ReservationReschedule(WindowBody):
    pass


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, allow_inf_nan=False, description="Amount tendered")
    method: str = Field(..., min_length=1, description="e.g. cash, card, gcash")
    discount_type: str = Field("regular", description="regular, student or senior")


class ReservationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    control_number: str
    spot_id: int
    customer_id: int
    vehicle_id: int
    start_time: datetime
    end_time: datetime
    status: str
    duration_minutes: int
    total_amount: Decimal
    payment_id: Optional[int] = None


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: Decimal
    original_amount: Decimal
    discount_type: str
    method: str
    status: str
    paid_at: datetime


class SpotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    spot_id: int
    spot_name: str
    block_id: int
    block_name: str
    floor_id: int
    floor_number: int
    floor_name: str
    flag: str = Field(..., description="Stored flag: Available or Reserved")
    status: str = Field(..., description="Resolved status: Available, Reserved or Occupied")


class DashboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    todays_reservations: int
    active_reservations: int
    available_spots: int


class ReceiptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reservation_id: int
    control_number: str
    customer_id: int
    customer_name: Optional[str]
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
    payment_method: Optional[str] = None
    amount_paid: Optional[Decimal] = None
    paid_at: Optional[datetime] = None
