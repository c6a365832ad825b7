from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from parkwise.database import Base


class SpotFlag:
    # stored on Spot.status; Occupied is never stored
    AVAILABLE = "Available"
    RESERVED = "Reserved"


class SpotStatus:
    # what listings show, derived from reservations and the clock
    AVAILABLE = "Available"
    RESERVED = "Reserved"
    OCCUPIED = "Occupied"


class ReservationStatus:
    ACTIVE = "Active"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"

    TERMINAL = (CANCELLED, COMPLETED)


class PaymentStatus:
    PENDING = "Pending"
    COMPLETED = "Completed"


class Floor(Base):
    __tablename__ = "floors"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(Integer, nullable=False, unique=True)
    name = Column(String, nullable=False)

    blocks = relationship("Block", back_populates="floor", order_by="Block.name")


class Block(Base):
    __tablename__ = "blocks"
    __table_args__ = (UniqueConstraint("floor_id", "name", name="uq_block_floor_name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(1), nullable=False)
    floor_id = Column(Integer, ForeignKey("floors.id"), nullable=False)
    total_spots = Column(Integer, nullable=False)

    floor = relationship("Floor", back_populates="blocks")
    spots = relationship("Spot", back_populates="block", order_by="Spot.number")


class Spot(Base):
    __tablename__ = "spots"
    __table_args__ = (UniqueConstraint("block_id", "name", name="uq_spot_block_name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    number = Column(Integer, nullable=False)
    block_id = Column(Integer, ForeignKey("blocks.id"), nullable=False)
    status = Column(String, nullable=False, default=SpotFlag.AVAILABLE)
    # bumped by every ledger write; the UPDATE doubles as the spot lock
    lock_version = Column(Integer, nullable=False, default=0)

    block = relationship("Block", back_populates="spots")
    reservations = relationship("Reservation", back_populates="spot")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    original_amount = Column(Numeric(10, 2), nullable=False)
    discount_type = Column(String, nullable=False, default="regular")
    method = Column(String, nullable=False)
    status = Column(String, nullable=False, default=PaymentStatus.PENDING)
    paid_at = Column(DateTime, nullable=False)

    reservation = relationship("Reservation", back_populates="payment", uselist=False)


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    spot_id = Column(Integer, ForeignKey("spots.id"), nullable=False, index=True)
    customer_id = Column(Integer, nullable=False, index=True)
    vehicle_id = Column(Integer, nullable=False)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=ReservationStatus.ACTIVE)
    duration_minutes = Column(Integer, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    # rate plan the reservation was priced with, reused on reschedule
    base_rate = Column(Numeric(10, 2), nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    base_hours = Column(Integer, nullable=False)
    payment_id = Column(Integer, ForeignKey("payments.id"), nullable=True)
    created_at = Column(DateTime, nullable=False)
    cancelled_at = Column(DateTime, nullable=True)

    spot = relationship("Spot", back_populates="reservations")
    payment = relationship("Payment", back_populates="reservation")

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    @property
    def control_number(self) -> str:
        return f"CN: {self.id:08d}"
