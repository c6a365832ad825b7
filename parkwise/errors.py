class LedgerError(Exception):
    code = "ledger_error"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "details": self.details}


# -------------------------
# Caller input
# -------------------------
class ValidationError(LedgerError):
    code = "validation_error"


class InvalidWindow(ValidationError):
    code = "invalid_window"


class CrossDayWindow(ValidationError):
    code = "cross_day_window"


class PastWindow(ValidationError):
    code = "past_window"


class InvalidPayment(ValidationError):
    code = "invalid_payment"


class UnknownVehicleType(ValidationError):
    code = "unknown_vehicle_type"


class InvalidFilter(ValidationError):
    code = "invalid_filter"


# -------------------------
# Race outcomes: retry only with different parameters
# -------------------------
class ConflictError(LedgerError):
    code = "conflict"


class SpotUnavailable(ConflictError):
    code = "spot_unavailable"


class WindowConflict(ConflictError):
    code = "window_conflict"


# -------------------------
# Missing records
# -------------------------
class NotFoundError(LedgerError):
    code = "not_found"


class SpotNotFound(NotFoundError):
    code = "spot_not_found"


class ReservationNotFound(NotFoundError):
    code = "reservation_not_found"


class FloorNotFound(NotFoundError):
    code = "floor_not_found"


class BlockNotFound(NotFoundError):
    code = "block_not_found"


# -------------------------
# Illegal transitions
# -------------------------
class StateError(LedgerError):
    code = "state_error"


class AlreadyFinalized(StateError):
    code = "already_finalized"


class AlreadyPaid(StateError):
    code = "already_paid"


class DeletionNotAllowed(StateError):
    code = "deletion_not_allowed"


# -------------------------
# Store failures: the only retryable class
# -------------------------
class StoreError(LedgerError):
    code = "store_error"
