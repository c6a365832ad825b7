import os
from decimal import Decimal

# -------------------------
# Pricing
# -------------------------
BASE_HOURS = int(os.getenv("PARKWISE_BASE_HOURS", "8"))

# vehicle type -> (base rate for the first BASE_HOURS, rate per extra hour)
RATE_PLANS = {
    "CAR": (Decimal("50"), Decimal("10")),
    "MOTORCYCLE": (Decimal("30"), Decimal("5")),
    "BIKE": (Decimal("20"), Decimal("5")),
    "VAN": (Decimal("70"), Decimal("15")),
    "TRUCK": (Decimal("100"), Decimal("20")),
}

DISCOUNTS = {
    "regular": Decimal("0"),
    "student": Decimal("0.20"),
    "senior": Decimal("0.20"),
}

# -------------------------
# Status & listing windows
# -------------------------
STATUS_LOOKAHEAD_HOURS = int(os.getenv("PARKWISE_STATUS_LOOKAHEAD_HOURS", "24"))
RECENT_DAYS = int(os.getenv("PARKWISE_RECENT_DAYS", "7"))

# -------------------------
# Inventory layout
# -------------------------
FLOORS = {
    1: "1st Floor",
    2: "2nd Floor",
    3: "3rd Floor",
}
BLOCKS = ("A", "B", "C")
SPOTS_PER_BLOCK = 10

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
