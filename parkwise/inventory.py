import logging

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from parkwise.database import atomic
from parkwise.models import Block, Floor, Spot, SpotFlag
from parkwise.settings import BLOCKS, FLOORS, SPOTS_PER_BLOCK

logger = logging.getLogger(__name__)


# -------------------------
# Insert-if-missing helpers
# -------------------------
def _floor_if_missing(db: Session, number: int, name: str) -> tuple[Floor, bool]:
    existing = db.query(Floor).filter(Floor.number == number).first()
    if existing:
        return existing, False
    floor = Floor(number=number, name=name)
    db.add(floor)
    db.flush()
    return floor, True


def _block_if_missing(db: Session, floor: Floor, name: str, capacity: int) -> tuple[Block, bool]:
    existing = db.query(Block).filter(
        Block.floor_id == floor.id,
        Block.name == name,
    ).first()
    if existing:
        return existing, False
    block = Block(name=name, floor_id=floor.id, total_spots=capacity)
    db.add(block)
    db.flush()
    return block, True


def _spot_if_missing(db: Session, block: Block, number: int) -> bool:
    name = f"{block.name}{number}"
    existing = db.query(Spot).filter(
        Spot.block_id == block.id,
        Spot.name == name,
    ).first()
    if existing:
        return False
    db.add(Spot(name=name, number=number, block_id=block.id, status=SpotFlag.AVAILABLE))
    return True


# -------------------------
# Bootstrap
# -------------------------
def bootstrap_inventory(
    db: Session,
    floors: dict[int, str] = FLOORS,
    blocks=BLOCKS,
    spots_per_block: int = SPOTS_PER_BLOCK,
) -> dict[str, int]:
    """Create the floor/block/spot layout, skipping anything already there.

    Errors propagate: the service cannot run without its inventory.
    """
    created = {"floors": 0, "blocks": 0, "spots": 0}

    with atomic(db):
        for number, floor_name in sorted(floors.items()):
            floor, is_new = _floor_if_missing(db, number, floor_name)
            created["floors"] += is_new

            for block_name in blocks:
                block, is_new = _block_if_missing(db, floor, block_name, spots_per_block)
                created["blocks"] += is_new

                for spot_number in range(1, spots_per_block + 1):
                    created["spots"] += _spot_if_missing(db, block, spot_number)

    logger.info(
        "Inventory ready: %(floors)s floor(s), %(blocks)s block(s), %(spots)s spot(s) added",
        created,
    )
    return created


def inventory_summary(db: Session) -> list[dict]:
    rows = (
        db.query(
            Floor.number,
            Floor.name,
            Block.name,
            Block.total_spots,
            func.count(Spot.id),
            func.sum(case((Spot.status == SpotFlag.AVAILABLE, 1), else_=0)),
        )
        .join(Block, Block.floor_id == Floor.id)
        .join(Spot, Spot.block_id == Block.id)
        .group_by(Floor.number, Floor.name, Block.name, Block.total_spots)
        .order_by(Floor.number, Block.name)
        .all()
    )

    return [
        {
            "floor_number": floor_number,
            "floor_name": floor_name,
            "block_name": block_name,
            "total_spots": total_spots,
            "actual_spots": actual,
            "available_spots": available or 0,
        }
        for floor_number, floor_name, block_name, total_spots, actual, available in rows
    ]
