import pytest

from parkwise.errors import StoreError
from parkwise.inventory import bootstrap_inventory, inventory_summary
from parkwise.models import Block, Floor, Spot, SpotFlag


def counts(db):
    return tuple(db.query(model).count() for model in (Floor, Block, Spot))


def test_bootstrap_builds_layout(session_factory):
    with session_factory() as db:
        created = bootstrap_inventory(db)

        assert created == {"floors": 3, "blocks": 9, "spots": 90}
        assert counts(db) == (3, 9, 90)
        floor = db.query(Floor).filter(Floor.number == 2).one()
        assert floor.name == "2nd Floor"
        assert [block.name for block in floor.blocks] == ["A", "B", "C"]
        assert [spot.name for spot in floor.blocks[0].spots][:3] == ["A1", "A2", "A3"]
        assert all(spot.status == SpotFlag.AVAILABLE for spot in floor.blocks[0].spots)


def test_bootstrap_is_idempotent(session_factory):
    with session_factory() as db:
        bootstrap_inventory(db)
        before = sorted(db.query(Spot.id, Spot.name, Spot.block_id).all())

        created = bootstrap_inventory(db)

        assert created == {"floors": 0, "blocks": 0, "spots": 0}
        assert counts(db) == (3, 9, 90)
        assert sorted(db.query(Spot.id, Spot.name, Spot.block_id).all()) == before


def test_bootstrap_fills_gaps(session_factory):
    with session_factory() as db:
        bootstrap_inventory(db, floors={1: "1st Floor"}, blocks=("A",), spots_per_block=5)

        created = bootstrap_inventory(db)

        assert created == {"floors": 2, "blocks": 8, "spots": 85}
        assert counts(db) == (3, 9, 90)


def test_bootstrap_failure_propagates(session_factory):
    with session_factory() as db:
        with pytest.raises(StoreError):
            bootstrap_inventory(db, floors={1: None})
        assert counts(db) == (0, 0, 0)


def test_inventory_summary(db):
    spot = db.query(Spot).first()
    spot.status = SpotFlag.RESERVED
    db.commit()

    rows = inventory_summary(db)

    assert len(rows) == 9
    assert rows[0]["floor_name"] == "1st Floor"
    assert rows[0]["block_name"] == "A"
    assert rows[0]["total_spots"] == rows[0]["actual_spots"] == 10
    assert sum(row["available_spots"] for row in rows) == 89
