from parkwise.database import Base, SessionLocal, engine
from parkwise.inventory import bootstrap_inventory, inventory_summary
from parkwise.logging_config import setup_logging

setup_logging()
Base.metadata.create_all(bind=engine)

with SessionLocal() as db:
    created = bootstrap_inventory(db)
    rows = inventory_summary(db)

print(f"Added {created['floors']} floor(s), {created['blocks']} block(s), {created['spots']} spot(s)")
print()
print("=== Verification ===")
for row in rows:
    print(f"{row['floor_name']} - Block {row['block_name']}:")
    print(f"  Total spots:     {row['total_spots']}")
    print(f"  Actual spots:    {row['actual_spots']}")
    print(f"  Available spots: {row['available_spots']}")
