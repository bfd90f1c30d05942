"""
Data Seeder for Planner.
Populates the database with recurring tasks and events for demo purposes.
"""

import asyncio
import sys
from datetime import datetime, date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from planner.infra.config import get_settings
from planner.infra.repository import RuleRepository, InstanceRepository, ExceptionRepository
from planner.domain.models import (
    ItemType,
    RecurrenceException,
    RecurrenceInstance,
    RecurrenceRule,
    RecurrenceType,
)
from planner.infra.db import get_engine, Base


async def reset_database(db_url: str):
    """Delete the existing database file to ensure a fresh seed"""
    if "sqlite" not in db_url:
        print(f"Not a SQLite database, leaving it in place: {db_url}")
        return

    db_path = Path(db_url.split("///")[-1])
    if db_path.exists():
        print(f"Removing existing database at: {db_path}")
        try:
            db_path.unlink()
            print("Database removed.")
        except PermissionError:
            print("ERROR: Could not remove database. It might be in use.")
            sys.exit(1)
    else:
        print(f"No existing database found at: {db_path}")


async def seed():
    db_url = get_settings().get_db_url()
    await reset_database(db_url)
    print("Starting data seeding...")

    # Initialize DB (creates tables if needed)
    engine = get_engine(db_url)
    async with engine.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    rule_repo = RuleRepository()
    instance_repo = InstanceRepository()
    exception_repo = ExceptionRepository()

    # 1. Rules: (item type, item id, kind, interval, weekdays, start, end)
    rule_specs = [
        (ItemType.TASK, 1, RecurrenceType.DAILY, 1, [], datetime(2026, 1, 1, 8, 0), None),
        (ItemType.TASK, 2, RecurrenceType.WEEKLY, 2, [1, 3], datetime(2026, 1, 5, 9, 0), None),
        (ItemType.TASK, 3, RecurrenceType.MONTHLY, 1, [], datetime(2026, 1, 31), datetime(2026, 12, 31)),
        (ItemType.TASK, 4, RecurrenceType.DAILY, 1, [], None, None),
        (ItemType.EVENT, 1, RecurrenceType.WEEKLY, 1, [5], datetime(2026, 1, 2, 16, 0), None),
        (ItemType.EVENT, 2, RecurrenceType.YEARLY, 1, [], datetime(2024, 2, 29), None),
    ]

    rules = []
    for item_type, item_id, kind, interval, days, start, end in rule_specs:
        rule = await rule_repo.create(RecurrenceRule(
            item_type=item_type,
            item_id=item_id,
            recurrence_type=kind,
            interval=interval,
            days_of_week=days,
            start_datetime=start,
            end_datetime=end
        ))
        print(f"Created {item_type.value} rule {rule.id}: {kind.value} every {interval}")
        rules.append(rule)

    # 2. Skip one daily occurrence
    await exception_repo.create(RecurrenceException(
        rule_id=rules[0].id,
        exception_date=date(2026, 1, 6),
        is_deleted=True,
        reason="Public holiday"
    ))

    # 3. Move one weekly occurrence from Wednesday to Thursday
    moved = await instance_repo.create(RecurrenceInstance(
        rule_id=rules[1].id,
        item_id=rules[1].item_id,
        instance_date=date(2026, 1, 8),
        status="to_do"
    ))
    await exception_repo.create(RecurrenceException(
        rule_id=rules[1].id,
        exception_date=date(2026, 1, 7),
        replacement_instance_id=moved.id,
        reason="Moved to Thursday"
    ))

    print("Seeding complete.")


if __name__ == "__main__":
    asyncio.run(seed())
