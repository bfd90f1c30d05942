#!/usr/bin/env python

"""
Planner - Main Entry Point

Prints the recurring tasks and events that occur on one day, read from the
configured database.

Usage:
    python main.py [YYYY-MM-DD]

Requirements:
    - Python 3.10+
    - See pyproject.toml for dependencies
"""

import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# Add app directory to path
sys.path.insert(0, str(Path(__file__).parent))

from planner.domain.models import ItemType
from planner.infra.config import get_settings
from planner.infra.db import init_db
from planner.infra.repository import ExceptionRepository, RuleRepository
from planner.services import AgendaService, RecurrenceExpander


async def print_agenda(day: date):
    """Load all rules and print the agenda for one day"""
    settings = get_settings()
    await init_db(settings.get_db_url())

    rule_repo = RuleRepository()
    task_rules = await rule_repo.get_all(ItemType.TASK)
    event_rules = await rule_repo.get_all(ItemType.EVENT)

    expander = RecurrenceExpander(
        exception_repo=ExceptionRepository(),
        strict_types=settings.engine.strict_recurrence_types
    )
    agenda = await AgendaService(expander=expander).build_day(task_rules, event_rules, day)

    print(f"Agenda for {agenda.date.isoformat()}")
    for label, entries in (("Tasks", agenda.tasks), ("Events", agenda.events)):
        print(f"  {label}:")
        if not entries:
            print("    (none)")
        for entry in entries:
            status = entry.instance.status if entry.instance and entry.instance.status else "-"
            print(f"    rule {entry.rule.id} -> item {entry.item_id} [{status}]")


def main():
    """Main entry point"""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        day = date.fromisoformat(sys.argv[1]) if len(sys.argv) > 1 else date.today()
    except ValueError:
        print(f"Invalid date: {sys.argv[1]} (expected YYYY-MM-DD)")
        return 2

    asyncio.run(print_agenda(day))
    return 0


if __name__ == "__main__":
    sys.exit(main())
