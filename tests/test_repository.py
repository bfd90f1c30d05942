"""
Tests for the rule, instance and exception repositories.
"""

import datetime
from unittest.mock import MagicMock

import pytest

from planner.domain.errors import RuleNotFoundError
from planner.domain.models import (
    ItemType,
    RecurrenceException,
    RecurrenceInstance,
    RecurrenceRule,
    RecurrenceType,
)
from planner.infra.repository import ExceptionRepository, InstanceRepository


async def create_rule(rule_repo, **kwargs):
    data = {
        "item_type": ItemType.TASK,
        "item_id": 1,
        "recurrence_type": RecurrenceType.DAILY,
        "start_datetime": datetime.datetime(2025, 2, 1),
    }
    data.update(kwargs)
    return await rule_repo.create(RecurrenceRule(**data))


@pytest.mark.asyncio
async def test_rule_round_trip(rule_repo):
    created = await create_rule(
        rule_repo,
        recurrence_type=RecurrenceType.WEEKLY,
        interval=2,
        days_of_week=[3, 1],
        end_datetime=datetime.datetime(2025, 6, 30),
    )

    loaded = await rule_repo.get_by_id(created.id)

    assert loaded.recurrence_type is RecurrenceType.WEEKLY
    assert loaded.interval == 2
    assert loaded.days_of_week == frozenset({1, 3})
    assert loaded.start_datetime == datetime.datetime(2025, 2, 1)
    assert loaded.end_datetime == datetime.datetime(2025, 6, 30)


@pytest.mark.asyncio
async def test_unknown_type_survives_storage(rule_repo):
    created = await create_rule(rule_repo, recurrence_type="custom")
    loaded = await rule_repo.get_by_id(created.id)
    assert loaded.recurrence_type == "custom"
    assert loaded.kind is None


@pytest.mark.asyncio
async def test_get_or_raise_missing_rule(rule_repo):
    with pytest.raises(RuleNotFoundError) as exc_info:
        await rule_repo.get_or_raise(404)
    assert exc_info.value.rule_id == 404


@pytest.mark.asyncio
async def test_rules_filtered_by_item(rule_repo):
    task_rule = await create_rule(rule_repo, item_id=5)
    await create_rule(rule_repo, item_id=6)
    event_rule = await create_rule(rule_repo, item_type=ItemType.EVENT, item_id=5)

    assert [r.id for r in await rule_repo.get_for_items(ItemType.TASK, [5])] == [task_rule.id]
    assert [r.id for r in await rule_repo.get_all(ItemType.EVENT)] == [event_rule.id]
    assert len(await rule_repo.get_all()) == 3
    assert await rule_repo.get_for_items(ItemType.TASK, []) == []


@pytest.mark.asyncio
async def test_exceptions_for_rule_in_range(rule_repo, exception_repo):
    rule = await create_rule(rule_repo)
    inside = await exception_repo.create(RecurrenceException(
        rule_id=rule.id, exception_date=datetime.date(2025, 2, 3), is_deleted=True, reason="Sick"
    ))
    await exception_repo.create(RecurrenceException(
        rule_id=rule.id, exception_date=datetime.date(2025, 3, 3), is_deleted=True
    ))

    loaded = await exception_repo.get_for_rule(
        rule.id, datetime.datetime(2025, 2, 1), datetime.datetime(2025, 2, 28, 23, 59)
    )

    assert [e.id for e in loaded] == [inside.id]
    assert loaded[0].reason == "Sick"
    assert loaded[0].replacement_date is None


@pytest.mark.asyncio
async def test_exception_in_range_through_replacement_date(rule_repo, instance_repo, exception_repo):
    rule = await create_rule(rule_repo)
    instance = await instance_repo.create(RecurrenceInstance(
        rule_id=rule.id, instance_date=datetime.date(2025, 3, 2)
    ))
    moved = await exception_repo.create(RecurrenceException(
        rule_id=rule.id, exception_date=datetime.date(2025, 2, 27), replacement_instance_id=instance.id
    ))

    loaded = await exception_repo.get_for_rule(rule.id, datetime.date(2025, 3, 1), datetime.date(2025, 3, 31))

    assert [e.id for e in loaded] == [moved.id]
    assert loaded[0].replacement_date == datetime.date(2025, 3, 2)
    assert loaded[0].excludes_occurrence


@pytest.mark.asyncio
async def test_batch_groups_by_rule(rule_repo, exception_repo):
    first = await create_rule(rule_repo, item_id=1)
    second = await create_rule(rule_repo, item_id=2)
    untouched = await create_rule(rule_repo, item_id=3)
    for rule, day in ((first, 10), (first, 11), (second, 10)):
        await exception_repo.create(RecurrenceException(
            rule_id=rule.id, exception_date=datetime.date(2025, 2, day), is_deleted=True
        ))

    grouped = await exception_repo.get_for_rules(
        [first.id, second.id, untouched.id], datetime.date(2025, 2, 10), datetime.date(2025, 2, 11)
    )

    assert set(grouped) == {first.id, second.id}
    assert [e.exception_date.day for e in grouped[first.id]] == [10, 11]
    assert [e.exception_date.day for e in grouped[second.id]] == [10]


@pytest.mark.asyncio
async def test_batch_with_no_ids_does_not_query():
    session = MagicMock()
    repo = ExceptionRepository(session=session)

    assert await repo.get_for_rules([], datetime.date(2025, 1, 1), datetime.date(2025, 1, 31)) == {}
    session.execute.assert_not_called()


@pytest.mark.asyncio
async def test_instances_for_rules_on_date(rule_repo, instance_repo):
    rule = await create_rule(rule_repo)
    other = await create_rule(rule_repo, item_id=2)
    instance = await instance_repo.create(RecurrenceInstance(
        rule_id=rule.id, item_id=1, instance_date=datetime.date(2025, 2, 5), status="done"
    ))
    await instance_repo.create(RecurrenceInstance(rule_id=other.id, instance_date=datetime.date(2025, 2, 6)))

    found = await instance_repo.get_for_rules_on_date([rule.id, other.id], datetime.datetime(2025, 2, 5, 12, 0))

    assert list(found) == [rule.id]
    assert found[rule.id].id == instance.id
    assert found[rule.id].status == "done"
    assert await InstanceRepository(session=MagicMock()).get_for_rules_on_date([], datetime.date(2025, 2, 5)) == {}
