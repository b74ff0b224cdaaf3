from datetime import UTC, datetime, timedelta, timezone

import pytest

from momentum.db.collections import MILESTONES, TASKS
from momentum.db.record_store import TransactionHandle
from momentum.errors import ConstraintViolation, InvalidArgument, NotFound, StorageUnavailable


@pytest.mark.asyncio
async def test_create_task_with_milestones_keeps_draft_order(service, make_user):
    uid = await make_user("alice")
    result = await service.create_task(
        uid,
        {"title": "Launch", "priority": "high"},
        [{"title": "Plan"}, {"title": "Build"}, {"title": "Ship"}],
    )

    assert len(result.milestone_ids) == 3
    linked = await service.get_milestones_by_task(result.task_id)
    by_id = {m.id: m for m in linked}
    assert [by_id[i].title for i in result.milestone_ids] == ["Plan", "Build", "Ship"]
    assert all(m.user_id == uid and m.task_id == result.task_id for m in linked)

    task = await service.get_task(result.task_id)
    assert task.priority == "high"
    assert task.completed is False
    assert task.user_id == uid


@pytest.mark.asyncio
async def test_create_task_requires_existing_user(service):
    with pytest.raises(ConstraintViolation):
        await service.create_task(42, {"title": "orphan"})


@pytest.mark.asyncio
async def test_create_task_is_atomic_when_a_milestone_fails(service, make_user, monkeypatch):
    uid = await make_user("alice")
    original_put = TransactionHandle.put
    calls = {"milestones": 0}

    async def failing_put(self, collection, record):
        if collection == MILESTONES:
            calls["milestones"] += 1
            if calls["milestones"] == 2:
                raise ConstraintViolation("milestone rejected")
        return await original_put(self, collection, record)

    monkeypatch.setattr(TransactionHandle, "put", failing_put)
    with pytest.raises(ConstraintViolation):
        await service.create_task(uid, {"title": "Launch"}, [{"title": "a"}, {"title": "b"}])
    monkeypatch.undo()

    assert await service.get_tasks(uid) == []
    assert await service.get_milestones(uid) == []


@pytest.mark.asyncio
async def test_update_task_merges_fields(service, make_user):
    uid = await make_user("alice")
    created = await service.create_task(uid, {"title": "A", "description": "keep me", "priority": "low"})

    updated = await service.update_task(created.task_id, {"priority": "high"})
    assert updated.title == "A"
    assert updated.priority == "high"
    assert updated.description == "keep me"
    assert updated.id == created.task_id

    stored = await service.get_task(created.task_id)
    assert stored == updated

    done = await service.update_task(created.task_id, {"completed": True})
    assert done.completed is True
    assert done.priority == "high"

    due = datetime(2026, 1, 1, 10, 0, tzinfo=UTC)
    scheduled = await service.update_task(created.task_id, {"due_date": due})
    assert scheduled.due_date == due
    assert scheduled == await service.get_task(created.task_id)


@pytest.mark.asyncio
async def test_due_dates_are_stored_as_utc(service, make_user):
    uid = await make_user("alice")
    local = datetime(2026, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=5)))
    created = await service.create_task(uid, {"title": "T", "due_date": local}, [{"title": "M", "due_date": local}])

    task = await service.get_task(created.task_id)
    assert task.due_date == local
    assert task.due_date.utcoffset() == timedelta(0)
    assert task.due_date.hour == 5

    milestone = (await service.get_milestones_by_task(created.task_id))[0]
    assert milestone.due_date == datetime(2026, 1, 1, 5, 0, tzinfo=UTC)

    # Naive input is taken as UTC
    naive = await service.update_task(created.task_id, {"due_date": datetime(2026, 2, 1, 8, 30)})
    assert naive.due_date == datetime(2026, 2, 1, 8, 30, tzinfo=UTC)


@pytest.mark.asyncio
async def test_update_task_errors(service, make_user):
    uid = await make_user("alice")
    created = await service.create_task(uid, {"title": "A"})

    with pytest.raises(NotFound):
        await service.update_task(created.task_id + 1, {"title": "B"})
    # Owner is immutable
    with pytest.raises(InvalidArgument):
        await service.update_task(created.task_id, {"user_id": uid + 1})
    with pytest.raises(InvalidArgument):
        await service.update_task(created.task_id, {"priority": "urgent"})
    # Explicitly nulling a required field fails and leaves the task untouched
    with pytest.raises(InvalidArgument):
        await service.update_task(created.task_id, {"title": None})
    assert (await service.get_task(created.task_id)).title == "A"


@pytest.mark.asyncio
async def test_update_task_can_attach_new_milestones(service, make_user):
    uid = await make_user("alice")
    created = await service.create_task(uid, {"title": "A"}, [{"title": "first"}])
    await service.update_task(created.task_id, {"title": "A2"}, [{"title": "second"}])

    titles = [m.title for m in await service.get_milestones_by_task(created.task_id)]
    assert titles == ["first", "second"]


@pytest.mark.asyncio
async def test_delete_task_cascades_only_to_its_milestones(service, make_user):
    uid = await make_user("alice")
    t1 = await service.create_task(uid, {"title": "T"}, [{"title": "M1"}, {"title": "M2"}])
    t2 = await service.create_task(uid, {"title": "Other"}, [{"title": "M3"}])
    loose = await service.create_milestone(uid, {"title": "unassigned"})

    await service.delete_task(t1.task_id)

    with pytest.raises(NotFound):
        await service.get_task(t1.task_id)
    remaining = {m.id for m in await service.get_milestones(uid)}
    assert remaining == {t2.milestone_ids[0], loose}
    assert not remaining & set(t1.milestone_ids)


@pytest.mark.asyncio
async def test_delete_task_is_idempotent(service, make_user, store):
    uid = await make_user("alice")
    created = await service.create_task(uid, {"title": "T"})
    await service.delete_task(created.task_id)
    await service.delete_task(created.task_id)
    await service.delete_task(9999)
    assert await store.count(TASKS) == 0


@pytest.mark.asyncio
async def test_get_tasks_with_milestones(service, make_user):
    uid = await make_user("alice")
    bob = await make_user("bob")
    t1 = await service.create_task(uid, {"title": "with"}, [{"title": "m1"}, {"title": "m2"}])
    t2 = await service.create_task(uid, {"title": "without"})
    await service.create_task(bob, {"title": "bob's"}, [{"title": "x"}])

    tasks = await service.get_tasks_with_milestones(uid)
    by_id = {t.id: t for t in tasks}
    assert set(by_id) == {t1.task_id, t2.task_id}
    assert [m.title for m in by_id[t1.task_id].milestones] == ["m1", "m2"]
    assert by_id[t2.task_id].milestones == []

    assert await service.get_tasks_with_milestones(uid + 100) == []


@pytest.mark.asyncio
async def test_get_tasks_with_milestones_degrades_per_task(service, make_user, monkeypatch):
    uid = await make_user("alice")
    good = await service.create_task(uid, {"title": "good"}, [{"title": "ok"}])
    bad = await service.create_task(uid, {"title": "bad"}, [{"title": "lost"}])

    original_scan = TransactionHandle.scan_by_index

    async def flaky_scan(self, collection, index, key):
        if collection == MILESTONES and index == "task_id" and key == bad.task_id:
            raise StorageUnavailable("transient read failure")
        return await original_scan(self, collection, index, key)

    monkeypatch.setattr(TransactionHandle, "scan_by_index", flaky_scan)
    tasks = await service.get_tasks_with_milestones(uid)

    by_id = {t.id: t for t in tasks}
    assert set(by_id) == {good.task_id, bad.task_id}
    assert [m.title for m in by_id[good.task_id].milestones] == ["ok"]
    assert by_id[bad.task_id].milestones == []


@pytest.mark.asyncio
async def test_task_statistics(service, make_user):
    uid = await make_user("alice")
    ids = await service.bulk_create_tasks(uid, [{"title": f"t{i}"} for i in range(5)])
    await service.update_task(ids[0], {"completed": True})
    await service.update_task(ids[1], {"completed": True})
    m = await service.create_milestone(uid, {"title": "m", "task_id": ids[2]})
    await service.create_milestone(uid, {"title": "loose"})
    await service.toggle_milestone_status(m)

    stats = await service.get_task_statistics(uid)
    assert stats.total_tasks == 5
    assert stats.completed_tasks == 2
    assert stats.completion_rate == 40
    assert stats.total_milestones == 2
    assert stats.completed_milestones == 1


@pytest.mark.asyncio
async def test_task_statistics_without_tasks(service, make_user):
    uid = await make_user("alice")
    stats = await service.get_task_statistics(uid)
    assert stats.total_tasks == 0
    assert stats.completion_rate == 0


@pytest.mark.asyncio
async def test_search_tasks_is_case_insensitive_and_scoped(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    report = await service.create_task(alice, {"title": "Write Report"})
    notes = await service.create_task(alice, {"title": "Groceries", "description": "Monthly REPORT card"})
    await service.create_task(alice, {"title": "Gym", "description": None})

    found = await service.search_tasks(alice, "report")
    assert {t.id for t in found} == {report.task_id, notes.task_id}
    assert await service.search_tasks(bob, "report") == []
    assert await service.search_tasks(alice, "swim") == []


@pytest.mark.asyncio
async def test_get_tasks_by_status(service, make_user):
    uid = await make_user("alice")
    ids = await service.bulk_create_tasks(uid, [{"title": "a"}, {"title": "b", "completed": True}])
    assert [t.id for t in await service.get_tasks_by_status(uid, True)] == [ids[1]]
    assert [t.id for t in await service.get_tasks_by_status(uid, False)] == [ids[0]]


@pytest.mark.asyncio
async def test_task_operations_reject_bad_ids(service):
    with pytest.raises(InvalidArgument):
        await service.get_tasks(-1)
    with pytest.raises(InvalidArgument):
        await service.delete_task(0)
    with pytest.raises(InvalidArgument):
        await service.search_tasks(1, None)
