from datetime import UTC, datetime, timedelta, timezone

import pytest

from momentum.errors import ConstraintViolation, InvalidArgument, NotFound


@pytest.mark.asyncio
async def test_create_unassigned_and_linked_milestones(service, make_user):
    uid = await make_user("alice")
    task = await service.create_task(uid, {"title": "T"})

    loose = await service.create_milestone(uid, {"title": "loose"})
    linked = await service.create_milestone(uid, {"title": "linked", "task_id": task.task_id})

    milestones = {m.id: m for m in await service.get_milestones(uid)}
    assert milestones[loose].task_id is None
    assert milestones[linked].task_id == task.task_id
    assert all(m.user_id == uid for m in milestones.values())


@pytest.mark.asyncio
async def test_milestone_references_are_checked(service, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    bob_task = await service.create_task(bob, {"title": "B"})

    with pytest.raises(ConstraintViolation):
        await service.create_milestone(alice, {"title": "x", "task_id": bob_task.task_id})
    with pytest.raises(ConstraintViolation):
        await service.create_milestone(alice, {"title": "x", "task_id": 999})
    with pytest.raises(ConstraintViolation):
        await service.create_milestone(999, {"title": "x"})
    with pytest.raises(InvalidArgument):
        await service.create_milestone(alice, {"title": "x", "task_id": -3})
    assert await service.get_milestones(alice) == []


@pytest.mark.asyncio
async def test_update_milestone_replaces_fields_and_keeps_owner(service, make_user):
    uid = await make_user("alice")
    task = await service.create_task(uid, {"title": "T"})
    mid = await service.create_milestone(uid, {"title": "draft", "description": "notes", "task_id": task.task_id})

    due = datetime(2026, 3, 1, 9, 0, tzinfo=timezone(timedelta(hours=-4)))
    replaced = await service.update_milestone(mid, {"title": "final", "due_date": due})
    assert replaced.title == "final"
    assert replaced.due_date == datetime(2026, 3, 1, 13, 0, tzinfo=UTC)
    assert replaced.due_date.utcoffset() == timedelta(0)
    assert replaced.description is None
    assert replaced.task_id is None
    assert replaced.user_id == uid
    assert (await service.get_milestones(uid))[0] == replaced

    with pytest.raises(NotFound):
        await service.update_milestone(mid + 1, {"title": "missing"})


@pytest.mark.asyncio
async def test_toggle_milestone_status(service, make_user):
    uid = await make_user("alice")
    mid = await service.create_milestone(uid, {"title": "m"})

    assert (await service.toggle_milestone_status(mid)).completed is True
    assert (await service.toggle_milestone_status(mid)).completed is False
    with pytest.raises(NotFound):
        await service.toggle_milestone_status(mid + 1)


@pytest.mark.asyncio
async def test_delete_milestone_does_not_cascade(service, make_user):
    uid = await make_user("alice")
    task = await service.create_task(uid, {"title": "T"}, [{"title": "a"}, {"title": "b"}])

    await service.delete_milestone(task.milestone_ids[0])
    await service.delete_milestone(task.milestone_ids[0])

    assert (await service.get_task(task.task_id)).title == "T"
    assert [m.id for m in await service.get_milestones_by_task(task.task_id)] == task.milestone_ids[1:]


@pytest.mark.asyncio
async def test_bulk_create_milestones_is_all_or_nothing(service, make_user):
    uid = await make_user("alice")
    bob = await make_user("bob")
    bob_task = await service.create_task(bob, {"title": "B"})

    ids = await service.bulk_create_milestones(uid, [{"title": "one"}, {"title": "two"}])
    assert len(ids) == 2

    with pytest.raises(ConstraintViolation):
        await service.bulk_create_milestones(uid, [{"title": "three"}, {"title": "bad", "task_id": bob_task.task_id}])
    assert [m.id for m in await service.get_milestones(uid)] == ids
