from __future__ import annotations

import asyncio
import uuid
from datetime import date

import pytest

from employee_portal.loaders.batching import many_per_key, one_per_key
from employee_portal.loaders.loader_set import create_loaders


@pytest.fixture
def loaders(users_repo, employees_repo, subjects_repo, attendance_repo):
    return create_loaders(
        users=users_repo,
        employees=employees_repo,
        subjects=subjects_repo,
        attendance=attendance_repo,
    )


def test_one_per_key_aligns_and_fills_none():
    rows = [{"id": "b"}, {"id": "a"}]
    assert one_per_key(["a", "x", "b"], rows, lambda r: r["id"]) == [{"id": "a"}, None, {"id": "b"}]


def test_many_per_key_keeps_arrival_order_and_empty_lists():
    pairs = [("a", 2), ("b", 1), ("a", 1)]
    assert many_per_key(["a", "b", "c"], pairs) == [[2, 1], [1], []]


@pytest.mark.anyio
async def test_concurrent_loads_are_one_batch(loaders, make_user, db):
    users = [make_user() for _ in range(3)]

    result = await asyncio.gather(*(loaders.user_by_id.load(u.id) for u in users))

    assert [u.id for u in result] == [u.id for u in users]
    assert db.count_calls("users.find_many_by_ids") == 1
    assert sorted(db.keys_of("users.find_many_by_ids")[0]) == sorted(u.id for u in users)


@pytest.mark.anyio
async def test_duplicate_keys_are_deduplicated(loaders, make_user, db):
    user = make_user()

    first, second = await asyncio.gather(loaders.user_by_id.load(user.id), loaders.user_by_id.load(user.id))

    assert first == second == user
    assert db.keys_of("users.find_many_by_ids") == [[user.id]]


@pytest.mark.anyio
async def test_results_are_cached_for_the_request(loaders, make_user, db):
    user = make_user()

    await loaders.user_by_id.load(user.id)
    await loaders.user_by_id.load(user.id)

    assert db.count_calls("users.find_many_by_ids") == 1


@pytest.mark.anyio
async def test_awaiting_each_load_separately_breaks_batching(loaders, make_user, db):
    a, b = make_user(), make_user()

    await loaders.user_by_id.load(a.id)
    await loaders.user_by_id.load(b.id)

    assert db.count_calls("users.find_many_by_ids") == 2


@pytest.mark.anyio
async def test_missing_scalar_key_resolves_to_none(loaders, db):
    assert await loaders.employee_by_id.load(str(uuid.uuid4())) is None


@pytest.mark.anyio
async def test_list_loader_missing_key_is_empty_list(loaders, make_user, make_employee, make_subject, db):
    math = make_subject("Math")
    with_subject = make_employee(make_user(), subjects=[math])
    without = make_employee(make_user())

    subjects_a, subjects_b = await asyncio.gather(
        loaders.subjects_of_employee.load(with_subject.id),
        loaders.subjects_of_employee.load(without.id),
    )

    assert subjects_a == [math]
    assert subjects_b == []
    assert db.count_calls("subjects.find_by_employee_ids") == 1


@pytest.mark.anyio
async def test_attendance_is_newest_first(loaders, make_user, make_employee, attendance_repo):
    employee = make_employee(make_user())
    for day in (date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 2)):
        await attendance_repo.upsert(employee_id=employee.id, work_date=day, status=True)

    rows = await loaders.attendance_of_employee.load(employee.id)

    assert [r.date for r in rows] == [date(2024, 1, 3), date(2024, 1, 2), date(2024, 1, 1)]


@pytest.mark.anyio
async def test_employees_of_subject_by_name(loaders, make_user, make_employee, make_subject):
    art = make_subject("Art")
    make_employee(make_user(), "Zed Zulu", subjects=[art])
    make_employee(make_user(), "Amy Adams", subjects=[art])

    rows = await loaders.employees_of_subject.load(art.id)

    assert [e.name for e in rows] == ["Amy Adams", "Zed Zulu"]


@pytest.mark.anyio
async def test_batch_failure_reaches_every_waiter(loaders, db):
    db.fail_with["users.find_many_by_ids"] = RuntimeError("connection lost")
    keys = [str(uuid.uuid4()) for _ in range(3)]

    results = await asyncio.gather(*(loaders.user_by_id.load(k) for k in keys), return_exceptions=True)

    assert all(isinstance(r, RuntimeError) for r in results)
    assert db.count_calls("users.find_many_by_ids") == 1


@pytest.mark.anyio
async def test_remember_employee_replaces_cached_row(loaders, make_user, make_employee, employees_repo, db):
    employee = make_employee(make_user(), "Old Name")
    await loaders.employee_by_id.load(employee.id)

    updated = await employees_repo.update(employee.id, {"name": "New Name"})
    loaders.remember_employee(updated)

    assert (await loaders.employee_by_id.load(employee.id)).name == "New Name"
    assert (await loaders.employee_by_user_id.load(employee.user_id)).name == "New Name"
    assert db.count_calls("employees.find_many_by_ids") == 1


@pytest.mark.anyio
async def test_eviction_on_a_fresh_loader_set(loaders, make_user, make_employee, make_subject, employees_repo, db):
    math = make_subject("Math")
    employee = make_employee(make_user(), "Old Name", subjects=[math])

    loaders.forget_employee(employee)
    loaders.forget_subject(math.id)
    loaders.forget_attendance(employee.id)
    updated = await employees_repo.update(employee.id, {"name": "New Name"})
    loaders.remember_employee(updated)

    assert (await loaders.employee_by_id.load(employee.id)).name == "New Name"
    assert db.count_calls("employees.find_many_by_ids") == 0


@pytest.mark.anyio
async def test_forget_attendance_reloads_rows(loaders, make_user, make_employee, attendance_repo, db):
    employee = make_employee(make_user())
    assert await loaders.attendance_of_employee.load(employee.id) == []

    await attendance_repo.upsert(employee_id=employee.id, work_date=date(2024, 5, 2), status=True)
    loaders.forget_attendance(employee.id)

    rows = await loaders.attendance_of_employee.load(employee.id)
    assert [r.date for r in rows] == [date(2024, 5, 2)]
    assert db.count_calls("attendance.find_many_by_employee_ids") == 2


@pytest.mark.anyio
async def test_separate_loader_sets_do_not_share_cache(users_repo, employees_repo, subjects_repo, attendance_repo, make_user, db):
    user = make_user()
    kwargs = dict(users=users_repo, employees=employees_repo, subjects=subjects_repo, attendance=attendance_repo)

    await create_loaders(**kwargs).user_by_id.load(user.id)
    await create_loaders(**kwargs).user_by_id.load(user.id)

    assert db.count_calls("users.find_many_by_ids") == 2
