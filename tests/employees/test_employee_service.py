from __future__ import annotations

import uuid

import pytest

from employee_portal.core.enums import Role
from employee_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from employee_portal.employees.service import EmployeeService


@pytest.fixture
def service(employees_repo, users_repo, subjects_repo):
    return EmployeeService(employees_repo, users_repo, subjects_repo)


@pytest.mark.anyio
async def test_create_employee_with_subjects(service, make_user, make_subject, db):
    user = make_user()
    math = make_subject("Math")

    employee = await service.create_employee(
        user_id=user.id, name="Ann Lee", age=30, class_label="10A", subject_ids=[math.id]
    )

    assert employee.user_id == user.id
    assert employee.name == "Ann Lee"
    assert (employee.id, math.id) in db.links


@pytest.mark.anyio
async def test_second_profile_for_same_user_conflicts(service, make_user, make_employee):
    user = make_user()
    make_employee(user)

    with pytest.raises(ConflictError):
        await service.create_employee(user_id=user.id, name="Another Name")


@pytest.mark.anyio
async def test_create_for_unknown_user_is_not_found(service):
    with pytest.raises(NotFoundError):
        await service.create_employee(user_id=str(uuid.uuid4()), name="Ghost User")


@pytest.mark.anyio
async def test_unknown_subject_ids_are_listed(service, make_user):
    user = make_user()
    missing = str(uuid.uuid4())

    with pytest.raises(ValidationError) as exc:
        await service.create_employee(user_id=user.id, name="Ann Lee", subject_ids=[missing])
    assert missing in exc.value.message


@pytest.mark.anyio
async def test_create_reports_every_invalid_field(service):
    with pytest.raises(ValidationError) as exc:
        await service.create_employee(user_id="nope", name="X", age=12, class_label="")
    fields = {e["field"] for e in exc.value.extensions["validationErrors"]}
    assert fields == {"userId", "name", "age", "class"}


@pytest.mark.anyio
async def test_update_applies_only_provided_fields(service, make_user, make_employee):
    employee = make_employee(make_user(), "Ann Lee", age=30, class_label="10A")

    updated = await service.update_employee(employee.id, {"age": 31})

    assert updated.age == 31
    assert updated.name == "Ann Lee"
    assert updated.class_label == "10A"


@pytest.mark.anyio
async def test_update_replaces_subjects_only_when_list_is_non_empty(service, make_user, make_employee, make_subject, db):
    math, art = make_subject("Math"), make_subject("Art")
    employee = make_employee(make_user(), subjects=[math])

    await service.update_employee(employee.id, {"subject_ids": []})
    assert db.links == [(employee.id, math.id)]

    await service.update_employee(employee.id, {"subject_ids": [art.id]})
    assert db.links == [(employee.id, art.id)]


@pytest.mark.anyio
async def test_failed_update_keeps_subject_links(service, make_user, make_employee, make_subject, db):
    math, art = make_subject("Math"), make_subject("Art")
    employee = make_employee(make_user(), "Ann Lee", subjects=[math])
    db.fail_with["employees.update"] = RuntimeError("lock wait timeout")

    with pytest.raises(RuntimeError):
        await service.update_employee(employee.id, {"name": "Ann Smith", "subject_ids": [art.id]})

    assert db.links == [(employee.id, math.id)]
    assert db.employees[employee.id].name == "Ann Lee"


@pytest.mark.anyio
async def test_update_missing_employee(service):
    with pytest.raises(NotFoundError):
        await service.update_employee(str(uuid.uuid4()), {"name": "Ann Lee"})


@pytest.mark.anyio
async def test_delete_employee(service, make_user, make_employee, db):
    employee = make_employee(make_user())

    assert await service.delete_employee(employee.id) is True
    assert employee.id not in db.employees

    with pytest.raises(NotFoundError):
        await service.delete_employee(employee.id)


@pytest.mark.anyio
async def test_list_only_includes_verified_employee_users(service, make_user, make_employee):
    make_employee(make_user(), "Visible One")
    make_employee(make_user(verified=False), "Unverified One")
    make_employee(make_user(role=Role.ADMIN), "Admin Person")

    page = await service.list_employees()

    assert [e.name for e in page.items] == ["Visible One"]
    assert page.total_count == 1


@pytest.mark.anyio
async def test_list_filters_and_pages(service, make_user, make_employee):
    for name in ("Anna Bell", "Hanna Moe", "Bob Ray"):
        make_employee(make_user(), name, class_label="10A")

    page = await service.list_employees(
        employee_filter={"name": "ANN"},
        pagination={"take": 1, "sortBy": "name", "sortOrder": "asc"},
    )

    assert [e.name for e in page.items] == ["Anna Bell"]
    assert page.total_count == 2
    assert page.has_next_page is True
    assert page.has_previous_page is False


@pytest.mark.anyio
async def test_users_without_employees_newest_first(service, make_user, make_employee):
    older = make_user()
    newer = make_user()
    make_employee(make_user())
    make_user(verified=False)

    users = await service.list_users_without_employees()

    assert [u.id for u in users] == [newer.id, older.id]


@pytest.mark.anyio
async def test_update_my_name_renames_existing_profile(service, make_user, make_employee):
    user = make_user()
    make_employee(user, "Old Name")

    employee = await service.update_my_name(user, name="New Name")

    assert employee.name == "New Name"


@pytest.mark.anyio
async def test_update_my_name_creates_profile_for_admin_only(service, make_user, db):
    admin = make_user(role=Role.ADMIN)
    employee = await service.update_my_name(admin, name="Admin Person")
    assert employee.user_id == admin.id
    assert db.employees[employee.id].name == "Admin Person"

    regular = make_user()
    with pytest.raises(NotFoundError):
        await service.update_my_name(regular, name="Regular Person")
    assert not any(e.user_id == regular.id for e in db.employees.values())
