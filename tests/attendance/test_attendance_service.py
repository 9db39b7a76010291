from __future__ import annotations

import uuid
from datetime import date

import pytest

from employee_portal.attendance.service import AttendanceService
from employee_portal.core.exceptions import NotFoundError, ValidationError

TODAY = date(2024, 6, 15)


@pytest.fixture
def service(attendance_repo, employees_repo):
    return AttendanceService(attendance_repo, employees_repo, clock=lambda: TODAY)


@pytest.mark.anyio
async def test_marking_twice_keeps_one_row_with_latest_status(service, make_user, make_employee, db):
    employee = make_employee(make_user())

    first = await service.mark_attendance(employee_id=employee.id, work_date="2024-06-14", status=True)
    second = await service.mark_attendance(employee_id=employee.id, work_date="2024-06-14", status=False)

    assert first.id == second.id
    assert len(db.attendance) == 1
    assert db.attendance[(employee.id, date(2024, 6, 14))].status is False


@pytest.mark.anyio
async def test_today_is_allowed_future_is_not(service, make_user, make_employee):
    employee = make_employee(make_user())

    record = await service.mark_attendance(employee_id=employee.id, work_date="2024-06-15T23:00:00", status=True)
    assert record.date == TODAY

    with pytest.raises(ValidationError) as exc:
        await service.mark_attendance(employee_id=employee.id, work_date="2024-06-16", status=True)
    assert "future" in exc.value.message


@pytest.mark.anyio
async def test_input_errors_are_reported_together(service):
    with pytest.raises(ValidationError) as exc:
        await service.mark_attendance(employee_id="bad", work_date="yesterday", status="yes")
    fields = {e["field"] for e in exc.value.extensions["validationErrors"]}
    assert fields == {"employeeId", "date", "status"}


@pytest.mark.anyio
async def test_unknown_employee(service):
    with pytest.raises(NotFoundError):
        await service.mark_attendance(employee_id=str(uuid.uuid4()), work_date="2024-06-01", status=True)


@pytest.mark.anyio
async def test_range_query(service, make_user, make_employee):
    employee = make_employee(make_user())
    for day in ("2024-06-01", "2024-06-05", "2024-06-10"):
        await service.mark_attendance(employee_id=employee.id, work_date=day, status=True)

    rows = await service.attendance_for_employee(employee_id=employee.id, start_date="2024-06-02", end_date="2024-06-10")
    assert [r.date for r in rows] == [date(2024, 6, 10), date(2024, 6, 5)]

    everything = await service.attendance_for_employee(employee_id=employee.id)
    assert len(everything) == 3


@pytest.mark.anyio
async def test_bad_range_dates(service, make_user, make_employee):
    employee = make_employee(make_user())
    with pytest.raises(ValidationError):
        await service.attendance_for_employee(employee_id=employee.id, start_date="June 1st")
