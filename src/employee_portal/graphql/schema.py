from __future__ import annotations

from typing import Any, Dict, List, Optional

import strawberry
from strawberry.extensions import QueryDepthLimiter
from strawberry.types import Info

from ..access.policy import Policy
from ..common.validators import require_id
from ..core.constants import DEFAULT_MAX_QUERY_DEPTH, DEFAULT_SLOW_OPERATION_MS
from ..core.exceptions import NotFoundError
from ..employees.model import Employee
from ..users.model import User
from .context import RequestContext
from .extensions import InternalErrorMasking, SlowOperationLogger
from .types import (
    AttendanceType,
    AuthPayload,
    CreateEmployeeInput,
    EmployeeFilterInput,
    EmployeePage,
    EmployeeType,
    MarkAttendanceInput,
    RoleEnum,
    SubjectType,
    UpdateEmployeeInput,
    UserType,
)


def _ids(values: Optional[List[strawberry.ID]]) -> Optional[List[str]]:
    return None if values is None else [str(v) for v in values]


async def _owned_employee(ctx: RequestContext, actor: User, raw_id: Any) -> Employee:
    """Load an employee and apply the owner-or-admin rule.

    Ownership is checked before existence so non-admins cannot probe ids.
    """
    employee_id = require_id(raw_id, "employee ID")
    employee = await ctx.loaders.employee_by_id.load(employee_id)
    ctx.gate.authorize(actor, Policy.OWNER_OR_ADMIN, owner_id=employee.user_id if employee else None)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


@strawberry.type
class Query:
    @strawberry.field
    async def me(self, info: Info[RequestContext, None]) -> UserType:
        actor = await info.context.gate.require(Policy.VERIFIED)
        return UserType.from_model(actor)

    @strawberry.field
    async def employees(
        self,
        info: Info[RequestContext, None],
        filter: Optional[EmployeeFilterInput] = None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> EmployeePage:
        ctx = info.context
        await ctx.gate.require(Policy.ADMIN)
        employee_filter = None
        if filter is not None:
            employee_filter = {
                "name": filter.name,
                "age": filter.age,
                "class_label": filter.class_label,
                "is_active": filter.is_active,
            }
        page = await ctx.container.employee_service.list_employees(
            employee_filter=employee_filter,
            pagination={"skip": skip, "take": take, "sort_by": sort_by, "sort_order": sort_order},
        )
        for employee in page.items:
            ctx.loaders.employee_by_id.prime(employee.id, employee)
        return EmployeePage(
            items=[EmployeeType.from_model(e) for e in page.items],
            total_count=page.total_count,
            has_next_page=page.has_next_page,
            has_previous_page=page.has_previous_page,
        )

    @strawberry.field
    async def subjects(self, info: Info[RequestContext, None]) -> List[SubjectType]:
        await info.context.gate.require(Policy.ADMIN)
        rows = await info.context.container.subject_service.list_subjects()
        return [SubjectType.from_model(s) for s in rows]

    @strawberry.field
    async def subject(self, info: Info[RequestContext, None], id: strawberry.ID) -> Optional[SubjectType]:
        await info.context.gate.require(Policy.ADMIN)
        subject = await info.context.loaders.subject_by_id.load(require_id(id, "subject ID"))
        return SubjectType.from_model(subject) if subject else None

    @strawberry.field
    async def users_without_employees(self, info: Info[RequestContext, None]) -> List[UserType]:
        await info.context.gate.require(Policy.ADMIN)
        users = await info.context.container.employee_service.list_users_without_employees()
        return [UserType.from_model(u) for u in users]

    @strawberry.field
    async def employee(self, info: Info[RequestContext, None], id: strawberry.ID) -> EmployeeType:
        actor = await info.context.gate.require(Policy.VERIFIED)
        employee = await _owned_employee(info.context, actor, id)
        return EmployeeType.from_model(employee)

    @strawberry.field
    async def my_profile(self, info: Info[RequestContext, None]) -> Optional[EmployeeType]:
        ctx = info.context
        actor = await ctx.gate.require(Policy.VERIFIED)
        employee = await ctx.loaders.employee_by_user_id.load(actor.id)
        return EmployeeType.from_model(employee) if employee else None

    @strawberry.field
    async def attendance_by_employee(
        self,
        info: Info[RequestContext, None],
        employee_id: strawberry.ID,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[AttendanceType]:
        ctx = info.context
        actor = await ctx.gate.require(Policy.VERIFIED)
        employee = await _owned_employee(ctx, actor, employee_id)
        rows = await ctx.container.attendance_service.attendance_for_employee(
            employee_id=employee.id,
            start_date=start_date,
            end_date=end_date,
        )
        return [AttendanceType.from_model(r) for r in rows]


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def register(
        self,
        info: Info[RequestContext, None],
        email: str,
        password: str,
        role: Optional[RoleEnum] = None,
    ) -> AuthPayload:
        result = await info.context.container.auth_service.register(email=email, password=password, role=role)
        return AuthPayload.from_result(result)

    @strawberry.mutation
    async def login(self, info: Info[RequestContext, None], email: str, password: str) -> AuthPayload:
        result = await info.context.container.auth_service.login(email=email, password=password)
        return AuthPayload.from_result(result)

    @strawberry.mutation
    async def send_otp(self, info: Info[RequestContext, None], email: str) -> AuthPayload:
        result = await info.context.container.auth_service.send_otp(email=email)
        return AuthPayload.from_result(result)

    @strawberry.mutation
    async def resend_otp(self, info: Info[RequestContext, None], email: str) -> AuthPayload:
        result = await info.context.container.auth_service.send_otp(email=email, resend=True)
        return AuthPayload.from_result(result)

    @strawberry.mutation
    async def verify_otp(self, info: Info[RequestContext, None], email: str, otp: str) -> AuthPayload:
        result = await info.context.container.auth_service.verify_otp(email=email, otp=otp)
        return AuthPayload.from_result(result)

    @strawberry.mutation
    async def create_employee(self, info: Info[RequestContext, None], input: CreateEmployeeInput) -> EmployeeType:
        ctx = info.context
        await ctx.gate.require(Policy.ADMIN)
        employee = await ctx.container.employee_service.create_employee(
            user_id=str(input.user_id),
            name=input.name,
            age=input.age,
            class_label=input.class_label,
            subject_ids=_ids(input.subject_ids),
        )
        ctx.loaders.remember_employee(employee)
        return EmployeeType.from_model(employee)

    @strawberry.mutation
    async def update_employee(
        self,
        info: Info[RequestContext, None],
        id: strawberry.ID,
        input: UpdateEmployeeInput,
    ) -> EmployeeType:
        ctx = info.context
        await ctx.gate.require(Policy.ADMIN)
        changes: Dict[str, Any] = {}
        for key in ("name", "age", "class_label", "is_active"):
            value = getattr(input, key)
            if value is not strawberry.UNSET:
                changes[key] = value
        if input.subject_ids is not strawberry.UNSET:
            changes["subject_ids"] = _ids(input.subject_ids)

        employee = await ctx.container.employee_service.update_employee(id, changes)
        ctx.loaders.remember_employee(employee)
        return EmployeeType.from_model(employee)

    @strawberry.mutation
    async def delete_employee(self, info: Info[RequestContext, None], id: strawberry.ID) -> bool:
        ctx = info.context
        await ctx.gate.require(Policy.ADMIN)
        employee_id = require_id(id, "employee ID")
        existing = await ctx.loaders.employee_by_id.load(employee_id)
        deleted = await ctx.container.employee_service.delete_employee(employee_id)
        if existing is not None:
            ctx.loaders.forget_employee(existing)
        return deleted

    @strawberry.mutation
    async def create_subject(self, info: Info[RequestContext, None], name: str) -> SubjectType:
        ctx = info.context
        await ctx.gate.require(Policy.ADMIN)
        subject = await ctx.container.subject_service.create_subject(name=name)
        ctx.loaders.subject_by_id.prime(subject.id, subject)
        return SubjectType.from_model(subject)

    @strawberry.mutation
    async def delete_subject(self, info: Info[RequestContext, None], id: strawberry.ID) -> bool:
        ctx = info.context
        await ctx.gate.require(Policy.ADMIN)
        subject_id = require_id(id, "subject ID")
        deleted = await ctx.container.subject_service.delete_subject(subject_id)
        ctx.loaders.forget_subject(subject_id)
        return deleted

    @strawberry.mutation
    async def mark_attendance(self, info: Info[RequestContext, None], input: MarkAttendanceInput) -> AttendanceType:
        ctx = info.context
        await ctx.gate.require(Policy.ADMIN)
        record = await ctx.container.attendance_service.mark_attendance(
            employee_id=str(input.employee_id),
            work_date=input.date,
            status=input.status,
        )
        ctx.loaders.forget_attendance(record.employee_id)
        return AttendanceType.from_model(record)

    @strawberry.mutation
    async def update_my_name(self, info: Info[RequestContext, None], name: str) -> EmployeeType:
        ctx = info.context
        actor = await ctx.gate.require(Policy.VERIFIED)
        employee = await ctx.container.employee_service.update_my_name(actor, name=name)
        ctx.loaders.remember_employee(employee)
        return EmployeeType.from_model(employee)


def build_schema(
    *,
    max_depth: int = DEFAULT_MAX_QUERY_DEPTH,
    slow_operation_ms: int = DEFAULT_SLOW_OPERATION_MS,
) -> strawberry.Schema:
    return strawberry.Schema(
        query=Query,
        mutation=Mutation,
        extensions=[
            QueryDepthLimiter(max_depth=max_depth),
            InternalErrorMasking(),
            SlowOperationLogger(threshold_ms=slow_operation_ms),
        ],
    )
