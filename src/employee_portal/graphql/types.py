"""GraphQL object and input types.

Nested relations resolve through ``info.context.loaders`` so sibling fields
of a list share one batch query per relation.
"""
from __future__ import annotations

import datetime
from typing import List, Optional

import strawberry
from strawberry.types import Info

from ..attendance.model import AttendanceRecord
from ..core.enums import Role
from ..employees.model import Employee
from ..subjects.model import Subject
from ..users.model import User
from ..users.service import AuthResult
from .context import RequestContext

RoleEnum = strawberry.enum(Role, name="Role")


@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    email: str
    role: RoleEnum
    otp_verified: bool
    created_at: Optional[datetime.datetime]

    @classmethod
    def from_model(cls, user: User) -> "UserType":
        return cls(
            id=strawberry.ID(user.id),
            email=user.email,
            role=user.role,
            otp_verified=user.otp_verified,
            created_at=user.created_at,
        )

    @strawberry.field
    async def employee(self, info: Info[RequestContext, None]) -> Optional[EmployeeType]:
        employee = await info.context.loaders.employee_by_user_id.load(str(self.id))
        return EmployeeType.from_model(employee) if employee else None


@strawberry.type(name="Employee")
class EmployeeType:
    id: strawberry.ID
    user_id: strawberry.ID
    name: str
    age: Optional[int]
    class_label: Optional[str] = strawberry.field(name="class")
    is_active: bool = True
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    @classmethod
    def from_model(cls, employee: Employee) -> "EmployeeType":
        return cls(
            id=strawberry.ID(employee.id),
            user_id=strawberry.ID(employee.user_id),
            name=employee.name,
            age=employee.age,
            class_label=employee.class_label,
            is_active=employee.is_active,
            created_at=employee.created_at,
            updated_at=employee.updated_at,
        )

    @strawberry.field
    async def user(self, info: Info[RequestContext, None]) -> Optional[UserType]:
        user = await info.context.loaders.user_by_id.load(str(self.user_id))
        return UserType.from_model(user) if user else None

    @strawberry.field
    async def subjects(self, info: Info[RequestContext, None]) -> List[SubjectType]:
        rows = await info.context.loaders.subjects_of_employee.load(str(self.id))
        return [SubjectType.from_model(s) for s in rows]

    @strawberry.field
    async def attendance(self, info: Info[RequestContext, None]) -> List[AttendanceType]:
        rows = await info.context.loaders.attendance_of_employee.load(str(self.id))
        return [AttendanceType.from_model(r) for r in rows]


@strawberry.type(name="Subject")
class SubjectType:
    id: strawberry.ID
    name: str

    @classmethod
    def from_model(cls, subject: Subject) -> "SubjectType":
        return cls(id=strawberry.ID(subject.id), name=subject.name)

    @strawberry.field
    async def employees(self, info: Info[RequestContext, None]) -> List[EmployeeType]:
        rows = await info.context.loaders.employees_of_subject.load(str(self.id))
        return [EmployeeType.from_model(e) for e in rows]


@strawberry.type(name="Attendance")
class AttendanceType:
    id: strawberry.ID
    employee_id: strawberry.ID
    date: datetime.date
    status: bool
    created_at: Optional[datetime.datetime] = None

    @classmethod
    def from_model(cls, record: AttendanceRecord) -> "AttendanceType":
        return cls(
            id=strawberry.ID(record.id),
            employee_id=strawberry.ID(record.employee_id),
            date=record.date,
            status=record.status,
            created_at=record.created_at,
        )

    @strawberry.field
    async def employee(self, info: Info[RequestContext, None]) -> Optional[EmployeeType]:
        employee = await info.context.loaders.employee_by_id.load(str(self.employee_id))
        return EmployeeType.from_model(employee) if employee else None


@strawberry.type
class EmployeePage:
    items: List[EmployeeType]
    total_count: int
    has_next_page: bool
    has_previous_page: bool


@strawberry.type
class AuthPayload:
    success: bool
    message: str
    email: Optional[str] = None
    requires_otp_verification: bool = strawberry.field(name="requiresOTPVerification", default=False)
    token: Optional[str] = None
    user: Optional[UserType] = None

    @classmethod
    def from_result(cls, result: AuthResult) -> "AuthPayload":
        return cls(
            success=result.success,
            message=result.message,
            email=result.email,
            requires_otp_verification=result.requires_otp_verification,
            token=result.token,
            user=UserType.from_model(result.user) if result.user else None,
        )


@strawberry.input
class EmployeeFilterInput:
    name: Optional[str] = None
    age: Optional[int] = None
    class_label: Optional[str] = strawberry.field(name="class", default=None)
    is_active: Optional[bool] = None


@strawberry.input
class CreateEmployeeInput:
    user_id: strawberry.ID
    name: str
    age: Optional[int] = None
    class_label: Optional[str] = strawberry.field(name="class", default=None)
    subject_ids: Optional[List[strawberry.ID]] = None


@strawberry.input
class UpdateEmployeeInput:
    name: Optional[str] = strawberry.UNSET
    age: Optional[int] = strawberry.UNSET
    class_label: Optional[str] = strawberry.field(name="class", default=strawberry.UNSET)
    is_active: Optional[bool] = strawberry.UNSET
    subject_ids: Optional[List[strawberry.ID]] = strawberry.UNSET


@strawberry.input
class MarkAttendanceInput:
    employee_id: strawberry.ID
    date: str
    status: bool
