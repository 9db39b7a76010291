from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..common.pagination import Page, build_page, normalize
from ..common.validators import FieldErrors, check_int_range, check_length, check_person_name, is_uuid, require_id
from ..core.exceptions import ConflictError, FieldError, NotFoundError, ValidationError
from ..subjects.repository import SubjectRepository
from ..users.model import User
from ..users.repository import UserRepository
from .filters import normalize_filter
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


def _check_age(errors: FieldErrors, value: Any) -> Optional[int]:
    if value is None:
        return None
    return check_int_range(errors, value, "age", low=18, high=100)


def _check_class(errors: FieldErrors, value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        errors.add("class", "Class must be a string")
        return None
    check_length(errors, value, "class", min_len=1, max_len=50, label="Class")
    return value


def _check_subject_ids(errors: FieldErrors, value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        errors.add("subjectIds", "subjectIds must be a list")
        return None
    ids: List[str] = []
    for i, sid in enumerate(value):
        if errors.check(is_uuid(sid), f"subjectIds.{i}", "Invalid subject ID format"):
            ids.append(sid.lower())
    return ids


class EmployeeService:
    """Use cases: employee profiles (admin CRUD, listing, self-service name change)."""

    def __init__(self, employees: EmployeeRepository, users: UserRepository, subjects: SubjectRepository):
        self._employees = employees
        self._users = users
        self._subjects = subjects

    async def list_employees(
        self,
        *,
        employee_filter: Optional[Mapping[str, Any]] = None,
        pagination: Optional[Mapping[str, Any]] = None,
    ) -> Page[Employee]:
        flt = normalize_filter(employee_filter)
        page = normalize(pagination)
        items, total = await asyncio.gather(self._employees.list_page(flt, page), self._employees.count(flt))
        return build_page(items, total, page)

    async def list_users_without_employees(self) -> Sequence[User]:
        return await self._users.list_without_employee()

    async def _require_subjects_exist(self, subject_ids: Sequence[str]) -> None:
        if not subject_ids:
            return
        found = {s.id for s in await self._subjects.find_many_by_ids(subject_ids)}
        invalid = [sid for sid in subject_ids if sid not in found]
        if invalid:
            raise ValidationError(
                f"Invalid subject IDs: {', '.join(invalid)}",
                [FieldError("subjectIds", f"Unknown subject ID {sid}") for sid in invalid],
            )

    async def create_employee(
        self,
        *,
        user_id: Any,
        name: Any,
        age: Any = None,
        class_label: Any = None,
        subject_ids: Any = None,
    ) -> Employee:
        errors = FieldErrors()
        errors.check(is_uuid(user_id), "userId", "Invalid user ID format")
        name = check_person_name(errors, name)
        age = _check_age(errors, age)
        class_label = _check_class(errors, class_label)
        subject_ids = _check_subject_ids(errors, subject_ids) or []
        errors.raise_if_any()

        user_id = str(user_id).lower()
        if not await self._users.get_by_id(user_id):
            raise NotFoundError("User not found")
        if await self._employees.get_by_user_id(user_id):
            raise ConflictError("User already has an employee record")
        await self._require_subjects_exist(subject_ids)

        employee = await self._employees.create(
            user_id=user_id,
            name=name,
            age=age,
            class_label=class_label,
            subject_ids=subject_ids,
        )
        logger.info("created employee %s for user %s", employee.id, user_id)
        return employee

    async def update_employee(self, employee_id: Any, changes: Mapping[str, Any]) -> Employee:
        """Apply only the keys present in ``changes``.

        Keys: ``name``, ``age``, ``class_label``, ``is_active``, ``subject_ids``.
        A non-empty ``subject_ids`` replaces the employee's subject links.
        """
        employee_id = require_id(employee_id, "employee ID")

        errors = FieldErrors()
        columns: Dict[str, Any] = {}
        if "name" in changes:
            columns["name"] = check_person_name(errors, changes["name"])
        if "age" in changes:
            columns["age"] = _check_age(errors, changes["age"])
        if "class_label" in changes:
            columns["class_label"] = _check_class(errors, changes["class_label"])
        if changes.get("is_active") is not None:
            if errors.check(isinstance(changes["is_active"], bool), "isActive", "isActive must be a boolean"):
                columns["is_active"] = changes["is_active"]
        subject_ids = _check_subject_ids(errors, changes.get("subject_ids"))
        errors.raise_if_any()

        if not await self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")

        if subject_ids:
            await self._require_subjects_exist(subject_ids)

        updated = await self._employees.update(employee_id, columns, subject_ids=subject_ids or None)
        if updated is None:
            raise NotFoundError("Employee not found")
        return updated

    async def delete_employee(self, employee_id: Any) -> bool:
        employee_id = require_id(employee_id, "employee ID")
        if not await self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")
        deleted = await self._employees.delete(employee_id)
        logger.info("deleted employee %s", employee_id)
        return deleted

    async def update_my_name(self, actor: User, *, name: Any) -> Employee:
        """Rename the caller's own profile.

        When the caller has no profile yet, only an admin gets one created here;
        any other role is rejected. Product has not confirmed this asymmetry.
        """
        errors = FieldErrors()
        name = check_person_name(errors, name)
        errors.raise_if_any()

        existing = await self._employees.get_by_user_id(actor.id)
        if existing:
            updated = await self._employees.update(existing.id, {"name": name})
            if updated is None:
                raise NotFoundError("Employee profile not found")
            return updated

        if not actor.is_admin:
            raise NotFoundError("Employee profile not found. Ask an admin to create your profile.")

        logger.info("creating missing profile for admin %s", actor.id)
        return await self._employees.create(user_id=actor.id, name=name)
