"""Request-scoped DataLoaders for the GraphQL layer.

Key Responsibilities:
    - One ``DataLoader`` per access pattern (by id, by foreign key, one-to-many)
    - Coalesce every ``load`` issued before the event loop yields into a single
      repository batch call, deduplicating keys
    - Memoize results for the lifetime of one request

Collaborators:
    - Upstream: GraphQL field resolvers and the access gate
    - Downstream: repository ``find_many_*`` batch methods

Thread Safety:
    - A ``LoaderSet`` belongs to exactly one request; never share or reuse it.
      Its cache has no eviction beyond the explicit ``forget_*`` helpers.

Failure Semantics:
    - If a batch call raises, every caller waiting on that batch receives the
      same exception. Nothing is retried.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from strawberry.dataloader import DataLoader

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..subjects.model import Subject
from ..subjects.repository import SubjectRepository
from ..users.model import User
from ..users.repository import UserRepository
from .batching import many_per_key, one_per_key

logger = logging.getLogger(__name__)


class LoaderSet:
    """Collection of loaders shared via the GraphQL context.

    Attributes:
        user_by_id: User id -> ``User`` or ``None``.
        employee_by_id: Employee id -> ``Employee`` or ``None``.
        employee_by_user_id: User id -> ``Employee`` or ``None``.
        subject_by_id: Subject id -> ``Subject`` or ``None``.
        subjects_of_employee: Employee id -> subjects ordered by name.
        employees_of_subject: Subject id -> employees ordered by name.
        attendance_of_employee: Employee id -> attendance, newest date first.
    """

    def __init__(
        self,
        *,
        users: UserRepository,
        employees: EmployeeRepository,
        subjects: SubjectRepository,
        attendance: AttendanceRepository,
    ) -> None:
        self._users = users
        self._employees = employees
        self._subjects = subjects
        self._attendance = attendance

        self.user_by_id: DataLoader[str, Optional[User]] = DataLoader(self._load_users)
        self.employee_by_id: DataLoader[str, Optional[Employee]] = DataLoader(self._load_employees)
        self.employee_by_user_id: DataLoader[str, Optional[Employee]] = DataLoader(self._load_employees_by_user)
        self.subject_by_id: DataLoader[str, Optional[Subject]] = DataLoader(self._load_subjects)
        self.subjects_of_employee: DataLoader[str, List[Subject]] = DataLoader(self._load_subjects_of_employees)
        self.employees_of_subject: DataLoader[str, List[Employee]] = DataLoader(self._load_employees_of_subjects)
        self.attendance_of_employee: DataLoader[str, List[AttendanceRecord]] = DataLoader(self._load_attendance)

    # ------------------------------------------------------------------
    # batch functions
    # ------------------------------------------------------------------

    async def _load_users(self, user_ids: List[str]) -> List[Optional[User]]:
        logger.debug("user_by_id batch: %d keys", len(user_ids))
        rows = await self._users.find_many_by_ids(user_ids)
        return one_per_key(user_ids, rows, lambda u: u.id)

    async def _load_employees(self, employee_ids: List[str]) -> List[Optional[Employee]]:
        logger.debug("employee_by_id batch: %d keys", len(employee_ids))
        rows = await self._employees.find_many_by_ids(employee_ids)
        return one_per_key(employee_ids, rows, lambda e: e.id)

    async def _load_employees_by_user(self, user_ids: List[str]) -> List[Optional[Employee]]:
        logger.debug("employee_by_user_id batch: %d keys", len(user_ids))
        rows = await self._employees.find_many_by_user_ids(user_ids)
        return one_per_key(user_ids, rows, lambda e: e.user_id)

    async def _load_subjects(self, subject_ids: List[str]) -> List[Optional[Subject]]:
        logger.debug("subject_by_id batch: %d keys", len(subject_ids))
        rows = await self._subjects.find_many_by_ids(subject_ids)
        return one_per_key(subject_ids, rows, lambda s: s.id)

    async def _load_subjects_of_employees(self, employee_ids: List[str]) -> List[List[Subject]]:
        logger.debug("subjects_of_employee batch: %d keys", len(employee_ids))
        pairs = await self._subjects.find_by_employee_ids(employee_ids)
        return many_per_key(employee_ids, pairs)

    async def _load_employees_of_subjects(self, subject_ids: List[str]) -> List[List[Employee]]:
        logger.debug("employees_of_subject batch: %d keys", len(subject_ids))
        pairs = await self._employees.find_by_subject_ids(subject_ids)
        return many_per_key(subject_ids, pairs)

    async def _load_attendance(self, employee_ids: List[str]) -> List[List[AttendanceRecord]]:
        logger.debug("attendance_of_employee batch: %d keys", len(employee_ids))
        rows = await self._attendance.find_many_by_employee_ids(employee_ids)
        return many_per_key(employee_ids, ((r.employee_id, r) for r in rows))

    # ------------------------------------------------------------------
    # cache maintenance after writes within the same request
    # ------------------------------------------------------------------

    def forget_employee(self, employee: Employee) -> None:
        _evict(self.employee_by_id, employee.id)
        _evict(self.employee_by_user_id, employee.user_id)
        _evict(self.subjects_of_employee, employee.id)
        _evict(self.attendance_of_employee, employee.id)
        # subject -> employees lists may embed the old row
        self.employees_of_subject.clear_all()

    def remember_employee(self, employee: Employee) -> None:
        self.forget_employee(employee)
        self.employee_by_id.prime(employee.id, employee, force=True)
        self.employee_by_user_id.prime(employee.user_id, employee, force=True)

    def forget_subject(self, subject_id: str) -> None:
        _evict(self.subject_by_id, subject_id)
        _evict(self.employees_of_subject, subject_id)
        self.subjects_of_employee.clear_all()

    def forget_attendance(self, employee_id: str) -> None:
        _evict(self.attendance_of_employee, employee_id)


def _evict(loader: DataLoader, key: str) -> None:
    # DataLoader.clear raises KeyError for keys that were never loaded
    if loader.cache_map.get(key) is not None:
        loader.clear(key)


def create_loaders(
    *,
    users: UserRepository,
    employees: EmployeeRepository,
    subjects: SubjectRepository,
    attendance: AttendanceRepository,
) -> LoaderSet:
    """Factory for a fresh, request-scoped ``LoaderSet``."""
    return LoaderSet(users=users, employees=employees, subjects=subjects, attendance=attendance)
