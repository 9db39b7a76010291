from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence, Tuple

from ..common.pagination import PageRequest
from .filters import EmployeeFilter
from .model import Employee


class EmployeeRepository(Protocol):
    async def get_by_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    async def get_by_user_id(self, user_id: str) -> Optional[Employee]:
        raise NotImplementedError

    async def find_many_by_ids(self, employee_ids: Iterable[str]) -> Sequence[Employee]:
        raise NotImplementedError

    async def find_many_by_user_ids(self, user_ids: Iterable[str]) -> Sequence[Employee]:
        raise NotImplementedError

    async def find_by_subject_ids(self, subject_ids: Iterable[str]) -> Sequence[Tuple[str, Employee]]:
        """``(subject_id, employee)`` pairs, ordered by employee name."""
        raise NotImplementedError

    async def list_page(self, flt: EmployeeFilter, page: PageRequest) -> Sequence[Employee]:
        """Profiles of verified EMPLOYEE accounts matching ``flt``."""
        raise NotImplementedError

    async def count(self, flt: EmployeeFilter) -> int:
        raise NotImplementedError

    async def create(
        self,
        *,
        user_id: str,
        name: str,
        age: Optional[int] = None,
        class_label: Optional[str] = None,
        subject_ids: Sequence[str] = (),
    ) -> Employee:
        raise NotImplementedError

    async def update(
        self,
        employee_id: str,
        changes: Mapping[str, Any],
        subject_ids: Optional[Sequence[str]] = None,
    ) -> Optional[Employee]:
        """Apply column changes (``name``, ``age``, ``class_label``, ``is_active``).

        When ``subject_ids`` is given the subject links are replaced in the
        same transaction as the column changes.
        """
        raise NotImplementedError

    async def delete(self, employee_id: str) -> bool:
        """Cascades to subject links and attendance rows."""
        raise NotImplementedError
