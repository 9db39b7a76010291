from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence, Tuple

from .model import Subject


class SubjectRepository(Protocol):
    async def get_by_id(self, subject_id: str) -> Optional[Subject]:
        raise NotImplementedError

    async def get_by_name(self, name: str) -> Optional[Subject]:
        raise NotImplementedError

    async def find_many_by_ids(self, subject_ids: Iterable[str]) -> Sequence[Subject]:
        raise NotImplementedError

    async def find_by_employee_ids(self, employee_ids: Iterable[str]) -> Sequence[Tuple[str, Subject]]:
        """``(employee_id, subject)`` pairs, ordered by subject name."""
        raise NotImplementedError

    async def list_all(self) -> Sequence[Subject]:
        raise NotImplementedError

    async def create(self, name: str) -> Subject:
        raise NotImplementedError

    async def delete(self, subject_id: str) -> bool:
        """Cascades to employee links only."""
        raise NotImplementedError
