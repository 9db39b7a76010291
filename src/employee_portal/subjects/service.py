from __future__ import annotations

from typing import Any, Sequence

from ..common.validators import FieldErrors, check_length, require_id
from ..core.exceptions import ConflictError, NotFoundError
from .model import Subject
from .repository import SubjectRepository


class SubjectService:
    """Use case: manage subjects (admin)."""

    def __init__(self, subjects: SubjectRepository):
        self._subjects = subjects

    async def list_subjects(self) -> Sequence[Subject]:
        return await self._subjects.list_all()

    async def create_subject(self, *, name: Any) -> Subject:
        errors = FieldErrors()
        if errors.check(isinstance(name, str), "name", "Subject name is required"):
            name = name.strip()
            check_length(errors, name, "name", min_len=2, max_len=100, label="Subject name")
        errors.raise_if_any()

        if await self._subjects.get_by_name(name):
            raise ConflictError("Subject with this name already exists")
        return await self._subjects.create(name)

    async def delete_subject(self, subject_id: Any) -> bool:
        subject_id = require_id(subject_id, "subject ID")
        if not await self._subjects.get_by_id(subject_id):
            raise NotFoundError("Subject not found")
        return await self._subjects.delete(subject_id)
