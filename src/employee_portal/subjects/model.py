from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Subject:
    """Named category shared by many employees; unique by name."""

    id: str
    name: str
