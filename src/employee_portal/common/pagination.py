"""Pagination and sorting normalization for list operations.

``normalize`` turns untrusted client arguments into a bounded ``PageRequest``;
``build_page`` computes the page-boundary flags from a total count.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, Mapping, Optional, Sequence, TypeVar

from ..core.constants import DEFAULT_SKIP, DEFAULT_SORT_BY, DEFAULT_TAKE, MAX_TAKE, SORTABLE_FIELDS
from ..core.enums import SortOrder
from .validators import FieldErrors, is_int

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    skip: int = DEFAULT_SKIP
    take: int = DEFAULT_TAKE
    sort_by: str = DEFAULT_SORT_BY
    sort_order: SortOrder = SortOrder.DESC


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    total_count: int
    has_next_page: bool
    has_previous_page: bool


def _pick(raw: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if raw.get(name) is not None:
            return raw[name]
    return None


def normalize(raw: Optional[Mapping[str, Any]] = None, *, sortable: Sequence[str] = SORTABLE_FIELDS) -> PageRequest:
    raw = raw or {}
    errors = FieldErrors()

    skip = _pick(raw, "skip")
    take = _pick(raw, "take")
    sort_by = _pick(raw, "sort_by", "sortBy")
    sort_order = _pick(raw, "sort_order", "sortOrder")

    skip = DEFAULT_SKIP if skip is None else skip
    take = DEFAULT_TAKE if take is None else take
    sort_by = DEFAULT_SORT_BY if sort_by is None else sort_by
    sort_order = SortOrder.DESC.value if sort_order is None else sort_order

    if errors.check(is_int(skip), "skip", "Skip must be a whole number"):
        errors.check(skip >= 0, "skip", "Skip must be greater than or equal to 0")
    if errors.check(is_int(take), "take", "Take must be a whole number"):
        errors.check(1 <= take <= MAX_TAKE, "take", f"Take must be between 1 and {MAX_TAKE}")
    errors.check(sort_by in sortable, "sortBy", f"Sort field must be one of: {', '.join(sortable)}")

    order_value = sort_order.value if isinstance(sort_order, SortOrder) else sort_order
    errors.check(order_value in (SortOrder.ASC.value, SortOrder.DESC.value), "sortOrder", "Sort order must be 'asc' or 'desc'")

    errors.raise_if_any()
    return PageRequest(skip=skip, take=take, sort_by=sort_by, sort_order=SortOrder(order_value))


def build_page(items: Sequence[T], total_count: int, page: PageRequest) -> Page[T]:
    return Page(
        items=list(items),
        total_count=int(total_count),
        has_next_page=page.skip + page.take < total_count,
        has_previous_page=page.skip > 0,
    )
