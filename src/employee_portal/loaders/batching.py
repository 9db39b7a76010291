"""Demultiplex one batch query back onto the keys that asked for it."""
from __future__ import annotations

from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def one_per_key(keys: Sequence[K], rows: Iterable[V], key_of: Callable[[V], K]) -> List[Optional[V]]:
    """Align unordered rows with ``keys``; keys without a row map to ``None``."""
    by_key: Dict[K, V] = {key_of(row): row for row in rows}
    return [by_key.get(k) for k in keys]


def many_per_key(keys: Sequence[K], pairs: Iterable[Tuple[K, V]]) -> List[List[V]]:
    """Group ``(key, value)`` pairs per key, keeping the order they arrived in.

    Keys without any pair map to an empty list, never ``None``.
    """
    groups: Dict[K, List[V]] = {k: [] for k in keys}
    for k, value in pairs:
        if k in groups:
            groups[k].append(value)
    return [groups[k] for k in keys]
