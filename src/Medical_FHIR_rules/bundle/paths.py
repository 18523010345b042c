"""Dotted-path navigation over decoded FHIR JSON."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any


def _is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def split_path(path: str) -> list[str]:
    """Split a dotted path, ignoring empty segments."""
    return [segment for segment in path.strip().split(".") if segment]


def iter_path_values(node: Any, path: str) -> Iterator[Any]:
    """Yield every value reachable at ``path`` below ``node``.

    Repeating fields are flattened at each step, so ``name.given`` yields each
    given name of each ``name`` entry.
    """
    current: list[Any] = [node]
    for segment in split_path(path):
        following: list[Any] = []
        for item in current:
            if not isinstance(item, Mapping) or segment not in item:
                continue
            value = item[segment]
            if _is_sequence(value):
                following.extend(value)
            else:
                following.append(value)
        current = following
        if not current:
            return
    yield from current


def is_empty_value(value: Any) -> bool:
    """Return whether a value counts as absent for presence checks."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (Mapping, list, tuple)):
        return len(value) == 0
    return False


def has_value_at(node: Any, path: str) -> bool:
    """Return whether any non-empty value exists at ``path``."""
    return any(not is_empty_value(value) for value in iter_path_values(node, path))


def values_at(node: Any, path: str) -> list[Any]:
    """Return the non-empty values at ``path`` in document order."""
    return [value for value in iter_path_values(node, path) if not is_empty_value(value)]


def occurrences_at(node: Any, path: str) -> list[Any]:
    """Return every occurrence at ``path``, empty ones included.

    Used when each occurrence of a repeating field must be addressed by its
    index, so positions must match the source array.
    """
    return list(iter_path_values(node, path))


__all__ = [
    "has_value_at",
    "is_empty_value",
    "iter_path_values",
    "occurrences_at",
    "split_path",
    "values_at",
]
