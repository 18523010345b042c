"""Path-predicate expressions for filtered scopes and conditional hints.

Supported forms, evaluated relative to one resource or one field occurrence:

- ``path='value'`` and ``path!='value'``
- ``path.exists()`` and ``path.empty()``
- ``and`` / ``or`` combinations (``and`` binds tighter) with parentheses

Parsing is fail-safe: text outside this grammar parses to ``None`` so callers
can decide whether an unparseable condition is skipped or rejected.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from Medical_FHIR_rules.bundle.model import ParsedResource
from Medical_FHIR_rules.bundle.paths import has_value_at, values_at

_COMPARISON = re.compile(r"^(?P<path>[A-Za-z_][\w.]*)\s*(?P<op>!=|=)\s*'(?P<value>[^']*)'$")
_FUNCTION = re.compile(r"^(?P<path>[A-Za-z_][\w.]*)\.(?P<fn>exists|empty)\(\)$")


# ==============================================================================
# EXPRESSION TREE
# ==============================================================================


@dataclass(frozen=True, slots=True)
class Equals:
    path: str
    value: str
    negated: bool = False


@dataclass(frozen=True, slots=True)
class Exists:
    path: str


@dataclass(frozen=True, slots=True)
class Empty:
    path: str


@dataclass(frozen=True, slots=True)
class And:
    left: Predicate
    right: Predicate


@dataclass(frozen=True, slots=True)
class Or:
    left: Predicate
    right: Predicate


Predicate = Equals | Exists | Empty | And | Or


# ==============================================================================
# PARSING
# ==============================================================================


def _split_top_level(expression: str, operator: str) -> list[str]:
    """Split on ``operator`` outside parentheses and quotes, case-insensitively."""
    parts: list[str] = []
    depth = 0
    quoted = False
    start = 0
    index = 0
    needle = f" {operator} "
    lowered = expression.lower()
    while index < len(expression):
        char = expression[index]
        if char == "'":
            quoted = not quoted
        elif not quoted and char == "(":
            depth += 1
        elif not quoted and char == ")":
            depth -= 1
        elif not quoted and depth == 0 and lowered.startswith(needle, index):
            parts.append(expression[start:index].strip())
            index += len(needle)
            start = index
            continue
        index += 1
    parts.append(expression[start:].strip())
    return parts


def _strip_wrapping_parens(expression: str) -> str | None:
    if not (expression.startswith("(") and expression.endswith(")")):
        return None
    depth = 0
    for index, char in enumerate(expression):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and index != len(expression) - 1:
                return None
    return expression[1:-1].strip()


def _combine(parts: list[str], combinator: type[And] | type[Or]) -> Predicate | None:
    parsed = [parse_predicate(part) for part in parts]
    if any(item is None for item in parsed):
        return None
    result = parsed[0]
    for item in parsed[1:]:
        result = combinator(result, item)  # type: ignore[arg-type]
    return result


@lru_cache(maxsize=512)
def parse_predicate(expression: str) -> Predicate | None:
    """Parse a predicate expression, returning ``None`` when unsupported."""
    text = (expression or "").strip()
    if not text:
        return None

    or_parts = _split_top_level(text, "or")
    if len(or_parts) > 1:
        return _combine(or_parts, Or)

    and_parts = _split_top_level(text, "and")
    if len(and_parts) > 1:
        return _combine(and_parts, And)

    inner = _strip_wrapping_parens(text)
    if inner is not None:
        return parse_predicate(inner)

    if match := _COMPARISON.match(text):
        return Equals(match["path"], match["value"], negated=match["op"] == "!=")
    if match := _FUNCTION.match(text):
        return Exists(match["path"]) if match["fn"] == "exists" else Empty(match["path"])
    return None


# ==============================================================================
# EVALUATION
# ==============================================================================


def _has_value(node: Any, path: str) -> bool:
    if isinstance(node, Mapping):
        return has_value_at(node, path)
    return node.has_value_at(path)


def _values(node: Any, path: str) -> list[Any]:
    if isinstance(node, Mapping):
        return values_at(node, path)
    return list(node.values_at(path))


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def evaluate_predicate(predicate: Predicate, node: Mapping[str, Any] | ParsedResource) -> bool:
    """Evaluate a parsed predicate against a mapping node or a parsed resource."""
    match predicate:
        case Equals(path=path, value=expected, negated=negated):
            values = [_as_text(value) for value in _values(node, path)]
            if not values:
                return False
            if negated:
                return all(value != expected for value in values)
            return expected in values
        case Exists(path=path):
            return _has_value(node, path)
        case Empty(path=path):
            return not _has_value(node, path)
        case And(left=left, right=right):
            return evaluate_predicate(left, node) and evaluate_predicate(right, node)
        case Or(left=left, right=right):
            return evaluate_predicate(left, node) or evaluate_predicate(right, node)
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def matches(expression: str, node: Mapping[str, Any] | ParsedResource) -> bool | None:
    """Parse and evaluate ``expression``; ``None`` when it cannot be parsed."""
    predicate = parse_predicate(expression)
    if predicate is None:
        return None
    return evaluate_predicate(predicate, node)


__all__ = [
    "And",
    "Empty",
    "Equals",
    "Exists",
    "Or",
    "Predicate",
    "evaluate_predicate",
    "matches",
    "parse_predicate",
]
