"""Safe navigation helpers for parsed OpenAPI trees.

The grader never indexes the document directly: every lookup goes through these
helpers, which treat missing, null or wrongly-typed sections as absent instead of
raising.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping, NamedTuple, Sequence

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_EMPTY: Mapping[str, Any] = {}


def as_mapping(node: Any) -> Mapping[str, Any]:
    """Return ``node`` when it is a mapping, otherwise an empty mapping."""

    if isinstance(node, Mapping):
        return node
    return _EMPTY


def as_sequence(node: Any) -> Sequence[Any]:
    """Return ``node`` when it is a list or tuple, otherwise an empty tuple."""

    if isinstance(node, (list, tuple)):
        return node
    return ()


def as_text(node: Any) -> str | None:
    return node if isinstance(node, str) else None


def dig(node: Any, *keys: str | int) -> Any:
    """Follow ``keys`` through nested mappings/sequences, returning ``None`` on any miss."""

    current = node
    for key in keys:
        if isinstance(current, Mapping):
            if key not in current:
                return None
            current = current[key]
        elif isinstance(current, (list, tuple)) and isinstance(key, int):
            if not -len(current) <= key < len(current):
                return None
            current = current[key]
        else:
            return None
    return current


class OperationEntry(NamedTuple):
    path: str
    method: str
    operation: Mapping[str, Any]
    path_item: Mapping[str, Any]


def iter_operations(document: Any) -> Iterator[OperationEntry]:
    """Yield every HTTP operation in document order."""

    for path, raw_item in as_mapping(dig(document, "paths")).items():
        path_item = as_mapping(raw_item)
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if isinstance(operation, Mapping):
                yield OperationEntry(str(path), method, operation, path_item)
