"""Local ``$ref`` resolution and effective parameter computation."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from .access import as_mapping, as_sequence

ParameterKey = Tuple[str, str]


def _decode_segment(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def resolve_ref(document: Any, ref: Any) -> Any:
    """Resolve a local JSON pointer such as ``#/components/schemas/Pet``.

    Returns ``None`` when the pointer is not local, when a segment is missing, or
    when the walk reaches a scalar before the pointer is exhausted.
    """

    if not isinstance(ref, str) or not ref.startswith("#/"):
        return None

    current = document
    for raw_segment in ref[2:].split("/"):
        segment = _decode_segment(raw_segment)
        if isinstance(current, Mapping):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, (list, tuple)):
            if not segment.isdigit() or int(segment) >= len(current):
                return None
            current = current[int(segment)]
        else:
            return None
    return current


def resolve_node(document: Any, node: Any) -> Any:
    """Follow a ``$ref`` wrapper once; plain nodes are returned unchanged."""

    if isinstance(node, Mapping) and "$ref" in node:
        return resolve_ref(document, node["$ref"])
    return node


def effective_parameters(
    document: Any,
    path_item: Any,
    operation: Any,
) -> Dict[ParameterKey, Mapping[str, Any]]:
    """Merge path-level and operation-level parameters keyed by ``(in, name)``.

    Operation-level declarations overwrite path-level ones with the same key.
    Unresolvable references and non-mapping entries are skipped.
    """

    merged: Dict[ParameterKey, Mapping[str, Any]] = {}
    for source in (as_mapping(path_item), as_mapping(operation)):
        for raw in as_sequence(source.get("parameters")):
            parameter = resolve_node(document, raw)
            if not isinstance(parameter, Mapping):
                continue
            key = (str(parameter.get("in", "")), str(parameter.get("name", "")))
            merged[key] = parameter
    return merged


def has_parameter(parameters: Mapping[ParameterKey, Any], location: str, name: str) -> bool:
    return (location, name) in parameters
