from __future__ import annotations

from typing import Any

import pytest

from api_grader.document import (
    as_mapping,
    dig,
    effective_parameters,
    has_parameter,
    iter_operations,
    resolve_node,
    resolve_ref,
)


def sample_document() -> dict[str, Any]:
    return {
        "openapi": "3.0.3",
        "paths": {
            "/api/v2/users": {
                "parameters": [
                    {"in": "header", "name": "X-Organization-ID", "required": False},
                    {"$ref": "#/components/parameters/Branch"},
                ],
                "get": {
                    "parameters": [
                        {"in": "header", "name": "X-Organization-ID", "required": True},
                        {"in": "query", "name": "limit"},
                    ]
                },
                "post": {},
                "summary": "not an operation",
            }
        },
        "components": {
            "parameters": {"Branch": {"in": "header", "name": "X-Branch-ID"}},
            "schemas": {"a/b": {"type": "string"}, "t~x": {"type": "integer"}},
        },
        "tags": [{"name": "first"}, {"name": "second"}],
    }


def test_resolve_ref_walks_local_pointer() -> None:
    document = sample_document()

    assert resolve_ref(document, "#/components/parameters/Branch") == {"in": "header", "name": "X-Branch-ID"}
    assert resolve_ref(document, "#/tags/1/name") == "second"


def test_resolve_ref_decodes_escaped_segments() -> None:
    document = sample_document()

    assert resolve_ref(document, "#/components/schemas/a~1b") == {"type": "string"}
    assert resolve_ref(document, "#/components/schemas/t~0x") == {"type": "integer"}


@pytest.mark.parametrize(
    "ref",
    [
        "other.yaml#/components/schemas/Pet",
        "components/schemas/Pet",
        "",
        "#/components/missing",
        "#/tags/7",
        "#/openapi/deeper",
        None,
        42,
    ],
)
def test_resolve_ref_returns_none_when_not_found(ref: Any) -> None:
    assert resolve_ref(sample_document(), ref) is None


def test_resolve_ref_is_idempotent() -> None:
    document = sample_document()
    ref = "#/components/parameters/Branch"

    assert resolve_ref(document, ref) == resolve_ref(document, ref)


def test_resolve_node_follows_reference_once() -> None:
    document = sample_document()

    assert resolve_node(document, {"$ref": "#/components/parameters/Branch"})["name"] == "X-Branch-ID"
    assert resolve_node(document, {"type": "string"}) == {"type": "string"}


def test_operation_level_parameter_overrides_path_level() -> None:
    document = sample_document()
    path_item = document["paths"]["/api/v2/users"]

    parameters = effective_parameters(document, path_item, path_item["get"])

    assert parameters[("header", "X-Organization-ID")]["required"] is True
    assert has_parameter(parameters, "header", "X-Branch-ID")
    assert has_parameter(parameters, "query", "limit")
    assert len(parameters) == 3


def test_effective_parameters_skip_unresolvable_entries() -> None:
    document = {"paths": {}}
    path_item = {"parameters": [{"$ref": "#/components/parameters/Missing"}, "junk"]}

    assert effective_parameters(document, path_item, {"parameters": None}) == {}


def test_iter_operations_ignores_non_operation_keys() -> None:
    methods = [(entry.path, entry.method) for entry in iter_operations(sample_document())]

    assert methods == [("/api/v2/users", "get"), ("/api/v2/users", "post")]


def test_safe_navigation_treats_wrong_types_as_absent() -> None:
    assert dig({"info": "oops"}, "info", "title") is None
    assert dig({"items": [1, 2]}, "items", 5) is None
    assert as_mapping(["not", "a", "mapping"]) == {}
    assert list(iter_operations({"paths": ["bad"]})) == []
    assert list(iter_operations(None)) == []
