"""Helpers for navigating and resolving parsed OpenAPI documents."""

from .access import HTTP_METHODS, OperationEntry, as_mapping, as_sequence, as_text, dig, iter_operations
from .apiid import (
    ApiIdMetadata,
    document_api_id,
    extract_api_id_metadata,
    generate_api_id,
    validate_api_id_format,
)
from .references import ParameterKey, effective_parameters, has_parameter, resolve_node, resolve_ref

__all__ = [
    "ApiIdMetadata",
    "HTTP_METHODS",
    "OperationEntry",
    "ParameterKey",
    "as_mapping",
    "as_sequence",
    "as_text",
    "dig",
    "document_api_id",
    "effective_parameters",
    "extract_api_id_metadata",
    "generate_api_id",
    "has_parameter",
    "iter_operations",
    "resolve_node",
    "resolve_ref",
]
