from __future__ import annotations

import hashlib
from datetime import timezone

from api_grader.document import (
    document_api_id,
    extract_api_id_metadata,
    generate_api_id,
    validate_api_id_format,
)


def test_explicit_api_id_wins() -> None:
    assert document_api_id({"x-api-id": "root-id", "info": {"x-api-id": "info-id"}}) == "root-id"
    assert document_api_id({"info": {"x-api-id": "info-id", "title": "X"}}) == "info-id"


def test_fallback_hashes_title_and_version() -> None:
    expected = hashlib.sha256(b"Pets@1.2.0").hexdigest()[:12]

    assert document_api_id({"info": {"title": "Pets", "version": "1.2.0"}}) == expected


def test_fallback_uses_defaults_for_missing_info() -> None:
    expected = hashlib.sha256(b"unknown@0.0.0").hexdigest()[:12]

    assert document_api_id({}) == expected
    assert document_api_id(None) == expected


def test_generated_ids_validate_and_round_trip_metadata() -> None:
    api_id = generate_api_id("acme")

    assert validate_api_id_format(api_id)
    metadata = extract_api_id_metadata(api_id)
    assert metadata is not None
    assert metadata.organization == "acme"
    assert len(metadata.random_part) == 16
    assert metadata.created_at.tzinfo is timezone.utc


def test_generated_ids_default_prefix_and_are_unique() -> None:
    first = generate_api_id()
    second = generate_api_id()

    assert first.startswith("api_")
    assert first != second


def test_malformed_ids_are_rejected() -> None:
    assert not validate_api_id_format("Acme_1700000000000_0123456789abcdef")
    assert not validate_api_id_format("acme_170000_0123456789abcdef")
    assert extract_api_id_metadata("acme-missing-separators") is None
    assert extract_api_id_metadata("acme_notdigits_abcdef") is None
