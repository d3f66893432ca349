from __future__ import annotations

from typing import Any

import pytest

from api_grader.detection import ProfileDetectionEngine, calculate_confidence, score_signals
from api_grader.models import DetectionSignal, ProfileScore


def graphql_document() -> dict[str, Any]:
    return {
        "openapi": "3.0.3",
        "info": {"title": "Gateway", "version": "1.0.0"},
        "paths": {
            "/graphql": {
                "post": {
                    "description": "Execute a query or mutation against the gateway",
                    "responses": {"200": {"description": "Result payload"}},
                }
            }
        },
    }


def rest_document() -> dict[str, Any]:
    return {
        "openapi": "3.0.3",
        "paths": {
            "/api/v1/users": {"get": {}, "post": {}},
            "/api/v1/users/{id}": {"get": {}, "put": {}, "delete": {}},
        },
    }


def saas_document() -> dict[str, Any]:
    return {
        "openapi": "3.0.3",
        "paths": {
            "/api/v2/admin/users": {
                "get": {"parameters": [{"$ref": "#/components/parameters/Organization"}]}
            },
            "/api/v2/billing/invoices": {"get": {}},
            "/api/v2/audit/events": {"get": {}},
        },
        "components": {
            "parameters": {"Organization": {"in": "header", "name": "X-Organization-ID"}},
            "securitySchemes": {
                "OAuth2": {
                    "type": "oauth2",
                    "flows": {"clientCredentials": {"scopes": {"admin:users": "Manage users"}}},
                }
            },
        },
    }


def test_graphql_document_is_detected() -> None:
    result = ProfileDetectionEngine().detect(graphql_document())

    assert result.detected_profile == "GraphQL"
    assert result.confidence == 0.95
    alternatives = [alternative.profile for alternative in result.alternatives]
    assert len(alternatives) == 2
    assert set(alternatives) <= {"REST", "SaaS", "Microservice", "gRPC"}
    assert alternatives[0] == "REST"
    assert "Found /graphql endpoint" in result.reasoning.matched_patterns
    assert "Single POST endpoint pattern" in result.reasoning.matched_patterns


def test_rest_document_is_detected() -> None:
    result = ProfileDetectionEngine().detect(rest_document())

    assert result.detected_profile == "REST"
    assert result.reasoning.missing_indicators == []
    assert result.reasoning.signal_strength == {
        "restful-paths": 25,
        "rest-verbs": 30,
        "no-multi-tenant": 25,
        "resource-paths": 20,
    }


def test_saas_document_is_detected() -> None:
    result = ProfileDetectionEngine().detect(saas_document())

    assert result.detected_profile == "SaaS"
    assert result.confidence == 0.95
    assert "Found organization/tenant headers" in result.reasoning.matched_patterns
    assert "Found role-based OAuth scopes" in result.reasoning.matched_patterns


def test_tracing_headers_in_components_count_for_microservices() -> None:
    document = {
        "paths": {"/orders/health": {"get": {}}, "/orders/events": {"post": {}}},
        "components": {"parameters": {"Trace": {"in": "header", "name": "X-Correlation-ID"}}},
    }

    result = ProfileDetectionEngine().detect(document)

    assert result.detected_profile == "Microservice"


def test_missing_indicators_only_report_heavy_signals() -> None:
    result = ProfileDetectionEngine().detect({})

    assert result.detected_profile == "REST"
    assert result.confidence == 0.25
    assert result.reasoning.matched_patterns == ["No multi-tenant headers required"]
    assert result.reasoning.missing_indicators == ["Missing: restful-paths", "Missing: rest-verbs"]


@pytest.mark.parametrize("document", [None, [], "graphql", {"paths": ["/graphql"]}, {"paths": {"/x": None}}])
def test_degenerate_documents_are_detected_without_errors(document: Any) -> None:
    result = ProfileDetectionEngine().detect(document)

    assert 0.0 <= result.confidence <= 1.0
    assert all(0 <= alternative.score <= 100 for alternative in result.alternatives)


def test_score_signals_bounds() -> None:
    signals = [
        DetectionSignal(type="a", weight=30, found=True),
        DetectionSignal(type="b", weight=70, found=False),
    ]

    assert score_signals(signals) == pytest.approx(30.0)
    assert score_signals([]) == 0.0
    assert score_signals([DetectionSignal(type="zero", weight=0, found=True)]) == 0.0
    assert score_signals([DetectionSignal(type="all", weight=5, found=True)]) == pytest.approx(100.0)


def ranked(*scores: float) -> list[ProfileScore]:
    return [ProfileScore(profile=f"P{index}", score=score) for index, score in enumerate(scores)]


@pytest.mark.parametrize(
    "scores, expected",
    [
        ((90, 25), 0.95),
        ((60, 20), 0.72),
        ((80, 60), 0.8),
        ((50, 45), 0.5),
        ((90, 85), 0.72),
        ((100,), 1.0),
        ((), 0.0),
    ],
)
def test_confidence_reflects_gap_to_runner_up(scores: tuple[float, ...], expected: float) -> None:
    assert calculate_confidence(ranked(*scores)) == pytest.approx(expected)


def test_confidence_is_monotonic_in_gap_between_ten_and_thirty() -> None:
    confidences = [calculate_confidence(ranked(80, 80 - gap)) for gap in range(11, 30)]

    assert confidences == sorted(confidences)
    assert all(0.0 <= confidence <= 1.0 for confidence in confidences)
