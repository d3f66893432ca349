from __future__ import annotations

import json
from typing import Any

import pytest

from api_grader.config import StyleGuide
from api_grader.models import FindingSeverity, RuleResult
from api_grader.rules import MAX_SCORE, SCORE_CATEGORY, RuleEvaluator


def tenant_headers() -> list[dict[str, Any]]:
    return [
        {"$ref": "#/components/parameters/OrganizationId"},
        {"$ref": "#/components/parameters/BranchId"},
    ]


def keyset_params() -> list[dict[str, Any]]:
    return [{"in": "query", "name": name} for name in ("after_key", "before_key", "limit")]


def compliant_document() -> dict[str, Any]:
    rate_limit_headers = {
        name: {"schema": {"type": "integer"}}
        for name in ("X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset")
    }
    return {
        "openapi": "3.0.3",
        "info": {"title": "Users", "version": "1.0.0", "contact": {"email": "api@example.com"}},
        "paths": {
            "/api/v2/users": {
                "get": {
                    "parameters": tenant_headers() + keyset_params(),
                    "responses": {
                        "200": {
                            "description": "ok",
                            "headers": rate_limit_headers,
                            "content": {
                                "application/json": {"schema": {"$ref": "#/components/schemas/UserList"}}
                            },
                        },
                        "400": {
                            "description": "bad request",
                            "content": {"application/problem+json": {"schema": {"type": "object"}}},
                        },
                    },
                }
            }
        },
        "components": {
            "securitySchemes": {
                "OAuth2": {
                    "type": "oauth2",
                    "flows": {"clientCredentials": {"tokenUrl": "https://auth.example.com/token", "scopes": {}}},
                }
            },
            "parameters": {
                "OrganizationId": {"in": "header", "name": "X-Organization-ID", "required": True},
                "BranchId": {"in": "header", "name": "X-Branch-ID", "required": True},
            },
            "schemas": {
                "UserList": {
                    "type": "object",
                    "properties": {"success": {"type": "boolean"}, "data": {"type": "array"}},
                }
            },
        },
    }


def rule_ids(result) -> list[str]:
    return [finding.rule_id for finding in result.findings]


def test_compliant_document_has_no_findings() -> None:
    result = RuleEvaluator().evaluate(compliant_document())

    assert result.findings == []
    assert result.auto_fail_reasons == []
    assert not result.auto_failed
    assert result.scores[SCORE_CATEGORY].max == MAX_SCORE
    assert result.scores[SCORE_CATEGORY].add > 0
    checks = {rule_id: rule for rule_id, rule in result.rule_results.items() if not rule_id.startswith("BONUS-")}
    assert all(rule.score == rule.max_score for rule in checks.values())
    assert result.rule_results["BONUS-ERROR-CATALOG"] == RuleResult(score=0.0, max_score=2.0)


def test_version_mismatch_is_an_auto_fail() -> None:
    document = {"openapi": "3.0.2", "info": {"title": "X", "version": "1.0.0"}, "paths": {}}

    result = RuleEvaluator().evaluate(document)

    version_findings = [finding for finding in result.findings if finding.rule_id == "OAS-VERSION"]
    assert len(version_findings) == 1
    assert version_findings[0].severity is FindingSeverity.ERROR
    assert "OpenAPI version not 3.0.3" in result.auto_fail_reasons


def test_missing_tenant_headers_are_reported_per_operation() -> None:
    document = compliant_document()
    document["paths"] = {"/api/v2/users": {"get": {"responses": {}}}}

    result = RuleEvaluator().evaluate(document)

    ids = rule_ids(result)
    assert ids.count("SEC-ORG-HDR") == 1
    assert ids.count("SEC-BRANCH-HDR") == 1
    assert "Missing X-Organization-ID on operations" in result.auto_fail_reasons
    assert "Missing X-Branch-ID on operations" in result.auto_fail_reasons


def test_offset_pagination_is_forbidden() -> None:
    document = compliant_document()
    document["paths"] = {
        "/api/v2/users": {"get": {"parameters": [{"in": "query", "name": "offset"}], "responses": {}}}
    }

    result = RuleEvaluator().evaluate(document)

    ids = rule_ids(result)
    assert "SEC-ORG-HDR" in ids
    assert "SEC-BRANCH-HDR" in ids
    assert "PAG-FORBIDDEN" in ids
    assert "Forbidden pagination parameter: offset" in result.auto_fail_reasons


def test_path_level_headers_satisfy_tenancy() -> None:
    document = compliant_document()
    operation = document["paths"]["/api/v2/users"]["get"]
    operation["parameters"] = keyset_params()
    document["paths"]["/api/v2/users"]["parameters"] = tenant_headers()

    result = RuleEvaluator().evaluate(document)

    assert "SEC-ORG-HDR" not in rule_ids(result)
    assert "SEC-BRANCH-HDR" not in rule_ids(result)


def test_rule_results_count_each_operation() -> None:
    document = compliant_document()
    document["paths"]["/api/v2/users/{id}"] = {"delete": {"responses": {}}}

    result = RuleEvaluator().evaluate(document)

    assert result.rule_results["SEC-ORG-HDR"] == RuleResult(score=1.0, max_score=2.0)
    assert result.rule_results["OAS-VERSION"] == RuleResult(score=5.0, max_score=5.0)


def test_error_responses_need_problem_details() -> None:
    document = compliant_document()
    responses = document["paths"]["/api/v2/users"]["get"]["responses"]
    responses["404"] = {"content": {"application/json": {"schema": {"type": "object"}}}}
    responses["409"] = {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/ProblemDetail"}}}}

    result = RuleEvaluator().evaluate(document)

    problem_findings = [finding for finding in result.findings if finding.rule_id == "ERR-PROBLEMJSON"]
    assert len(problem_findings) == 1
    assert "'404'" in problem_findings[0].json_path


def test_http_status_header_requirements() -> None:
    document = compliant_document()
    responses = document["paths"]["/api/v2/users"]["get"]["responses"]
    problem = {"application/problem+json": {"schema": {"type": "object"}}}
    responses["401"] = {"content": problem}
    responses["429"] = {"content": problem}
    responses["503"] = {"content": problem, "headers": {"retry-after": {"schema": {"type": "integer"}}}}

    result = RuleEvaluator().evaluate(document)

    by_rule = {finding.rule_id: finding for finding in result.findings}
    assert by_rule["HTTP-401-AUTH"].severity is FindingSeverity.ERROR
    assert by_rule["HTTP-429-RETRY"].severity is FindingSeverity.WARN
    assert "HTTP-503-RETRY" not in by_rule


def test_unresolvable_header_reference_does_not_count() -> None:
    document = compliant_document()
    responses = document["paths"]["/api/v2/users"]["get"]["responses"]
    responses["401"] = {
        "content": {"application/problem+json": {}},
        "headers": {"WWW-Authenticate": {"$ref": "#/components/headers/Missing"}},
    }

    result = RuleEvaluator().evaluate(document)

    assert "HTTP-401-AUTH" in rule_ids(result)


def test_accepted_responses_need_location_and_retry_after() -> None:
    document = compliant_document()
    document["paths"]["/api/v2/users"]["post"] = {
        "parameters": tenant_headers(),
        "responses": {"202": {"description": "accepted"}},
    }

    result = RuleEvaluator().evaluate(document)

    by_rule = {finding.rule_id: finding for finding in result.findings}
    assert by_rule["ASYNC-202-LOCATION"].severity is FindingSeverity.ERROR
    assert by_rule["ASYNC-202-RETRY"].severity is FindingSeverity.WARN
    assert "ENV-RESPONSE" not in by_rule


@pytest.mark.parametrize(
    "path, schema, flagged",
    [
        ("/api/v2/users/{id}", {"type": "object", "properties": {"id": {"type": "string"}}}, True),
        ("/api/v2/jobs/{id}", {"type": "object", "properties": {"id": {"type": "string"}}}, False),
        ("/api/v2/exports/{id}", {"$ref": "#/components/schemas/ExportJob"}, False),
        ("/api/v2/users/{id}", {"$ref": "#/components/schemas/UserList"}, False),
    ],
)
def test_success_envelope(path: str, schema: dict[str, Any], flagged: bool) -> None:
    document = compliant_document()
    document["paths"][path] = {
        "get": {
            "parameters": tenant_headers(),
            "responses": {"200": {"content": {"application/json": {"schema": schema}}}},
        }
    }

    result = RuleEvaluator().evaluate(document)

    assert ("ENV-RESPONSE" in rule_ids(result)) is flagged


def test_list_endpoints_need_keyset_pagination() -> None:
    document = compliant_document()
    document["paths"]["/api/v2/orders"] = {"get": {"parameters": tenant_headers(), "responses": {}}}
    document["paths"]["/api/v2/orders/{id}"] = {"get": {"parameters": tenant_headers(), "responses": {}}}

    result = RuleEvaluator().evaluate(document)

    keyset_findings = [finding for finding in result.findings if finding.rule_id == "PAG-KEYSET"]
    assert [finding.json_path for finding in keyset_findings] == ["$.paths['/api/v2/orders'].get.parameters"]
    assert "Missing key-set pagination" in result.auto_fail_reasons


def test_paths_outside_prefix_fail_structure() -> None:
    document = compliant_document()
    document["paths"]["/v1/legacy"] = {}

    result = RuleEvaluator().evaluate(document)

    assert "PATH-STRUCTURE" in rule_ids(result)
    assert "Invalid path structure" in result.auto_fail_reasons


@pytest.mark.parametrize(
    "schemes, message",
    [
        ({}, "OAuth2 security scheme required"),
        ({"OAuth2": {"type": "oauth2"}}, "OAuth2 must have proper flows"),
    ],
)
def test_oauth2_scheme_is_required(schemes: dict[str, Any], message: str) -> None:
    document = compliant_document()
    document["components"]["securitySchemes"] = schemes

    result = RuleEvaluator().evaluate(document)

    messages = [finding.message for finding in result.findings if finding.rule_id == "SEC-OAUTH2"]
    assert messages == [message]
    assert result.rule_results["SEC-OAUTH2"].score == 0


def test_forbidden_technology_in_servers() -> None:
    document = compliant_document()
    document["servers"] = [{"url": "https://kafka.internal.example.com"}]

    result = RuleEvaluator().evaluate(document)

    assert "TECH-FORBIDDEN-KAFKA" in rule_ids(result)
    assert "Forbidden technology: kafka" in result.auto_fail_reasons
    assert result.rule_results["TECH-FORBIDDEN"].score == result.rule_results["TECH-FORBIDDEN"].max_score - 1


def test_descriptions_do_not_trigger_technology_findings() -> None:
    document = compliant_document()
    document["paths"]["/api/v2/users"]["get"]["description"] = "Backed by the kafka topic users"

    result = RuleEvaluator().evaluate(document)

    assert not any(rule_id.startswith("TECH-FORBIDDEN") for rule_id in rule_ids(result))


def test_missing_reusable_components_and_rate_limits_warn() -> None:
    document = compliant_document()
    del document["components"]["schemas"]
    document["paths"]["/api/v2/users"]["get"]["responses"]["200"]["headers"] = {}

    result = RuleEvaluator().evaluate(document)

    by_rule = {finding.rule_id: finding for finding in result.findings}
    assert by_rule["COMP-SCHEMAS"].severity is FindingSeverity.WARN
    assert by_rule["HTTP-RATE-LIMIT"].severity is FindingSeverity.WARN
    assert "COMP-PARAMS" not in by_rule


def test_bonuses_raise_the_comprehensive_total() -> None:
    plain = RuleEvaluator().evaluate(compliant_document())

    document = compliant_document()
    document["components"]["headers"] = {"RequestId": {"schema": {"type": "string"}}}
    document["x-platform-constraints"] = {"messaging": "pulsar"}
    responses = document["paths"]["/api/v2/users"]["get"]["responses"]
    for status in ("401", "403", "404", "409", "500"):
        responses[status] = {
            "content": {"application/problem+json": {}},
            "headers": {"WWW-Authenticate": {"schema": {"type": "string"}}},
        }
    boosted = RuleEvaluator().evaluate(document)

    assert boosted.scores[SCORE_CATEGORY].add == plain.scores[SCORE_CATEGORY].add + 4


def test_degenerate_documents_still_evaluate() -> None:
    for document in (None, [], "openapi", {"paths": "nope", "components": 5}):
        result = RuleEvaluator().evaluate(document)
        total = result.scores[SCORE_CATEGORY]
        assert 0 <= total.add <= total.max
        assert "OAS-VERSION" in rule_ids(result)


def test_style_guide_overrides_required_version() -> None:
    document = compliant_document()
    document["openapi"] = "3.1.0"

    result = RuleEvaluator(StyleGuide(required_openapi_version="3.1.0")).evaluate(document)

    assert "OAS-VERSION" not in rule_ids(result)


def test_result_is_json_serialisable() -> None:
    result = RuleEvaluator().evaluate({"openapi": "3.0.0", "paths": {"/x": {"get": {}}}})

    payload = json.loads(json.dumps(result.to_dict()))
    assert payload["metadata"]["api_id"] == result.metadata["api_id"]
    assert payload["findings"][0]["severity"] in {"error", "warn", "info"}
