"""Style-guide rule evaluation over a parsed OpenAPI document."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..config import StyleGuide
from ..document import (
    OperationEntry,
    as_mapping,
    as_text,
    dig,
    document_api_id,
    effective_parameters,
    has_parameter,
    iter_operations,
    resolve_node,
    resolve_ref,
)
from ..models import Finding, FindingSeverity, RuleResult, ScoreTotal
from .technology import ForbiddenTechnologyScanner

logger = logging.getLogger(__name__)

SCORE_CATEGORY = "comprehensive"
MAX_SCORE = 100

_SEMVER = re.compile(r"^\d+\.\d+\.\d+")
_TRAILING_PARAM = re.compile(r"\{[^}]+\}$")


@dataclass(slots=True)
class EvaluationResult:
    """Findings, clamped points and auto-fail reasons of one evaluation run."""

    findings: List[Finding]
    scores: Dict[str, ScoreTotal]
    auto_fail_reasons: List[str]
    rule_results: Dict[str, RuleResult] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def auto_failed(self) -> bool:
        return bool(self.auto_fail_reasons)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "findings": [finding.to_dict() for finding in self.findings],
            "scores": {name: total.to_dict() for name, total in self.scores.items()},
            "auto_fail_reasons": list(self.auto_fail_reasons),
            "rule_results": {rule_id: result.to_dict() for rule_id, result in self.rule_results.items()},
            "metadata": dict(self.metadata),
        }


@dataclass(slots=True)
class _Run:
    findings: List[Finding] = field(default_factory=list)
    auto_fail_reasons: List[str] = field(default_factory=list)
    rule_results: Dict[str, RuleResult] = field(default_factory=dict)
    points: float = 0.0

    def report(
        self,
        rule_id: str,
        severity: FindingSeverity,
        message: str,
        json_path: str,
        category: str,
    ) -> None:
        self.findings.append(
            Finding(
                rule_id=rule_id,
                severity=severity,
                message=message,
                json_path=json_path,
                category=category,
            )
        )

    def record(self, rule_id: str, passed: bool, points: float = 1.0) -> None:
        result = self.rule_results.setdefault(rule_id, RuleResult(score=0.0, max_score=0.0))
        result.max_score += points
        if passed:
            result.score += points

    def award(self, rule_id: str, passed: bool, points: float) -> None:
        self.record(rule_id, passed, points)
        if passed:
            self.points += points

    def bonus(self, earned: bool, points: float) -> None:
        if earned:
            self.points += points


def _status_code(key: Any) -> Optional[int]:
    text = str(key).strip()
    return int(text) if text.isdigit() else None


def _operation_path(entry: OperationEntry, suffix: str) -> str:
    return f"$.paths['{entry.path}'].{entry.method}.{suffix}"


class RuleEvaluator:
    """Apply the fixed, ordered battery of style-guide checks to a document."""

    def __init__(self, style_guide: StyleGuide | None = None) -> None:
        self.style_guide = style_guide or StyleGuide()
        self._technology_scanner = ForbiddenTechnologyScanner(
            self.style_guide.forbidden_technologies,
            negation_scope=self.style_guide.negation_scope,
            negation_window=self.style_guide.negation_window,
        )

    # ------------------------------------------------------------------
    def evaluate(self, document: Any) -> EvaluationResult:
        """Run every check and return the collected outcome; never raises on bad input."""

        run = _Run()
        operations = list(iter_operations(document))

        self._check_version(document, run)
        self._check_info(document, run)
        self._check_operations(document, operations, run)
        self._check_security_schemes(document, run)
        self._check_path_structure(document, run)
        self._check_keyset_pagination(document, operations, run)
        self._check_forbidden_technology(document, run)
        self._check_components(document, run)
        self._check_rate_limiting(document, operations, run)
        self._check_bonuses(document, operations, run)

        total = min(max(run.points, 0.0), float(MAX_SCORE))
        api_id = document_api_id(document)
        logger.debug(
            "Evaluated %s: %d findings, %d auto-fail reasons, %.1f/%d points",
            api_id,
            len(run.findings),
            len(run.auto_fail_reasons),
            total,
            MAX_SCORE,
        )

        return EvaluationResult(
            findings=run.findings,
            scores={SCORE_CATEGORY: ScoreTotal(add=total, max=MAX_SCORE)},
            auto_fail_reasons=run.auto_fail_reasons,
            rule_results=run.rule_results,
            metadata={"api_id": api_id},
        )

    # Structural checks ---------------------------------------------------------
    def _check_version(self, document: Any, run: _Run) -> None:
        required = self.style_guide.required_openapi_version
        passed = dig(document, "openapi") == required
        run.award("OAS-VERSION", passed, 5)
        if not passed:
            run.report(
                "OAS-VERSION",
                FindingSeverity.ERROR,
                f"OpenAPI version must be {required}",
                "$.openapi",
                "structure",
            )
            run.auto_fail_reasons.append(f"OpenAPI version not {required}")

    def _check_info(self, document: Any, run: _Run) -> None:
        has_email = bool(as_text(dig(document, "info", "contact", "email")))
        run.award("INFO-CONTACT", has_email, 1)
        if not has_email:
            run.report(
                "INFO-CONTACT",
                FindingSeverity.WARN,
                "Missing contact email",
                "$.info.contact.email",
                "info",
            )

        version = as_text(dig(document, "info", "version"))
        semver = bool(version and _SEMVER.match(version))
        run.award("INFO-VERSION", semver, 1)
        if not semver:
            run.report(
                "INFO-VERSION",
                FindingSeverity.WARN,
                "Version should follow semantic versioning",
                "$.info.version",
                "info",
            )

    # Per-operation checks ------------------------------------------------------
    def _check_operations(self, document: Any, operations: List[OperationEntry], run: _Run) -> None:
        guide = self.style_guide
        all_org_headers = True
        all_branch_headers = True

        for entry in operations:
            parameters = effective_parameters(document, entry.path_item, entry.operation)
            parameters_path = _operation_path(entry, "parameters")

            for rule_id, header in (
                ("SEC-ORG-HDR", guide.organization_header),
                ("SEC-BRANCH-HDR", guide.branch_header),
            ):
                present = has_parameter(parameters, "header", header)
                run.record(rule_id, present)
                if present:
                    continue
                if rule_id == "SEC-ORG-HDR":
                    all_org_headers = False
                else:
                    all_branch_headers = False
                run.report(
                    rule_id,
                    FindingSeverity.ERROR,
                    f"Missing {header} header",
                    parameters_path,
                    "security",
                )

            for name in guide.forbidden_pagination_params:
                forbidden = has_parameter(parameters, "query", name)
                run.record("PAG-FORBIDDEN", not forbidden)
                if forbidden:
                    run.report(
                        "PAG-FORBIDDEN",
                        FindingSeverity.ERROR,
                        f"Forbidden pagination parameter: {name}",
                        parameters_path,
                        "pagination",
                    )
                    run.auto_fail_reasons.append(f"Forbidden pagination parameter: {name}")

            for status_key, response in as_mapping(entry.operation.get("responses")).items():
                self._check_response(document, entry, str(status_key), response, run)

        run.bonus(all_org_headers, 5)
        if not all_org_headers:
            run.auto_fail_reasons.append(f"Missing {guide.organization_header} on operations")

        run.bonus(all_branch_headers, 3)
        if not all_branch_headers:
            run.auto_fail_reasons.append(f"Missing {guide.branch_header} on operations")

    def _check_response(
        self,
        document: Any,
        entry: OperationEntry,
        status_key: str,
        response: Any,
        run: _Run,
    ) -> None:
        status = _status_code(status_key)
        if status is None:
            return

        resolved = as_mapping(resolve_node(document, response))
        response_path = _operation_path(entry, f"responses['{status_key}']")

        if 400 <= status < 600:
            self._check_error_response(document, status, resolved, response_path, run)
        elif status == 202:
            self._check_async_response(document, resolved, response_path, run)
        elif 200 <= status < 300:
            self._check_envelope(document, entry, resolved, response_path, run)

    def _check_error_response(
        self,
        document: Any,
        status: int,
        response: Mapping[str, Any],
        response_path: str,
        run: _Run,
    ) -> None:
        guide = self.style_guide
        content = as_mapping(response.get("content"))
        schema_ref = as_text(dig(content, "application/json", "schema", "$ref")) or ""
        has_problem = guide.problem_content_type in content or guide.problem_schema_marker in schema_ref
        run.record("ERR-PROBLEMJSON", has_problem)
        if not has_problem:
            run.report(
                "ERR-PROBLEMJSON",
                FindingSeverity.ERROR,
                f"Error response {status} must use {guide.problem_content_type}",
                response_path,
                "responses",
            )

        if status == 401:
            has_auth = self._has_header(document, response, "WWW-Authenticate")
            run.record("HTTP-401-AUTH", has_auth)
            if not has_auth:
                run.report(
                    "HTTP-401-AUTH",
                    FindingSeverity.ERROR,
                    "401 response must include WWW-Authenticate header",
                    f"{response_path}.headers",
                    "http",
                )

        if status in (429, 503):
            rule_id = f"HTTP-{status}-RETRY"
            has_retry = self._has_header(document, response, "Retry-After")
            run.record(rule_id, has_retry)
            if not has_retry:
                run.report(
                    rule_id,
                    FindingSeverity.WARN,
                    f"{status} response should include Retry-After header",
                    f"{response_path}.headers",
                    "http",
                )

    def _check_async_response(
        self,
        document: Any,
        response: Mapping[str, Any],
        response_path: str,
        run: _Run,
    ) -> None:
        has_location = self._has_header(document, response, "Location")
        run.record("ASYNC-202-LOCATION", has_location)
        if not has_location:
            run.report(
                "ASYNC-202-LOCATION",
                FindingSeverity.ERROR,
                "202 response must include Location header",
                f"{response_path}.headers",
                "async",
            )

        has_retry = self._has_header(document, response, "Retry-After")
        run.record("ASYNC-202-RETRY", has_retry)
        if not has_retry:
            run.report(
                "ASYNC-202-RETRY",
                FindingSeverity.WARN,
                "202 response should include Retry-After header",
                f"{response_path}.headers",
                "async",
            )

    def _check_envelope(
        self,
        document: Any,
        entry: OperationEntry,
        response: Mapping[str, Any],
        response_path: str,
        run: _Run,
    ) -> None:
        guide = self.style_guide
        schema = dig(response, "content", "application/json", "schema")
        if not isinstance(schema, Mapping):
            return

        schema_ref = as_text(schema.get("$ref")) or ""
        if guide.job_path_segment in entry.path.strip("/").split("/"):
            return
        if any(marker in schema_ref.rsplit("/", 1)[-1] for marker in guide.job_schema_markers):
            return

        target = as_mapping(resolve_ref(document, schema_ref) if schema_ref else schema)
        properties = as_mapping(target.get("properties"))
        has_envelope = "success" in properties and "data" in properties
        run.record("ENV-RESPONSE", has_envelope)
        if not has_envelope:
            run.report(
                "ENV-RESPONSE",
                FindingSeverity.ERROR,
                "2xx responses must use ResponseEnvelope",
                response_path,
                "envelope",
            )

    def _has_header(self, document: Any, response: Mapping[str, Any], name: str) -> bool:
        wanted = name.lower()
        for header_name, definition in as_mapping(response.get("headers")).items():
            if str(header_name).lower() != wanted:
                continue
            if isinstance(definition, Mapping) and "$ref" in definition:
                if resolve_ref(document, definition["$ref"]) is None:
                    continue
            return True
        return False

    # Document-wide checks ------------------------------------------------------
    def _check_security_schemes(self, document: Any, run: _Run) -> None:
        oauth = dig(document, "components", "securitySchemes", "OAuth2")
        if oauth is None:
            run.award("SEC-OAUTH2", False, 2)
            run.report(
                "SEC-OAUTH2",
                FindingSeverity.ERROR,
                "OAuth2 security scheme required",
                "$.components.securitySchemes",
                "security",
            )
            return

        oauth = as_mapping(resolve_node(document, oauth))
        proper = oauth.get("type") == "oauth2" and bool(as_mapping(oauth.get("flows")))
        run.award("SEC-OAUTH2", proper, 2)
        if not proper:
            run.report(
                "SEC-OAUTH2",
                FindingSeverity.ERROR,
                "OAuth2 must have proper flows",
                "$.components.securitySchemes.OAuth2",
                "security",
            )

    def _check_path_structure(self, document: Any, run: _Run) -> None:
        prefix = self.style_guide.path_prefix
        valid = True
        for path in as_mapping(dig(document, "paths")):
            if str(path).startswith(prefix):
                continue
            valid = False
            run.report(
                "PATH-STRUCTURE",
                FindingSeverity.ERROR,
                f"Path must start with {prefix}: {path}",
                f"$.paths['{path}']",
                "naming",
            )

        run.award("PATH-STRUCTURE", valid, 4)
        if not valid:
            run.auto_fail_reasons.append("Invalid path structure")

    def _check_keyset_pagination(
        self,
        document: Any,
        operations: List[OperationEntry],
        run: _Run,
    ) -> None:
        keyset = self.style_guide.keyset_params
        all_keyset = True
        for entry in operations:
            if entry.method != "get" or _TRAILING_PARAM.search(entry.path):
                continue
            parameters = effective_parameters(document, entry.path_item, entry.operation)
            if all(has_parameter(parameters, "query", name) for name in keyset):
                continue
            all_keyset = False
            run.report(
                "PAG-KEYSET",
                FindingSeverity.ERROR,
                f"List endpoints must have {', '.join(keyset)}",
                _operation_path(entry, "parameters"),
                "pagination",
            )

        run.award("PAG-KEYSET", all_keyset, 5)
        if not all_keyset:
            run.auto_fail_reasons.append("Missing key-set pagination")

    def _check_forbidden_technology(self, document: Any, run: _Run) -> None:
        matches = self._technology_scanner.scan(document)
        flagged = {match.name for match in matches}
        for name in self._technology_scanner.technologies:
            run.record("TECH-FORBIDDEN", name not in flagged)

        for match in matches:
            advice = f". {match.advice}" if match.advice else ""
            run.report(
                f"TECH-FORBIDDEN-{match.name.upper()}",
                FindingSeverity.ERROR,
                f"Forbidden technology: {match.name}{advice}",
                "$",
                "technology",
            )
            run.auto_fail_reasons.append(f"Forbidden technology: {match.name}")

    def _check_components(self, document: Any, run: _Run) -> None:
        for rule_id, section, message in (
            ("COMP-SCHEMAS", "schemas", "No reusable schemas defined"),
            ("COMP-PARAMS", "parameters", "No reusable parameters defined"),
        ):
            present = bool(as_mapping(dig(document, "components", section)))
            run.award(rule_id, present, 2)
            if not present:
                run.report(
                    rule_id,
                    FindingSeverity.WARN,
                    message,
                    f"$.components.{section}",
                    "components",
                )

    def _check_rate_limiting(
        self,
        document: Any,
        operations: List[OperationEntry],
        run: _Run,
    ) -> None:
        required = self.style_guide.rate_limit_headers
        found = False
        for entry in operations:
            for status_key, response in as_mapping(entry.operation.get("responses")).items():
                status = _status_code(status_key)
                if status is None or not 200 <= status < 300:
                    continue
                resolved = as_mapping(resolve_node(document, response))
                if all(self._has_header(document, resolved, header) for header in required):
                    found = True
                    break
            if found:
                break

        run.award("HTTP-RATE-LIMIT", found, 2)
        if not found:
            run.report(
                "HTTP-RATE-LIMIT",
                FindingSeverity.WARN,
                f"Missing rate limit headers ({'/'.join(required)})",
                "$.paths",
                "http",
            )

    def _check_bonuses(
        self,
        document: Any,
        operations: List[OperationEntry],
        run: _Run,
    ) -> None:
        error_codes = {
            status
            for entry in operations
            for status in map(_status_code, as_mapping(entry.operation.get("responses")))
            if status is not None and 400 <= status < 600
        }
        run.award("BONUS-ERROR-CATALOG", len(error_codes) >= self.style_guide.error_catalog_threshold, 2)
        run.award("BONUS-REUSABLE-HEADERS", bool(as_mapping(dig(document, "components", "headers"))), 1)
        documented = any(
            dig(document, extension) is not None for extension in self.style_guide.platform_extensions
        )
        run.award("BONUS-PLATFORM-DOCS", documented, 1)
