"""Heuristic classification of a contract into one of the built-in API profiles."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterator, List, Mapping, Sequence

from ..document import HTTP_METHODS, as_mapping, as_sequence, dig, resolve_node
from ..models import DetectionReasoning, DetectionResult, DetectionSignal, ProfileScore

logger = logging.getLogger(__name__)

# Only unmatched signals heavier than this are reported as missing.
MISSING_INDICATOR_WEIGHT = 20

_STANDARD_VERBS = frozenset({"get", "post", "put", "delete", "patch"})

_TENANT_HEADERS = re.compile(r"X-Organization-ID|X-Tenant-ID|X-Company-ID", re.IGNORECASE)
_TENANT_HEADERS_STRICT = re.compile(r"X-Organization-ID|X-Tenant-ID", re.IGNORECASE)
_TRACING_HEADERS = re.compile(r"X-B3-|X-Request-ID|X-Correlation-ID", re.IGNORECASE)


def _signal(signal_type: str, weight: float, found: bool, evidence: str) -> DetectionSignal:
    return DetectionSignal(type=signal_type, weight=weight, found=found, evidence=[evidence] if found else [])


def score_signals(signals: Sequence[DetectionSignal]) -> float:
    """Earned weight over total weight, scaled to 100; 0 when nothing is weighted."""

    total = sum(signal.weight for signal in signals)
    if total <= 0:
        return 0.0
    earned = sum(signal.weight for signal in signals if signal.found)
    return earned / total * 100


def calculate_confidence(ranked: Sequence[ProfileScore]) -> float:
    """Confidence of the top candidate given how far ahead of the runner-up it is."""

    if not ranked:
        return 0.0

    top = ranked[0].score
    confidence = top / 100
    if len(ranked) >= 2:
        gap = top - ranked[1].score
        if gap > 30:
            confidence = min(0.95, confidence * 1.2)
        elif gap < 10:
            confidence = max(0.5, confidence * 0.8)
    return round(min(max(confidence, 0.0), 1.0), 2)


class ProfileDetectionEngine:
    """Score a document against the SaaS, REST, GraphQL, Microservice and gRPC archetypes."""

    def detect(self, document: Any) -> DetectionResult:
        candidates = [
            self._check_saas(document),
            self._check_rest(document),
            self._check_graphql(document),
            self._check_microservice(document),
            self._check_grpc(document),
        ]
        ranked = sorted(candidates, key=lambda candidate: candidate.score, reverse=True)
        top = ranked[0]
        confidence = calculate_confidence(ranked)

        logger.debug(
            "Detected %s profile (confidence %.2f, score %.1f)", top.profile, confidence, top.score
        )

        return DetectionResult(
            detected_profile=top.profile,
            confidence=confidence,
            reasoning=self._build_reasoning(top),
            alternatives=ranked[1:3],
        )

    # Archetypes ----------------------------------------------------------------
    def _check_saas(self, document: Any) -> ProfileScore:
        signals = [
            _signal(
                "multi-tenant-headers",
                30,
                self._has_header(document, _TENANT_HEADERS),
                "Found organization/tenant headers",
            ),
            _signal(
                "admin-endpoints",
                20,
                self._has_path(document, re.compile(r"/admin/")),
                "Found /admin/ endpoints",
            ),
            _signal(
                "rbac-scopes",
                20,
                self._has_scope(document, re.compile(r"admin:|write:|delete:")),
                "Found role-based OAuth scopes",
            ),
            _signal(
                "billing-endpoints",
                15,
                self._has_path(document, re.compile(r"billing|subscription|invoice|payment", re.IGNORECASE)),
                "Found billing/subscription endpoints",
            ),
            _signal(
                "audit-endpoints",
                15,
                self._has_path(document, re.compile(r"audit|history|changelog", re.IGNORECASE)),
                "Found audit/history endpoints",
            ),
        ]
        return ProfileScore(profile="SaaS", score=score_signals(signals), signals=signals)

    def _check_rest(self, document: Any) -> ProfileScore:
        signals = [
            _signal(
                "restful-paths",
                25,
                self._has_path(document, re.compile(r"^/api/v?\d*/")),
                "Found RESTful versioned paths",
            ),
            _signal(
                "rest-verbs",
                30,
                self._has_standard_verbs(document),
                "Uses GET, POST, PUT, DELETE",
            ),
            _signal(
                "no-multi-tenant",
                25,
                not self._has_header(document, _TENANT_HEADERS_STRICT),
                "No multi-tenant headers required",
            ),
            _signal(
                "resource-paths",
                20,
                self._has_path(document, re.compile(r"/\w+/\{\w+\}")),
                "Found resource-based paths with IDs",
            ),
        ]
        return ProfileScore(profile="REST", score=score_signals(signals), signals=signals)

    def _check_graphql(self, document: Any) -> ProfileScore:
        signals = [
            _signal(
                "graphql-endpoint",
                40,
                self._has_path(document, re.compile(r"/graphql|/gql", re.IGNORECASE)),
                "Found /graphql endpoint",
            ),
            _signal(
                "single-post-endpoint",
                30,
                self._has_single_post_endpoint(document),
                "Single POST endpoint pattern",
            ),
            _signal(
                "graphql-terms",
                20,
                self._has_description(document, re.compile(r"query|mutation|subscription|resolver", re.IGNORECASE)),
                "Found GraphQL terminology",
            ),
            _signal(
                "schema-references",
                10,
                self._has_description(document, re.compile(r"schema|type|field|argument", re.IGNORECASE)),
                "Found schema/type references",
            ),
        ]
        return ProfileScore(profile="GraphQL", score=score_signals(signals), signals=signals)

    def _check_microservice(self, document: Any) -> ProfileScore:
        signals = [
            _signal(
                "tracing-headers",
                25,
                self._has_header(document, _TRACING_HEADERS),
                "Found distributed tracing headers",
            ),
            _signal(
                "health-endpoints",
                25,
                self._has_path(document, re.compile(r"health|ready|alive|metrics", re.IGNORECASE)),
                "Found health/readiness endpoints",
            ),
            _signal(
                "service-paths",
                20,
                self._has_path(document, re.compile(r"^/[a-z-]+/")),
                "Found service-specific path prefix",
            ),
            _signal(
                "resilience-patterns",
                15,
                self._has_description(
                    document, re.compile(r"retry|circuit breaker|fallback|timeout", re.IGNORECASE)
                ),
                "Found resilience patterns",
            ),
            _signal(
                "event-patterns",
                15,
                self._has_path(document, re.compile(r"events|messages|publish|subscribe", re.IGNORECASE)),
                "Found event/messaging patterns",
            ),
        ]
        return ProfileScore(profile="Microservice", score=score_signals(signals), signals=signals)

    def _check_grpc(self, document: Any) -> ProfileScore:
        signals = [
            _signal(
                "google-api-style",
                35,
                self._has_path(document, re.compile(r":\w+$")),
                "Found Google API style :verb paths",
            ),
            _signal(
                "custom-methods",
                30,
                self._has_path(document, re.compile(r":(get|list|create|update|delete|custom)", re.IGNORECASE)),
                "Found custom method patterns",
            ),
            _signal(
                "protobuf-references",
                20,
                self._has_description(document, re.compile(r"proto|protobuf|grpc", re.IGNORECASE)),
                "Found protobuf/gRPC references",
            ),
            _signal(
                "streaming-patterns",
                15,
                self._has_description(document, re.compile(r"stream|server-sent|bidirectional", re.IGNORECASE)),
                "Found streaming patterns",
            ),
        ]
        return ProfileScore(profile="gRPC", score=score_signals(signals), signals=signals)

    # Evidence helpers ----------------------------------------------------------
    def _paths(self, document: Any) -> Mapping[str, Any]:
        return as_mapping(dig(document, "paths"))

    def _has_path(self, document: Any, pattern: re.Pattern[str]) -> bool:
        return any(pattern.search(str(path)) for path in self._paths(document))

    def _iter_parameters(self, document: Any) -> Iterator[Mapping[str, Any]]:
        for raw_item in self._paths(document).values():
            path_item = as_mapping(raw_item)
            sources = [path_item] + [as_mapping(path_item.get(method)) for method in HTTP_METHODS]
            for source in sources:
                for raw in as_sequence(source.get("parameters")):
                    parameter = resolve_node(document, raw)
                    if isinstance(parameter, Mapping):
                        yield parameter

        for parameter in as_mapping(dig(document, "components", "parameters")).values():
            if isinstance(parameter, Mapping):
                yield parameter

    def _has_header(self, document: Any, pattern: re.Pattern[str]) -> bool:
        return any(
            parameter.get("in") == "header" and pattern.search(str(parameter.get("name", "")))
            for parameter in self._iter_parameters(document)
        )

    def _has_scope(self, document: Any, pattern: re.Pattern[str]) -> bool:
        for scheme in as_mapping(dig(document, "components", "securitySchemes")).values():
            for flow in as_mapping(as_mapping(scheme).get("flows")).values():
                if any(pattern.search(str(scope)) for scope in as_mapping(as_mapping(flow).get("scopes"))):
                    return True
        return False

    def _has_standard_verbs(self, document: Any) -> bool:
        verbs = {
            str(method).lower()
            for path_item in self._paths(document).values()
            for method in as_mapping(path_item)
            if str(method).lower() in _STANDARD_VERBS
        }
        return len(verbs) >= 3

    def _has_single_post_endpoint(self, document: Any) -> bool:
        paths = self._paths(document)
        if len(paths) != 1:
            return False
        path_item = as_mapping(next(iter(paths.values())))
        methods = [str(key).lower() for key in path_item if key != "parameters"]
        return methods == ["post"]

    def _has_description(self, document: Any, pattern: re.Pattern[str]) -> bool:
        stack: List[Any] = [document]
        while stack:
            node = stack.pop()
            if isinstance(node, Mapping):
                for key, value in node.items():
                    if key == "description" and isinstance(value, str) and pattern.search(value):
                        return True
                    if isinstance(value, (Mapping, list, tuple)):
                        stack.append(value)
            elif isinstance(node, (list, tuple)):
                stack.extend(node)
        return False

    # Reasoning -----------------------------------------------------------------
    def _build_reasoning(self, candidate: ProfileScore) -> DetectionReasoning:
        return DetectionReasoning(
            matched_patterns=[
                evidence for signal in candidate.signals if signal.found for evidence in signal.evidence
            ],
            missing_indicators=[
                f"Missing: {signal.type}"
                for signal in candidate.signals
                if not signal.found and signal.weight > MISSING_INDICATOR_WEIGHT
            ],
            signal_strength={
                signal.type: signal.weight if signal.found else 0 for signal in candidate.signals
            },
        )
