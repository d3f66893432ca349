from __future__ import annotations

import itertools

import pytest

from api_grader.models import (
    PRIORITY_WEIGHTS,
    GradingProfile,
    Priority,
    PriorityContext,
    ProfileRule,
    combine_priorities,
)
from api_grader.scoring import DOMAIN_PRIORITIES, PriorityCalculator, base_priority


def sample_profile() -> GradingProfile:
    return GradingProfile(
        id="sample",
        name="Sample",
        type="REST",
        rules=[
            ProfileRule(rule_id="SEC-001", weight=20),
            ProfileRule(rule_id="DOC-001", weight=10),
            ProfileRule(rule_id="PREREQ-003", weight=100),
            ProfileRule(rule_id="GRAPHQL-001", weight=5),
        ],
    )


@pytest.mark.parametrize("first, second", list(itertools.product(Priority, repeat=2)))
def test_combine_priorities_is_commutative_and_picks_the_more_severe(first: Priority, second: Priority) -> None:
    combined = combine_priorities(first, second)

    assert combined is combine_priorities(second, first)
    assert combined.rank == max(first.rank, second.rank)


def test_priority_weights_and_escalation() -> None:
    assert PRIORITY_WEIGHTS == {
        Priority.CRITICAL: 2.0,
        Priority.HIGH: 1.5,
        Priority.MEDIUM: 1.0,
        Priority.LOW: 0.5,
    }
    assert Priority.LOW.escalate() is Priority.MEDIUM
    assert Priority.CRITICAL.escalate() is Priority.CRITICAL


@pytest.mark.parametrize(
    "rule_id, expected",
    [
        ("PREREQ-003", Priority.CRITICAL),
        ("SEC-001", Priority.HIGH),
        ("AUTH-002", Priority.HIGH),
        ("FUNC-001", Priority.HIGH),
        ("PERF-001", Priority.MEDIUM),
        ("SCALE-001", Priority.MEDIUM),
        ("DOC-001", Priority.LOW),
        ("BEST-001", Priority.LOW),
        ("GRAPHQL-001", Priority.MEDIUM),
    ],
)
def test_base_priority_from_prefix(rule_id: str, expected: Priority) -> None:
    assert base_priority(rule_id) is expected


def test_general_context_priorities() -> None:
    matrix = PriorityCalculator().calculate_priorities(sample_profile(), PriorityContext())

    assert matrix.categories == dict(DOMAIN_PRIORITIES["general"])
    assert matrix.overall_multiplier == 1.0

    security = matrix.rules["SEC-001"]
    assert security.context_priority is Priority.HIGH
    assert security.weight == 1.5
    assert security.reasoning == []

    documentation = matrix.rules["DOC-001"]
    assert documentation.base_priority is Priority.LOW
    assert documentation.context_priority is Priority.MEDIUM
    assert documentation.reasoning == ["Elevated from low due to general domain requirements"]

    assert matrix.rules["PREREQ-003"].context_priority is Priority.CRITICAL
    assert matrix.rules["GRAPHQL-001"].context_priority is Priority.MEDIUM


def test_regulated_high_risk_context() -> None:
    context = PriorityContext(
        domain="finance",
        regulations=("PCI-DSS",),
        risk_level="high",
        user_base="public",
        data_classification="restricted",
    )

    matrix = PriorityCalculator().calculate_priorities(sample_profile(), context)

    categories = matrix.categories
    assert categories["monitoring"] is Priority.CRITICAL
    assert categories["access-control"] is Priority.CRITICAL
    assert categories["performance"] is Priority.CRITICAL
    assert categories["availability"] is Priority.HIGH
    assert categories["usability"] is Priority.HIGH
    assert matrix.overall_multiplier == 1.5

    security = matrix.rules["SEC-001"]
    assert security.context_priority is Priority.CRITICAL
    assert security.weight == 2.0
    assert security.reasoning == [
        "Elevated from high due to finance domain requirements",
        "Compliance requirements: PCI-DSS",
        "High risk environment requires stricter controls",
    ]


def test_regulations_force_their_categories_to_critical() -> None:
    categories = PriorityCalculator().calculate_category_priorities(
        PriorityContext(domain="education", regulations=("GDPR", "HIPAA", "UNKNOWN"))
    )

    for category in ("privacy", "consent", "data-portability", "right-to-delete", "audit", "backup"):
        assert categories[category] is Priority.CRITICAL
    assert categories["performance"] is Priority.MEDIUM


@pytest.mark.parametrize(
    "context, expected",
    [
        (PriorityContext(), 1.0),
        (PriorityContext(regulations=("SOC2",)), 1.1),
        (PriorityContext(risk_level="high"), 1.15),
        (PriorityContext(data_classification="confidential"), 1.1),
        (PriorityContext(data_classification="restricted"), 1.2),
        (PriorityContext(user_base="internal"), 0.95),
        (PriorityContext(regulations=("SOC2",), user_base="internal"), 1.1 * 0.95),
        (PriorityContext(regulations=("SOC2",), risk_level="high"), 1.1 * 1.15),
    ],
)
def test_overall_multiplier(context: PriorityContext, expected: float) -> None:
    assert PriorityCalculator().calculate_overall_multiplier(context) == pytest.approx(expected)


def test_unknown_domain_falls_back_to_general() -> None:
    categories = PriorityCalculator().calculate_category_priorities(PriorityContext(domain="aerospace"))

    assert categories == dict(DOMAIN_PRIORITIES["general"])


def test_matrix_is_serialisable() -> None:
    matrix = PriorityCalculator().calculate_priorities(sample_profile(), PriorityContext(domain="healthcare"))

    payload = matrix.to_dict()
    assert payload["categories"]["privacy"] == "critical"
    assert payload["rules"]["DOC-001"]["context_priority"] == "critical"


def test_async_profile_rules_follow_functionality_priority() -> None:
    profile = GradingProfile(
        id="micro",
        name="Micro",
        type="Microservice",
        rules=[ProfileRule(rule_id="ASYNC-001", weight=10)],
    )

    matrix = PriorityCalculator().calculate_priorities(profile, PriorityContext())

    rule = matrix.rules["ASYNC-001"]
    assert rule.base_priority is Priority.MEDIUM
    assert rule.context_priority is Priority.HIGH
    assert rule.reasoning == ["Elevated from medium due to general domain requirements"]
