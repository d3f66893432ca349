"""Derive category and rule priorities from business context."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Tuple

from ..models import GradingProfile, Priority, PriorityContext, PriorityMatrix, RulePriority, combine_priorities
from ..rules import rule_category

C, H, M, L = Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW

DOMAIN_PRIORITIES: Mapping[str, Mapping[str, Priority]] = {
    "finance": {
        "security": C,
        "compliance": C,
        "audit": C,
        "encryption": C,
        "authentication": C,
        "performance": H,
        "documentation": H,
        "consistency": M,
    },
    "healthcare": {
        "security": C,
        "compliance": C,
        "privacy": C,
        "audit": C,
        "documentation": C,
        "consistency": H,
        "performance": M,
    },
    "government": {
        "security": C,
        "compliance": C,
        "accessibility": C,
        "audit": C,
        "documentation": H,
        "transparency": H,
        "performance": M,
    },
    "ecommerce": {
        "performance": C,
        "security": C,
        "availability": C,
        "scalability": H,
        "functionality": H,
        "documentation": M,
        "consistency": M,
    },
    "education": {
        "accessibility": C,
        "documentation": H,
        "functionality": H,
        "security": H,
        "performance": M,
        "scalability": M,
        "consistency": M,
    },
    "general": {
        "security": H,
        "functionality": H,
        "documentation": M,
        "performance": M,
        "consistency": M,
        "best_practices": L,
    },
}

REGULATION_REQUIREMENTS: Mapping[str, Tuple[str, ...]] = {
    "PCI-DSS": ("encryption", "authentication", "audit", "access-control", "monitoring"),
    "HIPAA": ("privacy", "encryption", "audit", "access-control", "backup"),
    "GDPR": ("privacy", "consent", "data-portability", "right-to-delete", "audit"),
    "SOC2": ("security", "availability", "processing-integrity", "confidentiality", "privacy"),
    "FISMA": ("security", "access-control", "audit", "incident-response", "continuity"),
    "FedRAMP": ("security", "continuous-monitoring", "incident-response", "vulnerability-management"),
}

# Rule id prefix -> base priority, first match wins.
BASE_PRIORITY_PREFIXES: Tuple[Tuple[str, Priority], ...] = (
    ("PREREQ", C),
    ("SEC", H),
    ("AUTH", H),
    ("FUNC", H),
    ("PERF", M),
    ("SCALE", M),
    ("DOC", L),
    ("BEST", L),
)

MAX_OVERALL_MULTIPLIER = 1.5


def base_priority(rule_id: str) -> Priority:
    for prefix, priority in BASE_PRIORITY_PREFIXES:
        if rule_id.startswith(prefix):
            return priority
    return M


class PriorityCalculator:
    """Build a :class:`PriorityMatrix` for a profile under a business context."""

    def calculate_priorities(self, profile: GradingProfile, context: PriorityContext) -> PriorityMatrix:
        categories = self.calculate_category_priorities(context)
        return PriorityMatrix(
            categories=categories,
            rules=self._calculate_rule_priorities(profile, context, categories),
            overall_multiplier=self.calculate_overall_multiplier(context),
        )

    # ------------------------------------------------------------------
    def calculate_category_priorities(self, context: PriorityContext) -> Dict[str, Priority]:
        domain = DOMAIN_PRIORITIES.get(context.domain, DOMAIN_PRIORITIES["general"])
        priorities: Dict[str, Priority] = dict(domain)

        for regulation in context.regulations:
            for category in REGULATION_REQUIREMENTS.get(regulation, ()):
                priorities[category] = C

        if context.risk_level == "high":
            _escalate(priorities, ("security", "audit", "monitoring"))

        if context.data_classification in ("restricted", "confidential"):
            _escalate(priorities, ("security", "encryption", "access-control"))

        if context.user_base in ("public", "b2c"):
            _escalate(priorities, ("performance", "availability", "usability"))

        return priorities

    def _calculate_rule_priorities(
        self,
        profile: GradingProfile,
        context: PriorityContext,
        categories: Mapping[str, Priority],
    ) -> Dict[str, RulePriority]:
        rules: Dict[str, RulePriority] = {}
        for rule in profile.rules:
            base = base_priority(rule.rule_id)
            contextual = combine_priorities(base, categories.get(rule_category(rule.rule_id), M))

            reasoning: List[str] = []
            if contextual is not base:
                reasoning.append(f"Elevated from {base.value} due to {context.domain} domain requirements")
            if context.regulations:
                reasoning.append(f"Compliance requirements: {', '.join(context.regulations)}")
            if context.risk_level == "high":
                reasoning.append("High risk environment requires stricter controls")

            rules[rule.rule_id] = RulePriority(
                rule_id=rule.rule_id,
                base_priority=base,
                context_priority=contextual,
                weight=contextual.weight,
                reasoning=reasoning,
            )
        return rules

    def calculate_overall_multiplier(self, context: PriorityContext) -> float:
        multiplier = 1.0
        if context.regulations:
            multiplier *= 1.1
        if context.risk_level == "high":
            multiplier *= 1.15
        if context.data_classification == "restricted":
            multiplier *= 1.2
        elif context.data_classification == "confidential":
            multiplier *= 1.1
        if context.user_base == "internal":
            multiplier *= 0.95
        return min(MAX_OVERALL_MULTIPLIER, multiplier)


def _escalate(priorities: Dict[str, Priority], categories: Iterable[str]) -> None:
    for category in categories:
        current = priorities.get(category)
        priorities[category] = current.escalate() if current is not None else H
