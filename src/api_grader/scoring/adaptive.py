"""Profile-aware weighted scoring over per-rule results."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional

from ..document import as_mapping, dig
from ..models import (
    PRIORITY_WEIGHTS,
    AdaptiveScore,
    AdjustmentType,
    BusinessContext,
    CategoryScore,
    DetectionResult,
    GradingProfile,
    Priority,
    PriorityMatrix,
    RuleCategory,
    RuleResult,
    ScoreAdjustment,
)
from ..rules import profile_rule_id, rule_category

logger = logging.getLogger(__name__)

PROFILE_WEIGHTS: Mapping[str, Mapping[str, float]] = {
    "REST": {
        "security": 0.25,
        "functionality": 0.30,
        "documentation": 0.20,
        "consistency": 0.15,
        "best_practices": 0.10,
    },
    "GraphQL": {
        "security": 0.30,
        "performance": 0.30,
        "documentation": 0.10,
        "consistency": 0.15,
        "best_practices": 0.15,
    },
    "SaaS": {
        "security": 0.35,
        "scalability": 0.25,
        "functionality": 0.20,
        "consistency": 0.10,
        "compliance": 0.10,
    },
    "Microservice": {
        "resilience": 0.30,
        "performance": 0.25,
        "observability": 0.20,
        "consistency": 0.15,
        "best_practices": 0.10,
    },
    "Custom": {
        "functionality": 0.40,
        "documentation": 0.30,
        "consistency": 0.20,
        "best_practices": 0.10,
    },
}

CATEGORY_PRIORITY: Mapping[str, Priority] = {
    "security": Priority.CRITICAL,
    "compliance": Priority.CRITICAL,
    "functionality": Priority.HIGH,
    "performance": Priority.HIGH,
    "scalability": Priority.HIGH,
    "resilience": Priority.HIGH,
    "documentation": Priority.MEDIUM,
    "consistency": Priority.MEDIUM,
    "observability": Priority.MEDIUM,
    "best_practices": Priority.LOW,
    "general": Priority.LOW,
}

# Category multipliers applied to weights for a business domain.
DOMAIN_WEIGHT_BOOSTS: Mapping[str, Mapping[str, float]] = {
    "finance": {"security": 1.5, "compliance": 1.5},
    "healthcare": {"security": 1.4, "compliance": 1.6, "documentation": 1.2},
    "ecommerce": {"performance": 1.3, "scalability": 1.3, "resilience": 1.2},
    "analytics": {"performance": 1.4, "scalability": 1.4},
}
PERFORMANCE_CRITICAL_BOOSTS: Mapping[str, float] = {"performance": 1.5, "scalability": 1.3}

DOMAIN_SCORE_FACTORS: Mapping[str, float] = {
    "finance": 1.1,
    "healthcare": 1.1,
    "ecommerce": 1.05,
    "analytics": 1.05,
}
MATURITY_SCORE_FACTORS: Mapping[str, float] = {"alpha": 0.85, "beta": 0.92, "mature": 1.05}

MULTI_AUTH_BONUS = 3
ERROR_COVERAGE_BONUS = 2

_STATUS_PREFIX = re.compile(r"^\s*(\d+)")


def normalize_weights(weights: Mapping[str, float]) -> Dict[str, float]:
    """Scale ``weights`` to sum to 1.0; a zero total is returned unchanged."""

    total = sum(weights.values())
    if total == 0:
        return dict(weights)
    return {category: weight / total for category, weight in weights.items()}


def confidence_factor(confidence: float) -> float:
    if confidence >= 0.9:
        return 1.0
    if confidence >= 0.7:
        return 0.95
    if confidence >= 0.5:
        return 0.9
    return 0.85


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, score))


class AdaptiveScoringEngine:
    """Combine rule results into a single 0-100 score weighted for the profile and context.

    Category weights start from the profile type's distribution and are adjusted
    for the profile's priority configuration, detection uncertainty and business
    context before normalisation. The base score is a priority weighted mean of
    the category scores; confidence, domain and maturity factors are then applied
    in that order and every factor is recorded as an adjustment.
    """

    def calculate_score(
        self,
        rule_results: Mapping[str, RuleResult],
        profile: GradingProfile,
        detection: DetectionResult,
        business_context: BusinessContext | None = None,
        *,
        priorities: PriorityMatrix | None = None,
    ) -> AdaptiveScore:
        weights = self._adjust_for_profile(self.profile_weights(profile.type), profile, detection.confidence)
        if business_context is not None:
            weights = self._apply_business_context(weights, business_context)
        weights = normalize_weights(weights)

        breakdown = self._category_scores(rule_results, weights, profile, priorities)
        base_score = self._base_score(breakdown)

        adjustments: List[ScoreAdjustment] = []
        adjusted = base_score

        factor = confidence_factor(detection.confidence)
        adjusted *= factor
        adjustments.append(
            ScoreAdjustment(
                type=AdjustmentType.CONFIDENCE,
                factor=factor,
                reason=f"Detection confidence: {round(detection.confidence * 100)}%",
            )
        )

        if business_context is not None:
            factor = DOMAIN_SCORE_FACTORS.get(business_context.domain or "", 1.0)
            adjusted *= factor
            adjustments.append(
                ScoreAdjustment(
                    type=AdjustmentType.BUSINESS,
                    factor=factor,
                    reason=f"Business domain: {business_context.domain or 'general'}",
                )
            )

            factor = MATURITY_SCORE_FACTORS.get(business_context.maturity_level or "", 1.0)
            adjusted *= factor
            adjustments.append(
                ScoreAdjustment(
                    type=AdjustmentType.MATURITY,
                    factor=factor,
                    reason=f"API maturity: {business_context.maturity_level or 'stable'}",
                )
            )

        score = AdaptiveScore(
            base_score=base_score,
            adjusted_score=_clamp(adjusted),
            confidence=detection.confidence,
            profile=profile.name,
            breakdown=breakdown,
            adjustments=adjustments,
        )
        logger.debug(
            "Scored %d rule results for %s: base %.2f, adjusted %.2f",
            len(rule_results),
            profile.name,
            score.base_score,
            score.adjusted_score,
        )
        return score

    def apply_excellence_bonuses(self, score: AdaptiveScore, document: Any) -> AdaptiveScore:
        """Return a copy of ``score`` with fixed point bonuses for exceptional contracts."""

        bonus = 0
        bonuses: List[ScoreAdjustment] = []

        schemes = as_mapping(dig(document, "components", "securitySchemes"))
        if schemes.get("OAuth2") and schemes.get("ApiKey"):
            bonus += MULTI_AUTH_BONUS
            bonuses.append(
                ScoreAdjustment(type=AdjustmentType.PROFILE, factor=1.03, reason="Multiple authentication methods")
            )

        if self._documents_errors_everywhere(document):
            bonus += ERROR_COVERAGE_BONUS
            bonuses.append(
                ScoreAdjustment(type=AdjustmentType.PROFILE, factor=1.02, reason="Comprehensive error handling")
            )

        if not bonuses:
            return score
        return replace(
            score,
            adjusted_score=_clamp(score.adjusted_score + bonus),
            adjustments=[*score.adjustments, *bonuses],
        )

    # Weights -------------------------------------------------------------------
    def profile_weights(self, profile_type: str) -> Dict[str, float]:
        return dict(PROFILE_WEIGHTS.get(profile_type, PROFILE_WEIGHTS["Custom"]))

    def _adjust_for_profile(
        self, weights: Dict[str, float], profile: GradingProfile, confidence: float
    ) -> Dict[str, float]:
        adjusted = dict(weights)
        for category, percentage in profile.priority_config.items():
            if category in adjusted:
                adjusted[category] *= percentage / 100

        if confidence < 0.9:
            penalty = 0.8 + confidence * 0.2
            adjusted = {category: weight * penalty for category, weight in adjusted.items()}
        return adjusted

    def _apply_business_context(self, weights: Dict[str, float], context: BusinessContext) -> Dict[str, float]:
        adjusted = dict(weights)
        _boost(adjusted, DOMAIN_WEIGHT_BOOSTS.get(context.domain or "", {}))
        if context.performance_critical:
            _boost(adjusted, PERFORMANCE_CRITICAL_BOOSTS)

        if context.maturity_level == "alpha":
            _boost(adjusted, {"documentation": 0.7, "consistency": 0.7})
        elif context.maturity_level == "mature":
            adjusted = {category: weight * 1.1 for category, weight in adjusted.items()}
        return adjusted

    # Scores --------------------------------------------------------------------
    def _category_scores(
        self,
        rule_results: Mapping[str, RuleResult],
        weights: Mapping[str, float],
        profile: GradingProfile,
        priorities: Optional[PriorityMatrix],
    ) -> List[CategoryScore]:
        totals: Dict[str, List[float]] = {}
        for rule_id, result in rule_results.items():
            profile_rule = profile.rule(rule_id) or profile.rule(profile_rule_id(rule_id))
            if profile_rule is not None and profile_rule.category is RuleCategory.DISABLED:
                continue
            rule_weight = profile_rule.weight if profile_rule is not None and profile_rule.weight else 1.0
            earned_max = totals.setdefault(rule_category(rule_id), [0.0, 0.0])
            earned_max[0] += result.score * rule_weight
            earned_max[1] += result.max_score * rule_weight

        breakdown: List[CategoryScore] = []
        for category, (earned, possible) in totals.items():
            raw_score = earned / possible * 100 if possible > 0 else 0.0
            weight = weights.get(category, 0.0)
            breakdown.append(
                CategoryScore(
                    category=category,
                    weight=weight,
                    raw_score=raw_score,
                    weighted_score=raw_score * weight,
                    priority=self.category_priority(category, priorities),
                )
            )
        return breakdown

    def category_priority(self, category: str, priorities: PriorityMatrix | None = None) -> Priority:
        if priorities is not None and category in priorities.categories:
            return priorities.categories[category]
        return CATEGORY_PRIORITY.get(category, Priority.LOW)

    def _base_score(self, breakdown: List[CategoryScore]) -> float:
        weighted = 0.0
        total = 0.0
        for category in breakdown:
            multiplier = PRIORITY_WEIGHTS[category.priority]
            weighted += category.weighted_score * multiplier
            total += category.weight * multiplier
        return weighted / total if total > 0 else 0.0

    def _documents_errors_everywhere(self, document: Any) -> bool:
        paths = as_mapping(dig(document, "paths"))
        if not paths:
            return False
        return all(_has_error_response(path_item) for path_item in paths.values())


def _boost(weights: Dict[str, float], factors: Mapping[str, float]) -> None:
    for category, factor in factors.items():
        if weights.get(category):
            weights[category] *= factor


def _has_error_response(path_item: Any) -> bool:
    for operation in as_mapping(path_item).values():
        for code in as_mapping(as_mapping(operation).get("responses")):
            match = _STATUS_PREFIX.match(str(code))
            if match and int(match.group(1)) >= 400:
                return True
    return False
