"""Orchestration layer that runs detection, rule evaluation and scoring for one document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .detection import ProfileDetectionEngine
from .models import (
    AdaptiveScore,
    BusinessContext,
    DetectionResult,
    Finding,
    GradingProfile,
    PriorityContext,
    PriorityMatrix,
)
from .profiles import ProfileCatalog
from .rules import RuleEvaluator
from .scoring import AdaptiveScoringEngine, PriorityCalculator

logger = logging.getLogger(__name__)

# Detection below this confidence grades against the default profile.
PROFILE_CONFIDENCE_THRESHOLD = 0.85

GRADE_THRESHOLDS: Sequence[tuple[float, str]] = (
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (70, "C"),
    (60, "D"),
)


def letter_grade(score: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


@dataclass(slots=True)
class GradingResult:
    """Result returned by :class:`GradingService` runs."""

    score: AdaptiveScore
    grade: str
    findings: list[Finding]
    auto_fail_reasons: list[str]
    profile: GradingProfile
    detection: DetectionResult
    prerequisites: list[str] = field(default_factory=list)
    priorities: PriorityMatrix | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return not self.auto_fail_reasons

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score.to_dict(),
            "grade": self.grade,
            "passed": self.passed,
            "findings": [finding.to_dict() for finding in self.findings],
            "auto_fail_reasons": list(self.auto_fail_reasons),
            "profile": self.profile.to_dict(),
            "detection": self.detection.to_dict(),
            "prerequisites": list(self.prerequisites),
            "priorities": self.priorities.to_dict() if self.priorities is not None else None,
            "metadata": dict(self.metadata),
        }


class GradingService:
    """High level service wiring the grading components together."""

    def __init__(
        self,
        *,
        catalog: ProfileCatalog | None = None,
        evaluator: RuleEvaluator | None = None,
        detector: ProfileDetectionEngine | None = None,
        priority_calculator: PriorityCalculator | None = None,
        scorer: AdaptiveScoringEngine | None = None,
    ) -> None:
        self.catalog = catalog or ProfileCatalog()
        self._evaluator = evaluator or RuleEvaluator()
        self._detector = detector or ProfileDetectionEngine()
        self._priority_calculator = priority_calculator or PriorityCalculator()
        self._scorer = scorer or AdaptiveScoringEngine()

    # ------------------------------------------------------------------
    def grade(
        self,
        document: Any,
        *,
        profile_type: str | None = None,
        priority_context: PriorityContext | None = None,
        business_context: BusinessContext | None = None,
        apply_bonuses: bool = True,
    ) -> GradingResult:
        """Grade ``document`` and return the score, findings and chosen profile."""

        detection = self._detector.detect(document)
        profile = self.select_profile(detection, profile_type)

        evaluation = self._evaluator.evaluate(document)

        priorities = None
        if priority_context is not None:
            priorities = self._priority_calculator.calculate_priorities(profile, priority_context)

        score = self._scorer.calculate_score(
            evaluation.rule_results,
            profile,
            detection,
            business_context,
            priorities=priorities,
        )
        if apply_bonuses:
            score = self._scorer.apply_excellence_bonuses(score, document)

        metadata: dict[str, Any] = {
            **evaluation.metadata,
            "profile_id": profile.id,
            "profile_type": profile.type,
            "detected_profile": detection.detected_profile,
            "detection_confidence": detection.confidence,
            "finding_count": len(evaluation.findings),
        }

        result = GradingResult(
            score=score,
            grade=letter_grade(score.adjusted_score),
            findings=list(evaluation.findings),
            auto_fail_reasons=list(evaluation.auto_fail_reasons),
            profile=profile,
            detection=detection,
            prerequisites=self.catalog.get_profile_prerequisites(profile),
            priorities=priorities,
            metadata=metadata,
        )
        logger.debug(
            "Graded %s against %s: %.1f (%s), %d findings",
            metadata.get("api_id"),
            profile.name,
            score.adjusted_score,
            result.grade,
            len(result.findings),
        )
        return result

    # ------------------------------------------------------------------
    def select_profile(self, detection: DetectionResult, profile_type: str | None = None) -> GradingProfile:
        """Pick the grading profile for an explicit type or a detection result."""

        if profile_type:
            return self.catalog.resolve_profile(profile_type)

        if detection.confidence < PROFILE_CONFIDENCE_THRESHOLD:
            logger.debug(
                "Detection confidence %.2f below %.2f, using default profile",
                detection.confidence,
                PROFILE_CONFIDENCE_THRESHOLD,
            )
            return self.catalog.get_default_profile()

        return self.catalog.resolve_profile(detection.detected_profile)


__all__ = ["GradingResult", "GradingService", "letter_grade"]
