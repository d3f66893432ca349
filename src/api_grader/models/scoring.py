"""Intermediate and final artifacts produced by the scoring engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .priority import Priority


@dataclass(slots=True)
class RuleResult:
    """Points earned by a single rule out of the points it could earn."""

    score: float
    max_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "max_score": self.max_score}


@dataclass(slots=True)
class ScoreTotal:
    """Running point total of a rule category, already clamped to ``max``."""

    add: float
    max: float

    def to_dict(self) -> Dict[str, Any]:
        return {"add": self.add, "max": self.max}


class AdjustmentType(str, Enum):
    PROFILE = "profile"
    BUSINESS = "business"
    MATURITY = "maturity"
    CONFIDENCE = "confidence"


@dataclass(slots=True)
class ScoreAdjustment:
    type: AdjustmentType
    factor: float
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "factor": self.factor, "reason": self.reason}


@dataclass(slots=True)
class CategoryScore:
    category: str
    weight: float
    raw_score: float
    weighted_score: float
    priority: Priority

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "weight": self.weight,
            "raw_score": self.raw_score,
            "weighted_score": self.weighted_score,
            "priority": self.priority.value,
        }


@dataclass(frozen=True, slots=True)
class BusinessContext:
    """Caller-supplied context that nudges category weights and the final score."""

    domain: Optional[str] = None
    maturity_level: Optional[str] = None
    compliance_requirements: Tuple[str, ...] = ()
    performance_critical: bool = False


@dataclass(slots=True)
class AdaptiveScore:
    """Final score with the category breakdown and every adjustment applied."""

    base_score: float
    adjusted_score: float
    confidence: float
    profile: str
    breakdown: List[CategoryScore] = field(default_factory=list)
    adjustments: List[ScoreAdjustment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_score": self.base_score,
            "adjusted_score": self.adjusted_score,
            "confidence": self.confidence,
            "profile": self.profile,
            "breakdown": [category.to_dict() for category in self.breakdown],
            "adjustments": [adjustment.to_dict() for adjustment in self.adjustments],
        }
