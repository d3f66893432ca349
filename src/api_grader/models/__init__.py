"""Plain data models exchanged between the grading components."""

from .detection import DetectionReasoning, DetectionResult, DetectionSignal, ProfileScore
from .finding import Finding, FindingSeverity
from .priority import (
    PRIORITY_WEIGHTS,
    Priority,
    PriorityContext,
    PriorityMatrix,
    RulePriority,
    combine_priorities,
)
from .profile import GradingProfile, ProfilePrerequisites, ProfileRule, RuleCategory
from .scoring import (
    AdaptiveScore,
    AdjustmentType,
    BusinessContext,
    CategoryScore,
    RuleResult,
    ScoreAdjustment,
    ScoreTotal,
)

__all__ = [
    "AdaptiveScore",
    "AdjustmentType",
    "BusinessContext",
    "CategoryScore",
    "DetectionReasoning",
    "DetectionResult",
    "DetectionSignal",
    "Finding",
    "FindingSeverity",
    "GradingProfile",
    "PRIORITY_WEIGHTS",
    "Priority",
    "PriorityContext",
    "PriorityMatrix",
    "ProfilePrerequisites",
    "ProfileRule",
    "ProfileScore",
    "RuleCategory",
    "RulePriority",
    "RuleResult",
    "ScoreAdjustment",
    "ScoreTotal",
    "combine_priorities",
]
