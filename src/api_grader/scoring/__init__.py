"""Priority derivation and adaptive scoring."""

from .adaptive import (
    CATEGORY_PRIORITY,
    PROFILE_WEIGHTS,
    AdaptiveScoringEngine,
    confidence_factor,
    normalize_weights,
)
from .priority import DOMAIN_PRIORITIES, REGULATION_REQUIREMENTS, PriorityCalculator, base_priority

__all__ = [
    "AdaptiveScoringEngine",
    "CATEGORY_PRIORITY",
    "DOMAIN_PRIORITIES",
    "PROFILE_WEIGHTS",
    "PriorityCalculator",
    "REGULATION_REQUIREMENTS",
    "base_priority",
    "confidence_factor",
    "normalize_weights",
]
