"""Profile detection for contract documents."""

from .engine import MISSING_INDICATOR_WEIGHT, ProfileDetectionEngine, calculate_confidence, score_signals

__all__ = [
    "MISSING_INDICATOR_WEIGHT",
    "ProfileDetectionEngine",
    "calculate_confidence",
    "score_signals",
]
