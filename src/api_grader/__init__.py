"""Grading of OpenAPI contracts against an organisational style guide."""

from .config import ConfigError, NegationScope, StyleGuide, load_style_guide
from .detection import ProfileDetectionEngine
from .profiles import ProfileCatalog, ProfileCatalogError
from .rules import EvaluationResult, RuleEvaluator
from .scoring import AdaptiveScoringEngine, PriorityCalculator
from .service import GradingResult, GradingService, letter_grade

__all__ = [
    "AdaptiveScoringEngine",
    "ConfigError",
    "EvaluationResult",
    "GradingResult",
    "GradingService",
    "NegationScope",
    "PriorityCalculator",
    "ProfileCatalog",
    "ProfileCatalogError",
    "ProfileDetectionEngine",
    "RuleEvaluator",
    "StyleGuide",
    "letter_grade",
    "load_style_guide",
]
