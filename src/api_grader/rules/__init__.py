"""Style-guide rule evaluation."""

from .categories import GENERAL_CATEGORY, PROFILE_RULE_IDS, RULE_CATEGORY_PREFIXES, profile_rule_id, rule_category
from .evaluator import MAX_SCORE, SCORE_CATEGORY, EvaluationResult, RuleEvaluator
from .technology import ForbiddenTechnologyScanner, TechnologyMatch, technical_text

__all__ = [
    "EvaluationResult",
    "ForbiddenTechnologyScanner",
    "GENERAL_CATEGORY",
    "MAX_SCORE",
    "PROFILE_RULE_IDS",
    "RULE_CATEGORY_PREFIXES",
    "RuleEvaluator",
    "SCORE_CATEGORY",
    "TechnologyMatch",
    "profile_rule_id",
    "rule_category",
    "technical_text",
]
