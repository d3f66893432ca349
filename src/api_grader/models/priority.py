"""Priority levels and the priority matrix derived from business context."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Priority(str, Enum):
    """Ordered severity scale: ``critical > high > medium > low``."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank where a larger value is more severe."""

        return _PRIORITY_RANK[self]

    @property
    def weight(self) -> float:
        return PRIORITY_WEIGHTS[self]

    def escalate(self) -> "Priority":
        """Return the next more severe level; ``critical`` stays ``critical``."""

        return _ESCALATION[self]


_PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.CRITICAL: 3,
}

_ESCALATION = {
    Priority.LOW: Priority.MEDIUM,
    Priority.MEDIUM: Priority.HIGH,
    Priority.HIGH: Priority.CRITICAL,
    Priority.CRITICAL: Priority.CRITICAL,
}

PRIORITY_WEIGHTS = {
    Priority.CRITICAL: 2.0,
    Priority.HIGH: 1.5,
    Priority.MEDIUM: 1.0,
    Priority.LOW: 0.5,
}


def combine_priorities(first: Priority, second: Priority) -> Priority:
    """Return the more severe of two priorities."""

    return first if first.rank >= second.rank else second


@dataclass(frozen=True, slots=True)
class PriorityContext:
    """Business context supplied by the caller for one grading request."""

    domain: str = "general"
    regulations: Tuple[str, ...] = ()
    risk_level: Optional[str] = None
    user_base: Optional[str] = None
    data_classification: Optional[str] = None


@dataclass(slots=True)
class RulePriority:
    rule_id: str
    base_priority: Priority
    context_priority: Priority
    weight: float
    reasoning: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "base_priority": self.base_priority.value,
            "context_priority": self.context_priority.value,
            "weight": self.weight,
            "reasoning": list(self.reasoning),
        }


@dataclass(slots=True)
class PriorityMatrix:
    """Per-category and per-rule priorities plus an overall strictness multiplier."""

    categories: Dict[str, Priority] = field(default_factory=dict)
    rules: Dict[str, RulePriority] = field(default_factory=dict)
    overall_multiplier: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": {name: priority.value for name, priority in self.categories.items()},
            "rules": {rule_id: rule.to_dict() for rule_id, rule in self.rules.items()},
            "overall_multiplier": self.overall_multiplier,
        }
