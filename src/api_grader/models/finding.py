"""Finding models shared by the rule evaluator and reporting consumers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class FindingSeverity(str, Enum):
    """Severity levels a style-guide check can report."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"


@dataclass(slots=True)
class Finding:
    """A failed style-guide check located inside the contract document."""

    rule_id: str
    severity: FindingSeverity
    message: str
    json_path: str
    category: Optional[str] = None
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "json_path": self.json_path,
        }
        if self.category is not None:
            payload["category"] = self.category
        if self.line is not None:
            payload["line"] = self.line
        return payload
