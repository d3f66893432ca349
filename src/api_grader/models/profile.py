"""Grading profile models used by the catalog and the scoring engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class RuleCategory(str, Enum):
    """How strictly a profile applies one of its rules."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    DISABLED = "disabled"


@dataclass(slots=True)
class ProfileRule:
    """A rule selected by a profile together with its scoring weight."""

    rule_id: str
    weight: float
    category: RuleCategory = RuleCategory.REQUIRED
    severity_override: Optional[str] = None
    override_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "rule_id": self.rule_id,
            "weight": self.weight,
            "category": self.category.value,
        }
        if self.severity_override is not None:
            payload["severity_override"] = self.severity_override
        if self.override_message is not None:
            payload["override_message"] = self.override_message
        return payload


@dataclass(slots=True)
class ProfilePrerequisites:
    """Prerequisite flags a caller must evaluate before grading."""

    requires_multi_tenant_headers: bool = False
    requires_authentication: bool = True
    requires_api_id: bool = True
    custom_prerequisites: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requires_multi_tenant_headers": self.requires_multi_tenant_headers,
            "requires_authentication": self.requires_authentication,
            "requires_api_id": self.requires_api_id,
            "custom_prerequisites": list(self.custom_prerequisites),
        }


@dataclass(slots=True)
class GradingProfile:
    """Named grading configuration matching a category of API."""

    id: str
    name: str
    type: str
    description: str = ""
    rules: List[ProfileRule] = field(default_factory=list)
    prerequisites: ProfilePrerequisites = field(default_factory=ProfilePrerequisites)
    priority_config: Dict[str, float] = field(default_factory=dict)

    def rule(self, rule_id: str) -> Optional[ProfileRule]:
        """Return the profile rule with ``rule_id`` or ``None``."""

        for rule in self.rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "rules": [rule.to_dict() for rule in self.rules],
            "prerequisites": self.prerequisites.to_dict(),
            "priority_config": dict(self.priority_config),
        }
