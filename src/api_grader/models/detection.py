"""Models describing the outcome of profile detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class DetectionSignal:
    """One piece of weighted evidence for a profile candidate."""

    type: str
    weight: float
    found: bool
    evidence: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "weight": self.weight,
            "found": self.found,
            "evidence": list(self.evidence),
        }


@dataclass(slots=True)
class ProfileScore:
    """Score of a single profile archetype, between 0 and 100."""

    profile: str
    score: float
    signals: List[DetectionSignal] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profile": self.profile,
            "score": self.score,
            "signals": [signal.to_dict() for signal in self.signals],
        }


@dataclass(slots=True)
class DetectionReasoning:
    matched_patterns: List[str] = field(default_factory=list)
    missing_indicators: List[str] = field(default_factory=list)
    signal_strength: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched_patterns": list(self.matched_patterns),
            "missing_indicators": list(self.missing_indicators),
            "signal_strength": dict(self.signal_strength),
        }


@dataclass(slots=True)
class DetectionResult:
    """Winning profile, how decisively it won, and the runner-ups."""

    detected_profile: str
    confidence: float
    reasoning: DetectionReasoning = field(default_factory=DetectionReasoning)
    alternatives: List[ProfileScore] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detected_profile": self.detected_profile,
            "confidence": self.confidence,
            "reasoning": self.reasoning.to_dict(),
            "alternatives": [alternative.to_dict() for alternative in self.alternatives],
        }
