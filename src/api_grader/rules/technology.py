"""Textual scan for forbidden technologies in the technical sections of a contract."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Tuple

from ..config import NegationScope
from ..document import dig

TECHNICAL_SECTIONS = ("servers", "paths", "components", "x-platform-constraints")
FREE_TEXT_KEYS = frozenset({"description", "summary"})
NEGATION_PREFIXES = ("no", "not", "without", "instead-of")


@dataclass(slots=True)
class TechnologyMatch:
    name: str
    advice: str
    evidence: str


def _strip_free_text(node: Any) -> Any:
    if isinstance(node, Mapping):
        return {
            str(key): _strip_free_text(value)
            for key, value in node.items()
            if not (key in FREE_TEXT_KEYS and isinstance(value, str))
        }
    if isinstance(node, (list, tuple)):
        return [_strip_free_text(item) for item in node]
    return node


def technical_text(document: Any) -> str:
    """Serialize the technical sections, lower-cased and without descriptions."""

    chunks: List[str] = []
    for section in TECHNICAL_SECTIONS:
        value = dig(document, section)
        if value is None:
            continue
        serialized = json.dumps({section: _strip_free_text(value)}, default=str, ensure_ascii=False)
        chunks.append(serialized.lower())
    return "\n".join(chunks)


def _usage_pattern(name: str) -> re.Pattern[str]:
    tech = re.escape(name)
    return re.compile(
        "|".join(
            (
                rf'"{tech}"',  # quoted
                rf"[a-z0-9]-{tech}\b|\b{tech}-[a-z0-9]",  # hyphenated
                rf"[a-z0-9]\.{tech}\b|\b{tech}\.[a-z0-9]",  # dotted
                rf"/{tech}(?=[/\"?{{])",  # path segment
                rf'"{tech}(?=[_:])',  # prefix
            )
        )
    )


def _negation_pattern(name: str) -> re.Pattern[str]:
    prefixes = "|".join(re.escape(prefix) for prefix in NEGATION_PREFIXES)
    return re.compile(rf"\b(?:{prefixes})-{re.escape(name)}\b")


def _near(span: Tuple[int, int], others: Sequence[Tuple[int, int]], window: int) -> bool:
    start, end = span
    return any(other_start - window <= end and other_end + window >= start for other_start, other_end in others)


class ForbiddenTechnologyScanner:
    """Find denylisted technology names in a contract's technical sections.

    A heuristic over serialized text, not an analysis of real infrastructure.
    With ``NegationScope.GLOBAL`` any negation (``no-kafka``) anywhere in the blob
    suppresses that technology; with ``NegationScope.PROXIMITY`` only matches
    within ``negation_window`` characters of a negation are suppressed.
    """

    def __init__(
        self,
        technologies: Mapping[str, str],
        *,
        negation_scope: NegationScope = NegationScope.PROXIMITY,
        negation_window: int = 0,
    ) -> None:
        self.technologies = {name.lower(): advice for name, advice in technologies.items()}
        self.negation_scope = negation_scope
        self.negation_window = max(0, negation_window)

    def scan(self, document: Any) -> List[TechnologyMatch]:
        return self.scan_text(technical_text(document))

    def scan_text(self, text: str) -> List[TechnologyMatch]:
        matches: List[TechnologyMatch] = []
        for name, advice in self.technologies.items():
            usages = list(_usage_pattern(name).finditer(text))
            if not usages:
                continue

            negations = [match.span() for match in _negation_pattern(name).finditer(text)]
            if self.negation_scope is NegationScope.GLOBAL:
                remaining = [] if negations else usages
            else:
                remaining = [
                    usage for usage in usages if not _near(usage.span(), negations, self.negation_window)
                ]

            if remaining:
                matches.append(TechnologyMatch(name=name, advice=advice, evidence=remaining[0].group(0)))
        return matches
