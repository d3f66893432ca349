"""Map rule identifiers to scoring categories and to the profile rules that weight them."""

from __future__ import annotations

from typing import Mapping, Tuple

GENERAL_CATEGORY = "general"

# First matching prefix wins. The evaluator families (OAS, PATH, ENV, PAG, ASYNC, ERR, HTTP, TECH)
# also apply to profile rule ids, so a profile rule such as ASYNC-001 counts as functionality
# rather than general.
RULE_CATEGORY_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("SEC", "security"),
    ("AUTH", "authentication"),
    ("FUNC", "functionality"),
    ("DOC", "documentation"),
    ("INFO", "documentation"),
    ("SCALE", "scalability"),
    ("PERF", "performance"),
    ("MAINT", "consistency"),
    ("BEST", "best_practices"),
    ("COMP-SCHEMAS", "consistency"),
    ("COMP-PARAMS", "consistency"),
    ("COMP", "compliance"),
    ("AUDIT", "audit"),
    ("PRIV", "privacy"),
    ("ENCRYPT", "encryption"),
    ("RESIL", "resilience"),
    ("OBS", "observability"),
    ("TRACE", "observability"),
    ("OAS", "consistency"),
    ("PATH", "consistency"),
    ("ENV", "consistency"),
    ("PAG", "functionality"),
    ("ASYNC", "functionality"),
    ("ERR", "functionality"),
    ("HTTP", "functionality"),
    ("TECH", "best_practices"),
)

# Evaluator rule id -> the profile rule whose weight and category govern it.
PROFILE_RULE_IDS: Mapping[str, str] = {
    "SEC-OAUTH2": "SEC-001",
    "HTTP-401-AUTH": "SEC-002",
    "SEC-ORG-HDR": "PREREQ-003",
    "SEC-BRANCH-HDR": "PREREQ-003",
    "PAG-KEYSET": "FUNC-001",
    "PAG-FORBIDDEN": "FUNC-001",
    "ERR-PROBLEMJSON": "FUNC-002",
    "HTTP-429-RETRY": "FUNC-002",
    "HTTP-503-RETRY": "FUNC-002",
    "HTTP-RATE-LIMIT": "SCALE-001",
    "ASYNC-202-LOCATION": "ASYNC-001",
    "ASYNC-202-RETRY": "ASYNC-001",
    "INFO-CONTACT": "DOC-001",
    "INFO-VERSION": "DOC-001",
    "OAS-VERSION": "MAINT-001",
    "PATH-STRUCTURE": "MAINT-001",
    "ENV-RESPONSE": "MAINT-001",
    "COMP-SCHEMAS": "MAINT-001",
    "COMP-PARAMS": "MAINT-001",
    "TECH-FORBIDDEN": "BEST-001",
}


def rule_category(rule_id: str) -> str:
    """Return the scoring category inferred from the prefix of ``rule_id``."""

    for prefix, category in RULE_CATEGORY_PREFIXES:
        if rule_id.startswith(prefix):
            return category
    return GENERAL_CATEGORY


def profile_rule_id(rule_id: str) -> str:
    """Return the profile rule id that weights ``rule_id``; unmapped ids map to themselves."""

    return PROFILE_RULE_IDS.get(rule_id, rule_id)
