"""Style-guide configuration and manifest loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, Tuple

import yaml

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when a style-guide manifest cannot be loaded or parsed."""


class NegationScope(str, Enum):
    """How far a ``no-kafka`` style negation reaches when scanning for technologies."""

    GLOBAL = "global"
    PROXIMITY = "proximity"


@dataclass(frozen=True, slots=True)
class StyleGuide:
    """Every organization-specific constant the rule evaluator checks against."""

    required_openapi_version: str = "3.0.3"
    organization_header: str = "X-Organization-ID"
    branch_header: str = "X-Branch-ID"
    path_prefix: str = "/api/v2/"
    forbidden_pagination_params: Tuple[str, ...] = (
        "offset",
        "page",
        "page_size",
        "pageNumber",
        "cursor",
        "pageToken",
    )
    keyset_params: Tuple[str, ...] = ("after_key", "before_key", "limit")
    problem_content_type: str = "application/problem+json"
    problem_schema_marker: str = "ProblemDetail"
    job_schema_markers: Tuple[str, ...] = ("Job", "Async")
    job_path_segment: str = "jobs"
    forbidden_technologies: Dict[str, str] = field(
        default_factory=lambda: {
            "kafka": "Use Pulsar instead",
            "rabbitmq": "Use Pulsar instead",
            "redis": "Use Dragonfly/Valkey instead",
            "elasticsearch": "Use alternatives",
        }
    )
    negation_scope: NegationScope = NegationScope.PROXIMITY
    negation_window: int = 0
    rate_limit_headers: Tuple[str, ...] = (
        "X-RateLimit-Limit",
        "X-RateLimit-Remaining",
        "X-RateLimit-Reset",
    )
    platform_extensions: Tuple[str, ...] = (
        "x-platform-constraints",
        "x-rate-limiting",
        "x-caching-strategy",
        "x-performance-slas",
    )
    error_catalog_threshold: int = 5


_TUPLE_FIELDS = {
    "forbidden_pagination_params",
    "keyset_params",
    "job_schema_markers",
    "rate_limit_headers",
    "platform_extensions",
}


def load_style_guide(
    manifests: Sequence[Path | str] | None = None,
    *,
    base: StyleGuide | None = None,
) -> StyleGuide:
    """Merge YAML manifests over ``base`` (or the defaults); later manifests win."""

    guide = base or StyleGuide()
    for manifest in manifests or []:
        path = Path(manifest)
        data = _load_manifest(path)
        guide = _apply_overrides(guide, data.get("style_guide", data), path)
        logger.debug("Applied style guide manifest %s", path)
    return guide


def _apply_overrides(guide: StyleGuide, overrides: Any, path: Path) -> StyleGuide:
    if not isinstance(overrides, Mapping):
        raise ConfigError(f"Style guide section must be a mapping: {path}")

    known = {item.name for item in fields(StyleGuide)}
    changes: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known:
            raise ConfigError(f"Unknown style guide setting '{key}' in {path}")

        if key in _TUPLE_FIELDS:
            if not isinstance(value, (list, tuple)):
                raise ConfigError(f"Style guide setting '{key}' must be a list in {path}")
            changes[key] = tuple(str(item) for item in value)
        elif key == "forbidden_technologies":
            if not isinstance(value, Mapping):
                raise ConfigError(f"Style guide setting '{key}' must be a mapping in {path}")
            changes[key] = {str(name).lower(): str(advice or "") for name, advice in value.items()}
        elif key == "negation_scope":
            try:
                changes[key] = NegationScope(str(value).strip().lower())
            except ValueError as exc:
                raise ConfigError(f"Invalid negation_scope '{value}' in {path}") from exc
        elif key in {"negation_window", "error_catalog_threshold"}:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"Style guide setting '{key}' must be a non-negative integer in {path}")
            changes[key] = value
        else:
            changes[key] = str(value)

    return replace(guide, **changes)


def _load_manifest(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Style guide manifest not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:  # pragma: no cover - filesystem errors surfaced to caller
        raise ConfigError(f"Failed to read style guide manifest {path}") from exc

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in style guide manifest {path}") from exc

    if not isinstance(data, Mapping):
        raise ConfigError(f"Style guide manifest must be a mapping: {path}")

    return dict(data)
