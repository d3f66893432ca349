"""Registry of grading profiles backed by a profile store and an in-process cache."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

import yaml

from ..models import GradingProfile, ProfilePrerequisites, ProfileRule, RuleCategory
from .store import InMemoryProfileStore, ProfileRecord, ProfileStore

logger = logging.getLogger(__name__)

PREREQ_API_ID = "PREREQ-API-ID"
PREREQ_AUTHENTICATION = "PREREQ-002"
PREREQ_MULTI_TENANT = "PREREQ-003"

DEFAULT_PROFILE_TYPE = "REST"
FALLBACK_PROFILE_TYPE = "Custom"

_SEED_RESOURCE = "default_profiles.yaml"


class ProfileCatalogError(RuntimeError):
    """Raised when profile seed data is malformed or no usable profile exists."""


@dataclass(slots=True)
class ProfileDefinition:
    """A profile as declared in seed data, before the store assigns an id."""

    name: str
    type: str
    description: str = ""
    rules: List[ProfileRule] = field(default_factory=list)
    prerequisites: ProfilePrerequisites = field(default_factory=ProfilePrerequisites)
    priority_config: Dict[str, float] = field(default_factory=dict)


class ProfileCache:
    """Append-only ``id -> profile`` cache; the first profile stored under an id wins."""

    def __init__(self) -> None:
        self._profiles: Dict[str, GradingProfile] = {}

    def get(self, profile_id: str) -> Optional[GradingProfile]:
        return self._profiles.get(profile_id)

    def add(self, profile: GradingProfile) -> GradingProfile:
        return self._profiles.setdefault(profile.id, profile)

    def __contains__(self, profile_id: object) -> bool:
        return profile_id in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def __iter__(self) -> Iterator[GradingProfile]:
        return iter(list(self._profiles.values()))


# Seed data parsing -------------------------------------------------------------
def load_profile_definitions(source: Path | str | None = None) -> List[ProfileDefinition]:
    """Parse profile definitions from ``source`` or from the packaged defaults."""

    if source is None:
        location = f"{__package__}/{_SEED_RESOURCE}"
        content = resources.files(__package__).joinpath(_SEED_RESOURCE).read_text(encoding="utf-8")
    else:
        path = Path(source)
        location = str(path)
        if not path.exists():
            raise ProfileCatalogError(f"Profile seed file not found: {path}")
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem errors surfaced to caller
            raise ProfileCatalogError(f"Failed to read profile seed file {path}") from exc

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ProfileCatalogError(f"Invalid YAML in profile seed file {location}") from exc

    if not isinstance(data, Mapping):
        raise ProfileCatalogError(f"Profile seed file must be a mapping: {location}")

    entries = data.get("profiles") or []
    if not isinstance(entries, list):
        raise ProfileCatalogError(f"'profiles' must be a list in {location}")

    return [_parse_definition(entry, location) for entry in entries]


def _parse_definition(entry: Any, location: str) -> ProfileDefinition:
    if not isinstance(entry, Mapping):
        raise ProfileCatalogError(f"Profile entries must be mappings in {location}")

    name = entry.get("name")
    profile_type = entry.get("type")
    if not name or not profile_type:
        raise ProfileCatalogError(f"Profiles require a name and a type in {location}")

    rules: Dict[str, ProfileRule] = {}
    for raw_rule in entry.get("rules") or []:
        rule = _parse_rule(raw_rule, str(name), location)
        rules[rule.rule_id] = rule

    raw_prerequisites = entry.get("prerequisites") or {}
    if not isinstance(raw_prerequisites, Mapping):
        raise ProfileCatalogError(f"Prerequisites of '{name}' must be a mapping in {location}")
    prerequisites = ProfilePrerequisites(
        requires_multi_tenant_headers=bool(raw_prerequisites.get("requires_multi_tenant_headers", False)),
        requires_authentication=bool(raw_prerequisites.get("requires_authentication", True)),
        requires_api_id=bool(raw_prerequisites.get("requires_api_id", True)),
        custom_prerequisites=[str(item) for item in raw_prerequisites.get("custom_prerequisites") or []],
    )

    raw_priorities = entry.get("priority_config") or {}
    if not isinstance(raw_priorities, Mapping):
        raise ProfileCatalogError(f"priority_config of '{name}' must be a mapping in {location}")
    try:
        priority_config = {str(category): float(value) for category, value in raw_priorities.items()}
    except (TypeError, ValueError) as exc:
        raise ProfileCatalogError(f"priority_config of '{name}' must be numeric in {location}") from exc

    return ProfileDefinition(
        name=str(name),
        type=str(profile_type),
        description=str(entry.get("description") or ""),
        rules=list(rules.values()),
        prerequisites=prerequisites,
        priority_config=priority_config,
    )


def _parse_rule(raw: Any, profile_name: str, location: str) -> ProfileRule:
    if not isinstance(raw, Mapping) or not raw.get("rule_id"):
        raise ProfileCatalogError(f"Rules of '{profile_name}' need a rule_id in {location}")

    rule_id = str(raw["rule_id"]).strip()
    weight = raw.get("weight")
    if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight <= 0:
        raise ProfileCatalogError(f"Rule {rule_id} of '{profile_name}' needs a positive weight")

    try:
        category = RuleCategory(str(raw.get("category", RuleCategory.REQUIRED.value)).strip().lower())
    except ValueError as exc:
        raise ProfileCatalogError(f"Rule {rule_id} of '{profile_name}' has an invalid category") from exc

    return ProfileRule(
        rule_id=rule_id,
        weight=float(weight),
        category=category,
        severity_override=raw.get("severity_override"),
        override_message=raw.get("override_message"),
    )


# Catalog -----------------------------------------------------------------------
class ProfileCatalog:
    """Lookup and creation of grading profiles.

    A thin facade over a :class:`ProfileStore`. Profiles are cached by id for the
    lifetime of the catalog; the cache only grows and concurrent writers of the
    same id keep whichever profile was stored first.
    """

    def __init__(
        self,
        store: ProfileStore | None = None,
        *,
        seed_path: Path | str | None = None,
        cache: ProfileCache | None = None,
    ) -> None:
        self.store = store or InMemoryProfileStore()
        self.cache = cache or ProfileCache()
        self._seed_path = seed_path
        self._initialized = False
        self._init_lock = threading.Lock()

    # ------------------------------------------------------------------
    def initialize(self) -> None:
        """Seed the default profiles into an empty store; later calls are no-ops."""

        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            if not self.store.list_profiles():
                definitions = load_profile_definitions(self._seed_path)
                for definition in definitions:
                    self.create_profile(definition)
                logger.info("Seeded %d default grading profiles", len(definitions))
            self._initialized = True

    # ------------------------------------------------------------------
    def create_profile(self, definition: ProfileDefinition) -> GradingProfile:
        record = self.store.create_profile(
            name=definition.name,
            type=definition.type,
            description=definition.description,
            priority_config=definition.priority_config,
            prerequisites=definition.prerequisites,
        )
        self.store.set_profile_rules(record.id, definition.rules)

        profile = GradingProfile(
            id=record.id,
            name=definition.name,
            type=definition.type,
            description=definition.description,
            rules=self.store.get_profile_rules(record.id),
            prerequisites=definition.prerequisites,
            priority_config=dict(definition.priority_config),
        )
        return self.cache.add(profile)

    def get_profile(self, profile_id: str) -> Optional[GradingProfile]:
        self.initialize()
        cached = self.cache.get(profile_id)
        if cached is not None:
            return cached

        record = self.store.get_profile(profile_id)
        if record is None:
            return None

        rules = self.store.get_profile_rules(profile_id)
        profile = GradingProfile(
            id=record.id,
            name=record.name,
            type=record.type,
            description=record.description,
            rules=rules,
            prerequisites=self._infer_prerequisites(record, rules),
            priority_config=dict(record.priority_config),
        )
        return self.cache.add(profile)

    def get_profile_by_type(self, profile_type: str) -> Optional[GradingProfile]:
        """Return the first stored profile of ``profile_type``."""

        self.initialize()
        records = self.store.list_profiles(type=profile_type)
        if not records:
            return None
        return self.get_profile(records[0].id)

    def get_default_profile(self) -> GradingProfile:
        profile = self.get_profile_by_type(DEFAULT_PROFILE_TYPE)
        if profile is None:
            raise ProfileCatalogError(f"Default {DEFAULT_PROFILE_TYPE} profile not found")
        return profile

    def resolve_profile(self, profile_type: str | None) -> GradingProfile:
        """Return the profile for ``profile_type``, falling back to the Custom profile."""

        if profile_type:
            profile = self.get_profile_by_type(profile_type)
            if profile is not None:
                return profile
            logger.debug("No %s profile seeded, using %s", profile_type, FALLBACK_PROFILE_TYPE)

        fallback = self.get_profile_by_type(FALLBACK_PROFILE_TYPE)
        if fallback is not None:
            return fallback
        return self.get_default_profile()

    def list_profiles(self) -> List[GradingProfile]:
        self.initialize()
        profiles: List[GradingProfile] = []
        for record in self.store.list_profiles():
            profile = self.get_profile(record.id)
            if profile is not None:
                profiles.append(profile)
        return profiles

    # Prerequisites -------------------------------------------------------------
    def should_enforce_prerequisite(self, profile: GradingProfile, prerequisite_id: str) -> bool:
        prerequisites = profile.prerequisites
        if prerequisite_id == PREREQ_MULTI_TENANT:
            return prerequisites.requires_multi_tenant_headers
        if prerequisite_id == PREREQ_AUTHENTICATION:
            return prerequisites.requires_authentication
        if prerequisite_id == PREREQ_API_ID:
            return prerequisites.requires_api_id
        return prerequisite_id in prerequisites.custom_prerequisites

    def get_profile_prerequisites(self, profile: GradingProfile) -> List[str]:
        prerequisites = profile.prerequisites
        identifiers: List[str] = []
        if prerequisites.requires_api_id:
            identifiers.append(PREREQ_API_ID)
        if prerequisites.requires_authentication:
            identifiers.append(PREREQ_AUTHENTICATION)
        if prerequisites.requires_multi_tenant_headers:
            identifiers.append(PREREQ_MULTI_TENANT)
        identifiers.extend(prerequisites.custom_prerequisites)
        return identifiers

    def _infer_prerequisites(self, record: ProfileRecord, rules: List[ProfileRule]) -> ProfilePrerequisites:
        if record.prerequisites is not None:
            return record.prerequisites

        multi_tenant_rule = any(
            rule.rule_id == PREREQ_MULTI_TENANT and rule.category is RuleCategory.REQUIRED for rule in rules
        )
        return ProfilePrerequisites(
            requires_multi_tenant_headers=multi_tenant_rule or record.type == "SaaS",
            requires_authentication=True,
            requires_api_id=True,
            custom_prerequisites=[],
        )
