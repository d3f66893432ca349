"""Profile store contract and the in-memory implementation used by default."""

from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..models import ProfilePrerequisites, ProfileRule


@dataclass(slots=True)
class ProfileRecord:
    """Stored representation of a grading profile, without its rules."""

    id: str
    name: str
    type: str
    description: str = ""
    priority_config: Dict[str, float] = field(default_factory=dict)
    prerequisites: Optional[ProfilePrerequisites] = None
    detection_patterns: Dict[str, Any] = field(default_factory=dict)
    created_by: str = "system"


class ProfileStore(ABC):
    """Persistence contract the profile catalog is built on."""

    @abstractmethod
    def list_profiles(self, type: str | None = None) -> List[ProfileRecord]:
        """Return stored profiles in creation order, optionally filtered by type."""

    @abstractmethod
    def get_profile(self, profile_id: str) -> Optional[ProfileRecord]:
        """Return the profile with ``profile_id`` or ``None``."""

    @abstractmethod
    def get_profile_rules(self, profile_id: str) -> List[ProfileRule]:
        """Return the rules attached to ``profile_id``."""

    @abstractmethod
    def create_profile(
        self,
        *,
        name: str,
        type: str,
        description: str = "",
        priority_config: Dict[str, float] | None = None,
        prerequisites: ProfilePrerequisites | None = None,
        detection_patterns: Dict[str, Any] | None = None,
        created_by: str = "system",
    ) -> ProfileRecord:
        """Persist a new profile and return the stored record."""

    @abstractmethod
    def set_profile_rules(self, profile_id: str, rules: Sequence[ProfileRule]) -> None:
        """Replace the rules attached to ``profile_id``."""


def profile_id_for(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "profile"


class InMemoryProfileStore(ProfileStore):
    """Process-local store; creating a profile whose id already exists returns the existing one."""

    def __init__(self) -> None:
        self._profiles: Dict[str, ProfileRecord] = {}
        self._rules: Dict[str, List[ProfileRule]] = {}
        self._lock = threading.Lock()

    def list_profiles(self, type: str | None = None) -> List[ProfileRecord]:
        records = list(self._profiles.values())
        if type is None:
            return records
        return [record for record in records if record.type == type]

    def get_profile(self, profile_id: str) -> Optional[ProfileRecord]:
        return self._profiles.get(profile_id)

    def get_profile_rules(self, profile_id: str) -> List[ProfileRule]:
        return list(self._rules.get(profile_id, []))

    def create_profile(
        self,
        *,
        name: str,
        type: str,
        description: str = "",
        priority_config: Dict[str, float] | None = None,
        prerequisites: ProfilePrerequisites | None = None,
        detection_patterns: Dict[str, Any] | None = None,
        created_by: str = "system",
    ) -> ProfileRecord:
        record = ProfileRecord(
            id=profile_id_for(name),
            name=name,
            type=type,
            description=description,
            priority_config=dict(priority_config or {}),
            prerequisites=prerequisites,
            detection_patterns=dict(detection_patterns or {}),
            created_by=created_by,
        )
        with self._lock:
            return self._profiles.setdefault(record.id, record)

    def set_profile_rules(self, profile_id: str, rules: Sequence[ProfileRule]) -> None:
        unique: Dict[str, ProfileRule] = {}
        for rule in rules:
            unique[rule.rule_id] = rule
        with self._lock:
            self._rules[profile_id] = list(unique.values())
