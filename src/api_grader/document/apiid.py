"""API identifier helpers.

``document_api_id`` fingerprints a contract document; the ``generate`` family
creates persistent identifiers that teams embed as ``x-api-id``.
"""

from __future__ import annotations

import hashlib
import re
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from .access import as_text, dig

_API_ID_FORMAT = re.compile(r"^[a-z0-9]+_\d{13}_[a-f0-9]{16}$")


def document_api_id(document: Any) -> str:
    """Return the explicit ``x-api-id`` or a stable hash of ``title@version``."""

    explicit = as_text(dig(document, "x-api-id")) or as_text(dig(document, "info", "x-api-id"))
    if explicit:
        return explicit

    title = as_text(dig(document, "info", "title")) or "unknown"
    version = dig(document, "info", "version")
    version_text = str(version) if version not in (None, "") else "0.0.0"
    digest = hashlib.sha256(f"{title}@{version_text}".encode("utf-8")).hexdigest()
    return digest[:12]


def generate_api_id(organization: Optional[str] = None) -> str:
    """Create a new identifier of the form ``{prefix}_{millis}_{16 hex}``."""

    prefix = organization or "api"
    timestamp = int(time.time() * 1000)
    return f"{prefix}_{timestamp}_{secrets.token_hex(8)}"


def validate_api_id_format(api_id: str) -> bool:
    return bool(_API_ID_FORMAT.match(api_id))


@dataclass(slots=True)
class ApiIdMetadata:
    organization: str
    timestamp: int
    random_part: str

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)


def extract_api_id_metadata(api_id: str) -> Optional[ApiIdMetadata]:
    """Split a generated identifier into its parts, or ``None`` when malformed."""

    parts = api_id.split("_")
    if len(parts) != 3:
        return None

    organization, timestamp_text, random_part = parts
    if not timestamp_text.isdigit():
        return None

    return ApiIdMetadata(
        organization=organization,
        timestamp=int(timestamp_text),
        random_part=random_part,
    )
