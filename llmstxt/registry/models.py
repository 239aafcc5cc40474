"""Registry catalog entries and category constants."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

PRIMARY_CATEGORIES = (
    "ai-ml",
    "developer-tools",
    "data-analytics",
    "automation-workflow",
    "infrastructure-cloud",
    "security-identity",
)

# Keys every catalog entry must carry as non-empty strings.
_REQUIRED_NON_EMPTY = ("slug", "name", "llmsTxtUrl")
# Keys that must be present as strings but may be empty.
_REQUIRED_STRINGS = ("category", "description", "domain")

# Slugs become directory names on disk.
SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


@dataclass(frozen=True)
class RegistryEntry:
    """A single installable entry in the llms.txt registry."""

    slug: str
    name: str
    llms_txt_url: str
    domain: str = ""
    description: str = ""
    category: str = ""
    web_slug: str = ""
    llms_full_txt_url: str | None = None

    @property
    def has_full(self) -> bool:
        return bool(self.llms_full_txt_url)

    def url_for(self, full: bool) -> tuple[str, str]:
        """Return ``(url, format)`` honoring a preference for the full file."""
        if full and self.llms_full_txt_url:
            return self.llms_full_txt_url, "llms-full.txt"
        return self.llms_txt_url, "llms.txt"


def is_valid_slug(slug: str) -> bool:
    return bool(SLUG_RE.match(slug)) and ".." not in slug


def entry_from_dict(data: Any) -> RegistryEntry | None:
    """Build an entry from a catalog object, or ``None`` if it is malformed."""
    if not isinstance(data, dict):
        return None

    for key in _REQUIRED_NON_EMPTY:
        value = data.get(key)
        if not isinstance(value, str) or not value:
            return None
    for key in _REQUIRED_STRINGS:
        if not isinstance(data.get(key), str):
            return None
    if not is_valid_slug(data["slug"]):
        return None

    full_url = data.get("llmsFullTxtUrl")
    web_slug = data.get("webSlug")
    return RegistryEntry(
        slug=data["slug"],
        name=data["name"],
        llms_txt_url=data["llmsTxtUrl"],
        domain=data["domain"],
        description=data["description"],
        category=data["category"],
        web_slug=web_slug if isinstance(web_slug, str) else "",
        llms_full_txt_url=full_url if isinstance(full_url, str) and full_url else None,
    )


def entry_to_dict(entry: RegistryEntry) -> dict:
    data = {
        "slug": entry.slug,
        "webSlug": entry.web_slug,
        "name": entry.name,
        "domain": entry.domain,
        "description": entry.description,
        "llmsTxtUrl": entry.llms_txt_url,
        "category": entry.category,
    }
    if entry.llms_full_txt_url:
        data["llmsFullTxtUrl"] = entry.llms_full_txt_url
    return data


def filter_by_categories(
    entries: list[RegistryEntry], categories: list[str] | tuple[str, ...] | None
) -> list[RegistryEntry]:
    """Keep only entries whose category is listed; no filter when empty."""
    if not categories:
        return list(entries)
    allowed = set(categories)
    return [e for e in entries if e.category in allowed]
