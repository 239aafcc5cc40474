"""Dataclasses describing what is installed in a project, and from where."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

LOCKFILE_VERSION = 1
FORMATS = ("llms.txt", "llms-full.txt")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) as an aware datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class LockfileEntry:
    """A single installed artifact.

    ``checksum``, ``size`` and ``fetched_at`` always describe the content
    currently written to the agent directories for ``slug``.
    """

    slug: str
    format: str
    source_url: str
    fetched_at: str
    checksum: str
    size: int
    name: str
    etag: str | None = None
    last_modified: str | None = None

    def age_days(self, now: datetime | None = None) -> int | None:
        fetched = parse_timestamp(self.fetched_at)
        if fetched is None:
            return None
        now = now or datetime.now(timezone.utc)
        return int((now - fetched).total_seconds() // 86400)

    def is_stale(self, threshold_days: int, now: datetime | None = None) -> bool:
        age = self.age_days(now)
        return age is None or age > threshold_days

    def to_dict(self) -> dict:
        return {
            "slug": self.slug,
            "format": self.format,
            "sourceUrl": self.source_url,
            "etag": self.etag,
            "lastModified": self.last_modified,
            "fetchedAt": self.fetched_at,
            "checksum": self.checksum,
            "size": self.size,
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> LockfileEntry:
        fmt = data.get("format", "llms.txt")
        return cls(
            slug=data["slug"],
            format=fmt if fmt in FORMATS else "llms.txt",
            source_url=data["sourceUrl"],
            etag=data.get("etag"),
            last_modified=data.get("lastModified"),
            fetched_at=data.get("fetchedAt", ""),
            checksum=data.get("checksum", ""),
            size=int(data.get("size", 0)),
            name=data.get("name") or data["slug"],
        )


@dataclass
class Lockfile:
    """The persisted aggregate: one entry per installed slug."""

    version: int = LOCKFILE_VERSION
    updated_at: str = field(default_factory=utc_now_iso)
    entries: dict[str, LockfileEntry] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "updatedAt": self.updated_at,
            "entries": {slug: e.to_dict() for slug, e in self.entries.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> Lockfile:
        """Parse a lockfile document, raising ``ValueError`` if it is malformed."""
        if not isinstance(data, dict) or data.get("version") != LOCKFILE_VERSION:
            raise ValueError("Unsupported lockfile version")
        raw_entries = data.get("entries")
        if not isinstance(raw_entries, dict):
            raise ValueError("Lockfile has no entries map")

        entries: dict[str, LockfileEntry] = {}
        for slug, raw in raw_entries.items():
            try:
                entry = LockfileEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Malformed lockfile entry {slug!r}: {e}") from e
            entries[entry.slug] = entry

        return cls(
            version=LOCKFILE_VERSION,
            updated_at=data.get("updatedAt", ""),
            entries=entries,
        )
