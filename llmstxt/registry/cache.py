"""Disk cache for the downloaded registry catalog.

Freshness is derived from the cache file's modification time, so there is
no metadata to keep in sync with the payload. Every failure in here is
absorbed: the cache is an optimization and must never break a command.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path

from llmstxt.registry.models import RegistryEntry, entry_from_dict, entry_to_dict

logger = logging.getLogger(__name__)


class RegistryCache:
    """Stores the last successfully loaded registry under a per-user directory."""

    CACHE_FILE = "registry.json"

    def __init__(self, cache_dir: str | Path, ttl_seconds: int):
        self.cache_dir = Path(cache_dir)
        self.path = self.cache_dir / self.CACHE_FILE
        self.ttl_seconds = ttl_seconds

    def age_seconds(self) -> float | None:
        try:
            return time.time() - self.path.stat().st_mtime
        except OSError:
            return None

    def is_fresh(self) -> bool:
        age = self.age_seconds()
        return age is not None and age <= self.ttl_seconds

    def read(self, allow_stale: bool = False) -> list[RegistryEntry] | None:
        """Return cached entries, or ``None`` on a miss, a stale file, or corruption."""
        if not allow_stale and not self.is_fresh():
            return None

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug("Ignoring unreadable registry cache %s: %s", self.path, e)
            return None

        if not isinstance(raw, list):
            return None

        entries = [e for e in (entry_from_dict(item) for item in raw) if e is not None]
        return entries or None

    def write(self, entries: list[RegistryEntry]) -> None:
        """Persist entries atomically; failures are logged and dropped."""
        tmp_name = ""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.cache_dir, prefix=".registry-", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump([entry_to_dict(e) for e in entries], f)
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.debug("Registry cache write failed: %s", e)
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)
