"""Lockfile store — the durable record of installed artifacts.

The lockfile lives at ``<project>/.llms/llms.lock.json``. Every mutation is
a read-modify-write that lands through a temp file and ``os.replace`` so a
reader never observes a partial document.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from llmstxt.lockfile.models import Lockfile, LockfileEntry, utc_now_iso

logger = logging.getLogger(__name__)


class LockfileStore:
    """Reads and writes the lockfile for one project directory."""

    LOCK_DIR = ".llms"
    LOCK_FILE = "llms.lock.json"

    def __init__(self, project_dir: str | Path):
        self.project_dir = Path(project_dir)
        self.lock_dir = self.project_dir / self.LOCK_DIR
        self.path = self.lock_dir / self.LOCK_FILE

    def read(self) -> Lockfile:
        """Return the current lockfile, or an empty one if missing or corrupt.

        A corrupt file is moved aside to ``llms.lock.json.backup`` so the
        next write starts clean without destroying the evidence.
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return Lockfile()

        try:
            return Lockfile.from_dict(json.loads(raw.decode("utf-8")))
        except ValueError as e:
            backup = self.path.with_name(self.LOCK_FILE + ".backup")
            try:
                os.replace(self.path, backup)
                logger.warning("Corrupt lockfile (%s) backed up to %s", e, backup)
            except OSError:
                logger.warning("Corrupt lockfile ignored: %s", e)
            return Lockfile()

    def write(self, lockfile: Lockfile) -> None:
        """Persist *lockfile* atomically. Write failures propagate."""
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        lockfile.updated_at = utc_now_iso()

        fd, tmp_name = tempfile.mkstemp(
            dir=self.lock_dir, prefix=".llms.lock-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(lockfile.to_dict(), f, indent=2)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def upsert(self, entry: LockfileEntry) -> None:
        """Insert or overwrite the entry stored under ``entry.slug``."""
        lockfile = self.read()
        lockfile.entries[entry.slug] = entry
        self.write(lockfile)

    def remove(self, slug: str) -> bool:
        """Delete the entry for *slug*. Returns ``False`` if it was absent."""
        lockfile = self.read()
        if slug not in lockfile.entries:
            return False
        del lockfile.entries[slug]
        self.write(lockfile)
        return True

    def get_entry(self, slug: str) -> LockfileEntry | None:
        return self.read().entries.get(slug)

    def entries(self) -> list[LockfileEntry]:
        return list(self.read().entries.values())

    def find(self, name: str) -> LockfileEntry | None:
        """Look up an installed entry by slug or case-insensitive name."""
        wanted = name.strip().lower()
        for entry in self.entries():
            if entry.slug == name or entry.slug.lower() == wanted or entry.name.lower() == wanted:
                return entry
        return None
