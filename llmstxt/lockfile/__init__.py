"""Installed-state lockfile for a project."""

from llmstxt.lockfile.models import Lockfile, LockfileEntry
from llmstxt.lockfile.store import LockfileStore

__all__ = ["Lockfile", "LockfileEntry", "LockfileStore"]
