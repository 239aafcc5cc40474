"""Remote registry client.

Loads the catalog of installable entries (remote JSON, disk-cached with a
time-to-live), resolves user-supplied names to entries, and ranks free-text
search results.
"""

from __future__ import annotations

import logging

import httpx

from llmstxt.errors import RegistryError
from llmstxt.registry.cache import RegistryCache
from llmstxt.registry.models import RegistryEntry, entry_from_dict, filter_by_categories

logger = logging.getLogger(__name__)

REGISTRY_TIMEOUT_SECONDS = 10.0


class RegistryClient:
    """Client for the llms.txt registry catalog.

    Parameters
    ----------
    url : str
        Location of the registry JSON document.
    cache : RegistryCache
        Disk cache consulted before any network call.
    transport : httpx.AsyncBaseTransport | None
        Optional transport override, used by tests to serve canned responses.
    """

    def __init__(
        self,
        url: str,
        cache: RegistryCache,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = REGISTRY_TIMEOUT_SECONDS,
    ) -> None:
        self.url = url
        self.cache = cache
        self.timeout = timeout
        self._transport = transport
        self._entries: list[RegistryEntry] = []

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_registry(self) -> list[RegistryEntry]:
        """Return all registry entries, from the cache when it is fresh."""
        cached = self.cache.read()
        if cached:
            logger.debug("Registry served from cache (%d entries)", len(cached))
            self._entries = cached
            return list(cached)

        try:
            entries = await self._fetch_remote()
        except RegistryError as e:
            stale = self.cache.read(allow_stale=True)
            if not stale:
                raise
            logger.warning("%s; using cached registry", e)
            self._entries = stale
            return list(stale)

        self.cache.write(entries)
        self._entries = entries
        return list(entries)

    async def _fetch_remote(self) -> list[RegistryEntry]:
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            ) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                raw = response.json()
        except httpx.HTTPStatusError as e:
            raise RegistryError(
                f"Registry request failed with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RegistryError(f"Could not reach registry at {self.url}: {e}") from e
        except ValueError as e:
            raise RegistryError(f"Registry response is not valid JSON: {e}") from e

        return parse_registry(raw)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def entries(self) -> list[RegistryEntry]:
        return list(self._entries)

    def all_entries(self, categories: list[str] | None = None) -> list[RegistryEntry]:
        return filter_by_categories(self._entries, categories)

    def get_entry(self, slug: str) -> RegistryEntry | None:
        """Exact slug lookup."""
        for entry in self._entries:
            if entry.slug == slug:
                return entry
        return None

    def resolve_slug(self, name: str) -> RegistryEntry | None:
        """Resolve a slug or display name to a single entry.

        Slugs are compared case-insensitively first, then names. An ambiguous
        name resolves to nothing rather than to an arbitrary match.
        """
        wanted = name.strip().lower()
        if not wanted:
            return None

        exact = self.get_entry(name.strip())
        if exact:
            return exact

        by_slug = [e for e in self._entries if e.slug.lower() == wanted]
        if len(by_slug) == 1:
            return by_slug[0]
        if by_slug:
            return None

        by_name = [e for e in self._entries if e.name.lower() == wanted]
        if len(by_name) == 1:
            return by_name[0]
        return None

    def search(
        self, query: str, categories: list[str] | tuple[str, ...] | None = None
    ) -> list[RegistryEntry]:
        """Ranked free-text search.

        Name and slug matches outrank domain matches, which outrank
        description-only matches. Entries sharing a rank keep catalog order.
        """
        candidates = filter_by_categories(self._entries, categories)
        needle = query.strip().lower()
        if not needle:
            return candidates

        terms = needle.split()
        ranked: list[tuple[int, RegistryEntry]] = []
        for entry in candidates:
            rank = _rank(entry, needle, terms)
            if rank is not None:
                ranked.append((rank, entry))

        ranked.sort(key=lambda pair: pair[0])
        return [entry for _, entry in ranked]


def parse_registry(raw: object) -> list[RegistryEntry]:
    """Validate a registry document, dropping malformed entries."""
    if not isinstance(raw, list):
        raise RegistryError("Registry document must be a JSON array")

    entries = [e for e in (entry_from_dict(item) for item in raw) if e is not None]
    dropped = len(raw) - len(entries)
    if dropped:
        logger.debug("Dropped %d malformed registry entries", dropped)
    if not entries:
        raise RegistryError("Registry document contains no valid entries")
    return entries


def _rank(entry: RegistryEntry, needle: str, terms: list[str]) -> int | None:
    name = entry.name.lower()
    slug = entry.slug.lower()
    domain = entry.domain.lower()
    description = entry.description.lower()

    if needle in (name, slug):
        return 0
    if name.startswith(needle) or slug.startswith(needle):
        return 1
    if needle in name or needle in slug:
        return 2
    if needle in domain:
        return 3
    if needle in description:
        return 4

    haystack = " ".join((name, slug, domain, description))
    if len(terms) > 1 and all(term in haystack for term in terms):
        return 5
    return None
