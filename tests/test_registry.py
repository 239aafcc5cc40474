"""Tests for the registry client, cache, and search ranking."""

import asyncio
import json
import os
import tempfile
import time
from pathlib import Path

import httpx
import pytest

from llmstxt.errors import RegistryError
from llmstxt.registry.cache import RegistryCache
from llmstxt.registry.client import RegistryClient, parse_registry
from llmstxt.registry.models import RegistryEntry, entry_from_dict, entry_to_dict

REGISTRY_URL = "https://registry.test/registry.json"


def _raw_entry(slug: str, name: str, **overrides) -> dict:
    data = {
        "slug": slug,
        "webSlug": slug,
        "name": name,
        "domain": overrides.get("domain", f"https://{slug}.dev"),
        "description": overrides.get("description", f"{name} documentation"),
        "llmsTxtUrl": f"https://{slug}.dev/llms.txt",
        "category": overrides.get("category", "developer-tools"),
    }
    if overrides.get("full"):
        data["llmsFullTxtUrl"] = f"https://{slug}.dev/llms-full.txt"
    return data


CATALOG = [
    _raw_entry("react", "React", category="developer-tools"),
    _raw_entry("react-native", "React Native", category="developer-tools"),
    _raw_entry("astro", "Astro", category="developer-tools", full=True),
    _raw_entry(
        "preact",
        "Preact",
        description="Fast 3kB alternative to React with the same modern API",
        category="developer-tools",
    ),
    _raw_entry("stripe", "Stripe", category="finance-fintech", domain="https://docs.stripe.com"),
]


def _transport(payload, calls: list | None = None, status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        return httpx.Response(status, json=payload)

    return httpx.MockTransport(handler)


def _client(cache_dir: str, transport: httpx.MockTransport) -> RegistryClient:
    cache = RegistryCache(Path(cache_dir), ttl_seconds=24 * 60 * 60)
    return RegistryClient(REGISTRY_URL, cache, transport=transport)


def _loaded_client(tmpdir: str) -> RegistryClient:
    client = _client(tmpdir, _transport(CATALOG))
    asyncio.run(client.load_registry())
    return client


# --- Models ---


def test_entry_from_dict_parses_camel_case():
    entry = entry_from_dict(_raw_entry("astro", "Astro", full=True))
    assert entry is not None
    assert entry.llms_txt_url == "https://astro.dev/llms.txt"
    assert entry.has_full
    assert entry.url_for(full=True) == ("https://astro.dev/llms-full.txt", "llms-full.txt")
    assert entry.url_for(full=False) == ("https://astro.dev/llms.txt", "llms.txt")


def test_entry_without_full_url_falls_back():
    entry = entry_from_dict(_raw_entry("react", "React"))
    assert not entry.has_full
    assert entry.url_for(full=True) == ("https://react.dev/llms.txt", "llms.txt")


def test_entry_from_dict_rejects_malformed():
    assert entry_from_dict("react") is None
    missing_url = _raw_entry("react", "React")
    del missing_url["llmsTxtUrl"]
    assert entry_from_dict(missing_url) is None
    empty_slug = _raw_entry("", "React")
    assert entry_from_dict(empty_slug) is None


def test_entry_from_dict_rejects_unsafe_slugs():
    for slug in ("../../../escaped", "..", "a/b", "React", "-leading", "docs..v2", ".hidden"):
        assert entry_from_dict(_raw_entry(slug, "Bad")) is None
    for slug in ("react", "next.js", "vercel-ai-sdk", "v0_docs", "3d"):
        assert entry_from_dict(_raw_entry(slug, "Good")).slug == slug


def test_traversal_slug_never_reaches_lookup():
    with tempfile.TemporaryDirectory() as tmpdir:
        catalog = [_raw_entry("../../../escaped", "Escaped"), _raw_entry("react", "React")]
        client = _client(tmpdir, _transport(catalog))
        entries = asyncio.run(client.load_registry())

        assert [e.slug for e in entries] == ["react"]
        assert client.resolve_slug("../../../escaped") is None
        assert client.resolve_slug("Escaped") is None


def test_entry_dict_round_trip():
    entry = entry_from_dict(_raw_entry("astro", "Astro", full=True))
    assert entry_from_dict(entry_to_dict(entry)) == entry


def test_parse_registry_drops_malformed_entries():
    entries = parse_registry([_raw_entry("react", "React"), {"slug": "broken"}, 42])
    assert [e.slug for e in entries] == ["react"]


def test_parse_registry_rejects_non_array():
    with pytest.raises(RegistryError):
        parse_registry({"entries": []})


def test_parse_registry_rejects_empty():
    with pytest.raises(RegistryError):
        parse_registry([{"slug": "broken"}])


# --- Loading & cache ---


def test_load_registry_fetches_and_caches():
    with tempfile.TemporaryDirectory() as tmpdir:
        calls: list = []
        client = _client(tmpdir, _transport(CATALOG, calls))
        entries = asyncio.run(client.load_registry())

        assert len(entries) == len(CATALOG)
        assert calls == [REGISTRY_URL]
        assert (Path(tmpdir) / "registry.json").exists()


def test_fresh_cache_skips_network():
    with tempfile.TemporaryDirectory() as tmpdir:
        asyncio.run(_client(tmpdir, _transport(CATALOG)).load_registry())
        cache_file = Path(tmpdir) / "registry.json"
        ten_minutes_ago = time.time() - 10 * 60
        os.utime(cache_file, (ten_minutes_ago, ten_minutes_ago))

        calls: list = []
        client = _client(tmpdir, _transport([_raw_entry("other", "Other")], calls))
        entries = asyncio.run(client.load_registry())

        assert calls == []
        assert len(entries) == len(CATALOG)


def test_expired_cache_triggers_refetch():
    with tempfile.TemporaryDirectory() as tmpdir:
        asyncio.run(_client(tmpdir, _transport(CATALOG)).load_registry())
        cache_file = Path(tmpdir) / "registry.json"
        day_ago = time.time() - 25 * 60 * 60
        os.utime(cache_file, (day_ago, day_ago))

        calls: list = []
        client = _client(tmpdir, _transport([_raw_entry("other", "Other")], calls))
        entries = asyncio.run(client.load_registry())

        assert calls == [REGISTRY_URL]
        assert [e.slug for e in entries] == ["other"]


def test_stale_cache_used_when_refresh_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        asyncio.run(_client(tmpdir, _transport(CATALOG)).load_registry())
        cache_file = Path(tmpdir) / "registry.json"
        day_ago = time.time() - 25 * 60 * 60
        os.utime(cache_file, (day_ago, day_ago))

        client = _client(tmpdir, _transport({"error": "down"}, status=503))
        entries = asyncio.run(client.load_registry())
        assert len(entries) == len(CATALOG)


def test_load_registry_fails_without_any_cache():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _client(tmpdir, _transport({"error": "down"}, status=500))
        with pytest.raises(RegistryError):
            asyncio.run(client.load_registry())


def test_corrupt_cache_is_a_miss():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "registry.json").write_text("{not json")
        cache = RegistryCache(Path(tmpdir), ttl_seconds=3600)
        assert cache.read() is None
        assert cache.read(allow_stale=True) is None


def test_cache_write_is_valid_json():
    with tempfile.TemporaryDirectory() as tmpdir:
        cache = RegistryCache(Path(tmpdir) / "nested", ttl_seconds=3600)
        cache.write([RegistryEntry("react", "React", "https://react.dev/llms.txt")])
        data = json.loads(cache.path.read_text())
        assert data[0]["llmsTxtUrl"] == "https://react.dev/llms.txt"
        assert [e.slug for e in cache.read()] == ["react"]


# --- Resolution ---


def test_resolve_slug_exact_and_case_insensitive():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _loaded_client(tmpdir)
        assert client.resolve_slug("react").slug == "react"
        assert client.resolve_slug("REACT").slug == "react"
        assert client.resolve_slug("React Native").slug == "react-native"


def test_resolve_slug_unknown_returns_none():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _loaded_client(tmpdir)
        assert client.resolve_slug("nonexistent-zzz") is None
        assert client.resolve_slug("   ") is None


def test_resolve_slug_ambiguous_name_returns_none():
    with tempfile.TemporaryDirectory() as tmpdir:
        catalog = [_raw_entry("docs-a", "Docs"), _raw_entry("docs-b", "Docs")]
        client = _client(tmpdir, _transport(catalog))
        asyncio.run(client.load_registry())
        assert client.resolve_slug("docs") is None
        assert client.resolve_slug("docs-a").slug == "docs-a"


# --- Search ---


def test_search_ranks_name_matches_first():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _loaded_client(tmpdir)
        results = [e.slug for e in client.search("react")]
        assert results[0] == "react"
        assert results.index("react-native") < results.index("preact")


def test_search_matches_description_and_domain():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _loaded_client(tmpdir)
        assert [e.slug for e in client.search("alternative")] == ["preact"]
        assert [e.slug for e in client.search("docs.stripe")] == ["stripe"]


def test_search_multi_term():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _loaded_client(tmpdir)
        assert [e.slug for e in client.search("modern preact")] == ["preact"]


def test_search_respects_categories():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _loaded_client(tmpdir)
        assert client.search("stripe", ["developer-tools"]) == []
        assert [e.slug for e in client.search("stripe", ["finance-fintech"])] == ["stripe"]
        assert [e.slug for e in client.search("stripe", None)] == ["stripe"]
