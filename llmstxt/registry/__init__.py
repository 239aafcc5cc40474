"""Registry — the catalog of installable llms.txt entries.

The registry provides:
- Loading: remote JSON catalog with a 24-hour disk cache
- Resolution: slug or display name to a single entry
- Discovery: ranked free-text search with category filters
"""

from llmstxt.registry.cache import RegistryCache
from llmstxt.registry.client import RegistryClient
from llmstxt.registry.models import PRIMARY_CATEGORIES, RegistryEntry

__all__ = [
    "PRIMARY_CATEGORIES",
    "RegistryCache",
    "RegistryClient",
    "RegistryEntry",
]
