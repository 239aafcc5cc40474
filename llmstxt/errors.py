"""Exception types raised by the llmstxt core."""

from __future__ import annotations


class LlmstxtError(Exception):
    """Base class for errors the CLI reports without a traceback."""


class RegistryError(LlmstxtError):
    """The registry could not be loaded and no usable cache exists."""


class FetchError(LlmstxtError):
    """A remote artifact could not be fetched."""

    def __init__(self, message: str, url: str = "", status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NotFoundError(LlmstxtError):
    """A name did not resolve to any registry entry."""


class NotInstalledError(LlmstxtError):
    """The requested slug or name has no lockfile entry."""


class UnsafePathError(LlmstxtError):
    """A slug would resolve to a path outside its skills directory."""
