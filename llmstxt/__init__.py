"""llmstxt — install llms.txt documentation skills into AI coding agents."""

__version__ = "0.4.0"
