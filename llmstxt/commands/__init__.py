"""Lifecycle commands: install, update, remove, list, info, search and init."""
