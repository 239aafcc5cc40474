"""Suggest registry entries from a project's dependency manifests.

Reads ``package.json`` (npm), ``requirements*.txt`` and ``pyproject.toml``
(PyPI), maps package names to registry slugs through the bundled mapping
table, and keeps the slugs the loaded registry actually knows about.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path

import yaml

from llmstxt.registry.client import RegistryClient
from llmstxt.registry.models import RegistryEntry

logger = logging.getLogger(__name__)

_REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


@dataclass
class DetectedMatch:
    """A registry entry suggested by one or more project dependencies."""

    slug: str
    entry: RegistryEntry
    matched_packages: list[str] = field(default_factory=list)


def load_package_mappings() -> dict[str, dict[str, str]]:
    text = resources.files("llmstxt").joinpath("data/package_mappings.yaml").read_text(
        encoding="utf-8"
    )
    data = yaml.safe_load(text) or {}
    return {
        ecosystem: {str(k): str(v) for k, v in (mapping or {}).items()}
        for ecosystem, mapping in data.items()
    }


def normalize_pypi_name(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


def npm_dependencies(project_dir: Path) -> list[str]:
    path = project_dir / "package.json"
    if not path.is_file():
        return []
    try:
        pkg = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("Skipping unreadable %s: %s", path, e)
        return []
    if not isinstance(pkg, dict):
        return []

    names: list[str] = []
    for key in ("dependencies", "devDependencies"):
        deps = pkg.get(key)
        if isinstance(deps, dict):
            names.extend(name for name in deps if name not in names)
    return names


def pypi_dependencies(project_dir: Path) -> list[str]:
    specs: list[str] = []

    for req_file in sorted(project_dir.glob("requirements*.txt")):
        try:
            lines = req_file.read_text(encoding="utf-8").splitlines()
        except OSError:
            continue
        specs.extend(line for line in lines if line.strip() and not line.lstrip().startswith(("#", "-")))

    pyproject = project_dir / "pyproject.toml"
    if pyproject.is_file():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.debug("Skipping unreadable %s: %s", pyproject, e)
            data = {}
        project = data.get("project", {})
        specs.extend(project.get("dependencies", []))
        for extra in project.get("optional-dependencies", {}).values():
            specs.extend(extra)
        poetry = data.get("tool", {}).get("poetry", {}).get("dependencies", {})
        specs.extend(name for name in poetry if name.lower() != "python")

    names: list[str] = []
    for spec in specs:
        match = _REQUIREMENT_NAME_RE.match(str(spec))
        if match:
            name = normalize_pypi_name(match.group(1))
            if name not in names:
                names.append(name)
    return names


def detect_dependencies(
    project_dir: str | Path,
    registry: RegistryClient,
    mappings: dict[str, dict[str, str]] | None = None,
) -> list[DetectedMatch]:
    """Return registry entries matching the project's declared dependencies."""
    root = Path(project_dir)
    mappings = mappings if mappings is not None else load_package_mappings()

    by_slug: dict[str, list[str]] = {}
    sources = (
        ("npm", npm_dependencies(root)),
        ("pypi", pypi_dependencies(root)),
    )
    for ecosystem, packages in sources:
        table = mappings.get(ecosystem, {})
        for package in packages:
            slug = table.get(package)
            if slug:
                by_slug.setdefault(slug, []).append(package)

    matches = []
    for slug, packages in by_slug.items():
        entry = registry.get_entry(slug)
        if entry:
            matches.append(DetectedMatch(slug=slug, entry=entry, matched_packages=packages))
    return matches
