"""
Alias resolution for recipe-index.

Collects the short names a package may be required by, from the version
catalog and from the `aliases` declared in each recipe manifest.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .config import (
    ALIASES_KEY,
    DEFAULT_CORE_NAMESPACE,
    DEFAULT_META_PACKAGE_SUFFIX,
)
from .utils import natsorted_dict

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Error while loading the version catalog."""

    pass


def load_catalog(path: Path) -> dict[str, Any]:
    """Load the version catalog document.

    Args:
        path: Path to the JSON catalog (a document with a `splits` object).

    Returns:
        The decoded catalog, unchanged.

    Raises:
        CatalogError: If the file cannot be read, is not valid JSON, or has no
            `splits` object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            catalog = json.load(f)
    except OSError as e:
        raise CatalogError(f"Cannot read version catalog {path}: {e}") from e
    except ValueError as e:
        raise CatalogError(f"Invalid JSON in version catalog {path}: {e}") from e

    if not isinstance(catalog, dict):
        raise CatalogError(f"Version catalog {path} is not a JSON object")
    if not isinstance(catalog.get("splits"), dict):
        raise CatalogError(f"Version catalog {path} has no 'splits' object")

    return catalog


class AliasResolver:
    """
    Accumulates the alias table for a run.

    Every alias is registered together with its hyphen-removed form. When two
    registrations use the same alias the later one wins, so the final table
    depends on the order records are processed in.
    """

    def __init__(
        self,
        core_namespace: str = DEFAULT_CORE_NAMESPACE,
        meta_package_suffix: str = DEFAULT_META_PACKAGE_SUFFIX,
    ):
        """
        Initialize the resolver.

        Args:
            core_namespace: Package prefix that earns an automatic short alias
            meta_package_suffix: Suffix of packages excluded from that rule
        """
        self.core_namespace = core_namespace
        self.meta_package_suffix = meta_package_suffix
        self._aliases: dict[str, str] = {}

    def derive_core_alias(self, package: str) -> str | None:
        """Return the short alias of a core package, or None for any other package."""
        if not package.startswith(self.core_namespace):
            return None
        if self.meta_package_suffix and package.endswith(self.meta_package_suffix):
            return None
        return package[len(self.core_namespace):]

    def register(self, alias: str, package: str) -> None:
        """Map `alias` and its hyphen-removed form to `package`, overwriting."""
        for key in (alias, alias.replace("-", "")):
            previous = self._aliases.get(key)
            if previous is not None and previous != package:
                logger.debug("Alias %r moves from %s to %s", key, previous, package)
            self._aliases[key] = package

    def register_core_package(self, package: str) -> None:
        alias = self.derive_core_alias(package)
        if alias is not None:
            self.register(alias, package)

    def seed_from_catalog(self, catalog: dict[str, Any]) -> None:
        """Register the short alias of every core package listed in the catalog."""
        for package in catalog.get("splits", {}):
            self.register_core_package(package)

    def register_manifest(self, package: str, manifest: dict[str, Any]) -> None:
        """Register the aliases a recipe declares, then its own core alias.

        An `aliases` value that is not a list is ignored.
        """
        declared = manifest.get(ALIASES_KEY)
        if isinstance(declared, list):
            for alias in declared:
                self.register(str(alias), package)
        self.register_core_package(package)

    def table(self) -> dict[str, str]:
        """Return the alias table in natural key order."""
        return natsorted_dict(self._aliases)

    def __len__(self) -> int:
        return len(self._aliases)
