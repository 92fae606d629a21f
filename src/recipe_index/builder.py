"""
Index builder module for recipe-index.

Reads the recipe tree listing, packages every recipe version and writes the
global index.json.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional

from .aliases import AliasResolver, load_catalog
from .config import (
    ALIASES_KEY,
    CONFLICT_KEY,
    DEFAULT_CORE_NAMESPACE,
    DEFAULT_MAKEFILE_FILE,
    DEFAULT_META_PACKAGE_SUFFIX,
    DEFAULT_POST_INSTALL_FILE,
    INDEX_FILE,
    MANIFEST_FILE,
    BuildStats,
    RecipeRecord,
)
from .links import build_links
from .packager import RecipePackager
from .utils import natsorted, natsorted_dict, render_json, write_text

logger = logging.getLogger(__name__)


class RecordError(Exception):
    """Malformed line in the recipe tree listing."""

    pass


class ManifestError(Exception):
    """Unreadable or invalid recipe manifest."""

    pass


def parse_record(line: str) -> RecipeRecord:
    """Parse one line of `git ls-tree` output.

    Lines look like `<mode> <type> <tree>\\t<path>`; only the tree reference
    and the path are kept.

    Args:
        line: Raw input line.

    Returns:
        The parsed record.

    Raises:
        RecordError: If the line does not have that shape, or the path has no
            version segment.
    """
    stripped = line.strip()
    descriptor, sep, path = stripped.partition("\t")
    if not sep or not path:
        raise RecordError(f"Expected '<mode> <type> <tree>\\t<path>', got: {stripped!r}")

    tokens = descriptor.split(" ")
    if len(tokens) < 3 or not tokens[2]:
        raise RecordError(f"Missing tree reference in: {stripped!r}")

    if "/" not in path:
        raise RecordError(f"Expected '<package>/<version>' path, got: {path!r}")

    return RecipeRecord(tree=tokens[2], path=path)


def read_records(lines: Iterable[str]) -> Iterable[RecipeRecord]:
    """Yield records from input lines, ignoring blank ones."""
    for line in lines:
        if not line.strip():
            continue
        yield parse_record(line)


def load_manifest(path: Path) -> dict[str, Any]:
    """Load a recipe manifest.

    Raises:
        ManifestError: If the file cannot be read or is not a JSON object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            manifest = json.load(f)
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    except ValueError as e:
        raise ManifestError(f"Invalid JSON in manifest {path}: {e}") from e

    if not isinstance(manifest, dict):
        raise ManifestError(f"Manifest {path} is not a JSON object")

    return manifest


class IndexBuilder:
    """
    Builds a recipe endpoint.

    Feed records with `add_record()` (or `process()`), then call `build_index()`
    and `write_index()`. Tables are kept naturally sorted as they grow.
    """

    def __init__(
        self,
        recipes_root: Path,
        output_dir: Path,
        core_namespace: str = DEFAULT_CORE_NAMESPACE,
        meta_package_suffix: str = DEFAULT_META_PACKAGE_SUFFIX,
        post_install_file: str = DEFAULT_POST_INSTALL_FILE,
        makefile_file: str = DEFAULT_MAKEFILE_FILE,
    ):
        """
        Initialize the builder.

        Args:
            recipes_root: Directory the `<package>/<version>` paths are relative to
            output_dir: Directory the endpoint is written to
            core_namespace: Package prefix that earns an automatic short alias
            meta_package_suffix: Suffix of packages excluded from that rule
            post_install_file: Relative path of the post-install transcript
            makefile_file: Relative path of the Makefile
        """
        self.recipes_root = recipes_root
        self.output_dir = output_dir
        self.aliases = AliasResolver(core_namespace, meta_package_suffix)
        self.packager = RecipePackager(
            recipes_root,
            output_dir,
            post_install_file=post_install_file,
            makefile_file=makefile_file,
        )

        self.catalog: dict[str, Any] = {}
        self.recipes: dict[str, list[str]] = {}
        self.conflicts: dict[str, dict[str, dict[str, Any]]] = {}

        self.stats = BuildStats()

    def load_catalog(self, path: Path) -> None:
        """Load the version catalog and seed the alias table from it."""
        self.catalog = load_catalog(path)
        self.aliases.seed_from_catalog(self.catalog)
        logger.info("Loaded %d catalog entries from %s", len(self.catalog["splits"]), path)

    def add_record(self, record: RecipeRecord) -> bool:
        """
        Process one recipe version.

        Returns:
            True if an artifact was written
        """
        self.stats.records_read += 1

        manifest_path = self.recipes_root / record.path / MANIFEST_FILE
        if not manifest_path.exists():
            logger.debug("Skipping %s: no %s", record.path, MANIFEST_FILE)
            self.stats.skipped_missing_manifest += 1
            return False

        manifest = load_manifest(manifest_path)
        package, version = record.package, record.version

        conflict = manifest.get(CONFLICT_KEY)
        # an empty JSON array stands for an empty map
        if conflict == []:
            conflict = {}
        if conflict is not None and not isinstance(conflict, dict):
            raise ManifestError(f"'{CONFLICT_KEY}' in {manifest_path} is not a JSON object")

        aliases = manifest.get(ALIASES_KEY)
        if aliases is not None and (
            not isinstance(aliases, list) or not all(isinstance(a, str) for a in aliases)
        ):
            raise ManifestError(f"'{ALIASES_KEY}' in {manifest_path} is not a list of strings")

        self.aliases.register_manifest(package, manifest)

        artifact = self.packager.package(package, version, manifest, record.tree)
        if artifact is None:
            self.stats.skipped_empty_manifest += 1
            return False

        self.stats.recipes_packaged += 1
        self.stats.files_packaged += len(artifact.files)
        self.stats.binary_files += sum(1 for f in artifact.files.values() if f.is_binary)

        self.recipes[package] = natsorted([*self.recipes.get(package, []), version])

        if conflict is not None:
            package_conflicts = self.conflicts.setdefault(package, {})
            package_conflicts[version] = natsorted_dict(conflict)
            self.conflicts[package] = natsorted_dict(package_conflicts)

        return True

    def process(self, lines: Iterable[str]) -> None:
        """Process every record of a tree listing, in input order."""
        for record in read_records(lines):
            self.add_record(record)

    def build_index(
        self,
        repository: str,
        source_branch: str,
        flex_branch: str,
        contrib: bool = False,
    ) -> dict[str, Any]:
        """Assemble the global index document."""
        aliases = self.aliases.table()
        recipes = natsorted_dict(self.recipes)
        conflicts = natsorted_dict(self.conflicts)

        self.stats.aliases = len(aliases)
        self.stats.packages = len(recipes)
        self.stats.conflicts = sum(len(versions) for versions in conflicts.values())

        links = build_links(repository, source_branch, flex_branch)
        logger.info("Using %s link templates rooted at %s", links.kind.value, links.repository)

        return {
            "aliases": aliases,
            "recipes": recipes,
            "recipe-conflicts": conflicts,
            "versions": self.catalog,
            "branch": source_branch,
            "is_contrib": contrib,
            "_links": links.to_dict(),
        }

    def write_index(self, index: dict[str, Any]) -> Path:
        """Write the index document to `<output_dir>/index.json`."""
        index_path = self.output_dir / INDEX_FILE
        write_text(index_path, render_json(index))
        return index_path


def generate_endpoint(
    lines: Iterable[str],
    repository: str,
    source_branch: str,
    flex_branch: str,
    output_dir: Path,
    recipes_root: Path = Path("."),
    versions_json: Optional[Path] = None,
    contrib: bool = False,
    **options: str,
) -> tuple[Path, BuildStats]:
    """
    Convenience function to build a whole endpoint in one call.

    Extra keyword options (`core_namespace`, `meta_package_suffix`,
    `post_install_file`, `makefile_file`) are passed to `IndexBuilder`.

    Returns:
        Tuple of (index path, BuildStats)
    """
    start_time = time.time()

    builder = IndexBuilder(recipes_root=recipes_root, output_dir=output_dir, **options)
    if versions_json is not None:
        builder.load_catalog(versions_json)

    builder.process(lines)
    index = builder.build_index(repository, source_branch, flex_branch, contrib=contrib)
    index_path = builder.write_index(index)

    builder.stats.processing_time_seconds = time.time() - start_time
    logger.info(
        "Packaged %d recipe versions for %d packages",
        builder.stats.recipes_packaged,
        builder.stats.packages,
    )
    return index_path, builder.stats
