"""
Models and defaults for recipe-index.

Plain dataclasses describe the records read from stdin, the files packaged for
each recipe version and the statistics gathered over a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Recipe layout
MANIFEST_FILE = "manifest.json"
DEFAULT_POST_INSTALL_FILE = "post-install.txt"
DEFAULT_MAKEFILE_FILE = "Makefile"

# Alias derivation for core packages
DEFAULT_CORE_NAMESPACE = "symfony/"
DEFAULT_META_PACKAGE_SUFFIX = "-pack"

# Output layout
ARCHIVE_DIR = "archived"
INDEX_FILE = "index.json"

# Manifest keys with special handling
ALIASES_KEY = "aliases"
CONFLICT_KEY = "conflict"
POST_INSTALL_OUTPUT_KEY = "post-install-output"
MAKEFILE_KEY = "makefile"


def dotted_package(package: str) -> str:
    """Return the package name with `/` replaced by `.` (e.g. `vendor.name`)."""
    return package.replace("/", ".")


@dataclass(frozen=True)
class RecipeRecord:
    """One line of the tree listing read from stdin.

    Attributes:
        tree: Tree reference (content hash of the recipe version directory).
        path: Package path, `<vendor>/<name>/<version>`.
    """

    tree: str
    path: str

    @property
    def package(self) -> str:
        """Package name: everything before the last path segment."""
        return self.path.rsplit("/", 1)[0]

    @property
    def version(self) -> str:
        """Version: the last path segment."""
        return self.path.rsplit("/", 1)[1]


@dataclass
class FileEntry:
    """A packaged recipe file.

    Attributes:
        path: Path relative to the recipe version directory, forward slashes.
        contents: List of lines for UTF-8 text, base64 string for anything else.
        executable: Whether the file carries execute permission.
    """

    path: str
    contents: list[str] | str
    executable: bool = False

    @property
    def is_binary(self) -> bool:
        return isinstance(self.contents, str)

    def to_dict(self) -> dict[str, Any]:
        return {
            "contents": self.contents,
            "executable": self.executable,
        }


@dataclass
class PackageArtifact:
    """The published document for one recipe version.

    Attributes:
        package: Package name (`vendor/name`).
        version: Recipe version.
        ref: Tree reference the artifact was built from.
        manifest: Manifest with aliases removed and special files folded in.
        files: File entries keyed by relative path, naturally sorted.
    """

    package: str
    version: str
    ref: str
    manifest: dict[str, Any]
    files: dict[str, FileEntry] = field(default_factory=dict)

    @property
    def stable_name(self) -> str:
        """File name of the "latest" copy, e.g. `vendor.name.1.0.json`."""
        return f"{dotted_package(self.package)}.{self.version}.json"

    @property
    def archive_name(self) -> str:
        """Archive path relative to the output directory."""
        return f"{ARCHIVE_DIR}/{dotted_package(self.package)}/{self.ref}.json"

    def to_dict(self) -> dict[str, Any]:
        return {
            "manifests": {
                self.package: {
                    "manifest": self.manifest,
                    "files": {path: entry.to_dict() for path, entry in self.files.items()},
                    "ref": self.ref,
                },
            },
        }


@dataclass
class BuildStats:
    """Statistics from one index build.

    Attributes:
        records_read: Non-blank input lines consumed.
        recipes_packaged: Recipe versions written as artifacts.
        skipped_missing_manifest: Records whose directory had no manifest.
        skipped_empty_manifest: Records whose manifest had nothing left to publish.
        files_packaged: File entries written across all artifacts.
        binary_files: File entries stored base64 encoded.
        aliases: Entries in the final alias table.
        packages: Packages in the final recipe table.
        conflicts: Recipe versions declaring conflicts.
        processing_time_seconds: End-to-end processing time.
    """

    records_read: int = 0
    recipes_packaged: int = 0
    skipped_missing_manifest: int = 0
    skipped_empty_manifest: int = 0
    files_packaged: int = 0
    binary_files: int = 0
    aliases: int = 0
    packages: int = 0
    conflicts: int = 0
    processing_time_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "aliases": self.aliases,
            "binary_files": self.binary_files,
            "conflicts": self.conflicts,
            "files_packaged": self.files_packaged,
            "packages": self.packages,
            "processing_time_seconds": round(self.processing_time_seconds, 3),
            "recipes_packaged": self.recipes_packaged,
            "records_read": self.records_read,
            "skipped": {
                "empty_manifest": self.skipped_empty_manifest,
                "missing_manifest": self.skipped_missing_manifest,
            },
        }
