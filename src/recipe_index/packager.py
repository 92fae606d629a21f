"""
Recipe packager module for recipe-index.

Builds the artifact for one recipe version and writes it to its stable path
and to its archive path.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from .config import (
    ALIASES_KEY,
    DEFAULT_MAKEFILE_FILE,
    DEFAULT_POST_INSTALL_FILE,
    MAKEFILE_KEY,
    POST_INSTALL_OUTPUT_KEY,
    PackageArtifact,
)
from .scanner import RecipeScanner
from .utils import render_json, write_text

logger = logging.getLogger(__name__)


def write_artifact(artifact: PackageArtifact, output_dir: Path) -> tuple[Path, Path]:
    """Write the same rendered artifact to its stable and archive locations.

    Args:
        artifact: The artifact to publish.
        output_dir: Endpoint output directory (must exist).

    Returns:
        Tuple `(stable_path, archive_path)`.

    Raises:
        OSError: If either file cannot be written.
    """
    content = render_json(artifact.to_dict())

    stable_path = output_dir / artifact.stable_name
    write_text(stable_path, content)

    archive_path = output_dir / artifact.archive_name
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    write_text(archive_path, content)

    return stable_path, archive_path


class RecipePackager:
    """
    Packages recipe versions found under a recipes root directory.
    """

    def __init__(
        self,
        recipes_root: Path,
        output_dir: Path,
        post_install_file: str = DEFAULT_POST_INSTALL_FILE,
        makefile_file: str = DEFAULT_MAKEFILE_FILE,
    ):
        """
        Initialize the packager.

        Args:
            recipes_root: Directory the `<package>/<version>` paths are relative to
            output_dir: Directory the artifacts are written to
            post_install_file: Relative path of the post-install transcript
            makefile_file: Relative path of the Makefile
        """
        self.recipes_root = recipes_root
        self.output_dir = output_dir
        self.post_install_file = post_install_file
        self.makefile_file = makefile_file

    def build(
        self, package: str, version: str, manifest: dict[str, Any], ref: str
    ) -> Optional[PackageArtifact]:
        """
        Build the artifact for one recipe version without writing it.

        The caller's manifest is left untouched.

        Returns:
            The artifact, or None when the manifest has nothing to publish
        """
        manifest = dict(manifest)
        manifest.pop(ALIASES_KEY, None)

        scanner = RecipeScanner(
            self.recipes_root / package / version,
            post_install_file=self.post_install_file,
            makefile_file=self.makefile_file,
        )
        contents = scanner.scan()

        if contents.post_install_output is not None:
            manifest[POST_INSTALL_OUTPUT_KEY] = contents.post_install_output
        if contents.makefile is not None:
            manifest[MAKEFILE_KEY] = contents.makefile

        if not manifest:
            return None

        return PackageArtifact(
            package=package,
            version=version,
            ref=ref,
            manifest=manifest,
            files=contents.files,
        )

    def package(
        self, package: str, version: str, manifest: dict[str, Any], ref: str
    ) -> Optional[PackageArtifact]:
        """
        Build and write the artifact for one recipe version.

        Returns:
            The written artifact, or None when nothing was written
        """
        artifact = self.build(package, version, manifest, ref)
        if artifact is None:
            logger.debug("Skipping %s %s: empty manifest", package, version)
            return None

        stable_path, archive_path = write_artifact(artifact, self.output_dir)
        logger.debug("Wrote %s and %s", stable_path, archive_path)
        return artifact
