"""
Recipe scanner module for recipe-index.

Walks one recipe version directory and turns its files into file entries,
pulling the post-install transcript and the Makefile out as line lists.
"""

from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generator, Optional

from .config import (
    DEFAULT_MAKEFILE_FILE,
    DEFAULT_POST_INSTALL_FILE,
    MANIFEST_FILE,
    FileEntry,
)
from .utils import decode_utf8, natsorted, normalize_path, split_lines, split_transcript

logger = logging.getLogger(__name__)


@dataclass
class RecipeContents:
    """Everything found in a recipe version directory besides the manifest.

    Attributes:
        files: File entries keyed by relative path, in natural order.
        post_install_output: Lines of the post-install transcript, if present.
        makefile: Lines of the Makefile, if present.
    """

    files: dict[str, FileEntry] = field(default_factory=dict)
    post_install_output: Optional[list[str]] = None
    makefile: Optional[list[str]] = None


def read_file_entry(file_path: Path, relative_path: str) -> FileEntry:
    """Read one recipe file into a `FileEntry`.

    Valid UTF-8 is kept as a list of lines, split on `\\n` only, so joining
    them back with `\\n` reproduces the file byte for byte. Anything else is
    stored base64 encoded.

    Args:
        file_path: Path to the file on disk.
        relative_path: Path relative to the recipe version directory.

    Returns:
        The file entry.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(file_path, "rb") as f:
        data = f.read()

    text = decode_utf8(data)
    if text is None:
        contents: list[str] | str = base64.b64encode(data).decode("ascii")
    else:
        contents = split_lines(text)

    return FileEntry(
        path=relative_path,
        contents=contents,
        executable=os.access(file_path, os.X_OK),
    )


def read_transcript(file_path: Path) -> list[str]:
    """Read a special file as lines with line endings normalized.

    Bytes that are not valid UTF-8 are replaced with U+FFFD and a warning is logged.
    """
    raw = file_path.read_bytes()
    text = decode_utf8(raw)
    if text is None:
        logger.warning("%s is not valid UTF-8; undecodable bytes were replaced", file_path)
        text = raw.decode("utf-8", errors="replace")
    return split_transcript(text)


class RecipeScanner:
    """
    Scans a recipe version directory.

    Symbolic links are followed, both to files and to directories.
    """

    def __init__(
        self,
        root_path: Path,
        post_install_file: str = DEFAULT_POST_INSTALL_FILE,
        makefile_file: str = DEFAULT_MAKEFILE_FILE,
    ):
        """
        Initialize the scanner.

        Args:
            root_path: Recipe version directory (`<package>/<version>`)
            post_install_file: Relative path of the post-install transcript
            makefile_file: Relative path of the Makefile
        """
        self.root_path = root_path
        self.post_install_file = post_install_file
        self.makefile_file = makefile_file

    def scan(self) -> RecipeContents:
        """
        Scan the directory.

        Returns:
            The recipe contents, with file entries sorted naturally by path
        """
        contents = RecipeContents()
        files: dict[str, FileEntry] = {}

        for file_path in self._walk_files():
            rel_path = normalize_path(os.path.relpath(file_path, self.root_path))

            if rel_path == MANIFEST_FILE:
                continue

            if rel_path == self.post_install_file:
                contents.post_install_output = read_transcript(file_path)
                continue

            if rel_path == self.makefile_file:
                contents.makefile = read_transcript(file_path)
                continue

            entry = read_file_entry(file_path, rel_path)
            if entry.is_binary:
                logger.debug("Storing %s/%s as base64", self.root_path, rel_path)
            files[rel_path] = entry

        contents.files = {path: files[path] for path in natsorted(files)}
        return contents

    def _walk_files(self) -> Generator[Path, None, None]:
        """
        Walk the directory and yield file paths.

        Uses os.scandir. A symlink pointing back at one of its own parent
        directories is not descended into.
        """
        yield from self._walk_dir(self.root_path, frozenset())

    def _walk_dir(self, directory: Path, ancestors: frozenset[str]) -> Generator[Path, None, None]:
        real_dir = os.path.realpath(directory)
        if real_dir in ancestors:
            logger.debug("Not following symlink loop at %s", directory)
            return
        ancestors = ancestors | {real_dir}

        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)

        for entry in entries:
            entry_path = Path(entry.path)

            # is_dir()/is_file() follow symlinks
            if entry.is_dir():
                yield from self._walk_dir(entry_path, ancestors)
            elif entry.is_file():
                yield entry_path
