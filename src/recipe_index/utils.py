"""
Utility functions for recipe-index.

Includes natural ordering, UTF-8 detection, line splitting and the JSON
rendering shared by every document the tool writes.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, TypeVar

V = TypeVar("V")

_DIGITS = re.compile(r"(\d+)")


def natural_sort_key(value: str) -> tuple[tuple[str | int, ...], str]:
    """Build a sort key that orders digit runs by numeric value.

    `pkg-2` sorts before `pkg-10` and `1.9` before `1.10`. `re.split` with a
    capturing group always yields text at even positions and digits at odd
    positions, so keys of any two strings compare without type errors.
    Equal keys (`01` vs `1`) fall back to the plain string.

    Args:
        value: String to build a key for.

    Returns:
        A tuple usable as `key=` for `sorted()`.
    """
    parts = _DIGITS.split(value)
    key = tuple(int(part) if i % 2 else part for i, part in enumerate(parts))
    return key, value


def natsorted(values: Iterable[str]) -> list[str]:
    """Return `values` sorted in natural order."""
    return sorted(values, key=natural_sort_key)


def natsorted_dict(mapping: Mapping[str, V]) -> dict[str, V]:
    """Return a copy of `mapping` with keys in natural order."""
    return {key: mapping[key] for key in natsorted(mapping)}


def decode_utf8(data: bytes) -> str | None:
    """Decode `data` as strict UTF-8.

    Returns:
        The decoded text, or None when the bytes are not valid UTF-8.
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def split_lines(text: str) -> list[str]:
    """Split text into lines exactly as stored, keeping trailing empty lines.

    Joining the result with `\\n` gives back `text`.
    """
    return text.split("\n")


def split_transcript(text: str) -> list[str]:
    """Split text into lines after dropping every `\\r` and trailing newlines."""
    return text.replace("\r", "").rstrip("\n").split("\n")


def normalize_path(path: str) -> str:
    """Normalize a path for consistent cross-platform comparisons.

    Args:
        path: Path string that may contain platform-specific separators.

    Returns:
        Normalized path using forward slashes.
    """
    return path.replace("\\", "/")


def render_json(data: Any) -> str:
    """Render a published document.

    Pretty printed with four-space indentation, non-ASCII characters escaped,
    slashes left as-is, and a trailing newline.
    """
    return json.dumps(data, indent=4, ensure_ascii=True) + "\n"


def write_text(path: Path, content: str) -> None:
    """Write `content` as UTF-8, replacing any existing file."""
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)
