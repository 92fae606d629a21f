"""Shared fixtures for recipe-index tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest


@pytest.fixture
def recipes_root(tmp_path: Path) -> Path:
    """Empty directory holding `<vendor>/<name>/<version>` recipe directories."""
    root = tmp_path / "recipes"
    root.mkdir()
    return root


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Empty endpoint output directory."""
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def make_recipe(recipes_root: Path) -> Callable[..., Path]:
    """Factory writing a recipe version directory.

    `files` maps relative paths to text (written as UTF-8) or bytes.
    Pass `manifest=None` to create a directory without a manifest.
    """

    def _make(
        path: str,
        manifest: dict[str, Any] | None = None,
        files: dict[str, str | bytes] | None = None,
    ) -> Path:
        version_dir = recipes_root / path
        version_dir.mkdir(parents=True, exist_ok=True)

        if manifest is not None:
            (version_dir / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")

        for rel_path, content in (files or {}).items():
            file_path = version_dir / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                file_path.write_bytes(content)
            else:
                file_path.write_bytes(content.encode("utf-8"))

        return version_dir

    return _make
