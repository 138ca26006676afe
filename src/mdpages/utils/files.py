"""Utility helpers for working with source files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator


def iter_source_paths(directory: Path, extension: str) -> Iterator[Path]:
    """Yield files directly inside ``directory`` whose name ends with ``.extension``.

    Raises ``FileNotFoundError``/``NotADirectoryError`` when the directory
    cannot be listed.
    """
    suffix = "." + extension.lstrip(".")
    for child in Path(directory).iterdir():
        if child.is_file() and child.name.endswith(suffix):
            yield child


def read_source(path: Path) -> tuple[Path, str]:
    """Read a source file as UTF-8, keeping its path alongside the contents."""
    return path, path.read_text(encoding="utf-8")
