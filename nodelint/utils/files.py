"""Locate serialized tree files."""

from __future__ import annotations

from pathlib import Path
from typing import Generator, Iterable

TREE_EXTENSIONS = (".json", ".yaml", ".yml")


def iter_tree_files(root_paths: Iterable[str], extensions: tuple[str, ...] = TREE_EXTENSIONS) -> Generator[Path, None, None]:
    """Yield tree files given directly or found beneath the provided directories."""

    for root in root_paths:
        path = Path(root)
        if path.is_dir():
            for candidate in sorted(path.rglob("*")):
                if candidate.suffix in extensions and candidate.is_file():
                    yield candidate
        else:
            yield path
