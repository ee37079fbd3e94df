"""Load serialized syntax trees."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import yaml

from nodelint.errors import TreeFormatError
from nodelint.tree import Node, node_from_data

from .fileio import read_yaml_file
from .files import TREE_EXTENSIONS


def load_tree(path: Path) -> Optional[Tuple[Node, str]]:
    """Load a tree document and the source path it was parsed from.

    A document is either a node mapping or ``{path: ..., ast: <node>}``.
    Without an explicit ``path`` the tree file name minus its serialization
    suffix is used, so ``spec/foo_spec.rb.json`` stands for
    ``spec/foo_spec.rb``.
    """

    try:
        data = read_yaml_file(path)
    except yaml.YAMLError as exc:
        raise TreeFormatError(f"{path}: {exc}") from exc
    except RecursionError:
        raise TreeFormatError(f"{path}: tree is nested too deeply to load") from None
    if data is None:
        return None
    if not isinstance(data, dict):
        raise TreeFormatError(f"Tree at {path} is not a mapping")

    source_path = _default_source_path(path)
    if "ast" in data:
        if data.get("path") is not None:
            source_path = str(data["path"])
        data = data["ast"]
    try:
        return node_from_data(data), source_path
    except TreeFormatError as exc:
        raise TreeFormatError(f"{path}: {exc}") from exc
    except RecursionError:
        raise TreeFormatError(f"{path}: tree is nested too deeply to load") from None


def _default_source_path(path: Path) -> str:
    if path.suffix in TREE_EXTENSIONS:
        return str(path.with_suffix(""))
    return str(path)
