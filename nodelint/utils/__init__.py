"""Utility helpers for nodelint."""

from .fileio import read_yaml_file
from .files import iter_tree_files
from .trees import load_tree

__all__ = [
    "read_yaml_file",
    "iter_tree_files",
    "load_tree",
]
