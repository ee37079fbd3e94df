"""Basic file IO helpers."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

BOOL_TAG = "tag:yaml.org,2002:bool"


class TreeLoader(yaml.SafeLoader):
    """Safe YAML loader that only treats ``true``/``false`` as booleans.

    YAML 1.1 also resolves ``yes``, ``no``, ``on`` and ``off``, which are
    ordinary method names in serialized trees.
    """


TreeLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
TreeLoader.add_implicit_resolver(
    BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def read_yaml_file(path: Path) -> Any:
    """Return the parsed YAML (or JSON) if the file exists, otherwise ``None``."""

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return yaml.load(handle, Loader=TreeLoader)

