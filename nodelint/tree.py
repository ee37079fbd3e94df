"""Immutable syntax tree model consumed by rules.

Trees are produced by an external parser. Nodes carry a ``kind`` tag, an
ordered tuple of children (nodes or scalars) and an optional source map::

    >>> s("send", None, "eql", s("int", 1))
    Node(kind='send', children=(None, 'eql', Node(kind='int', children=(1,), location=None)), location=None)

Ruby symbols are represented as ``str`` scalars and ``nil`` as ``None``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .errors import TreeFormatError

Scalar = Union[str, int, float, bool, None]
Child = Union["Node", Scalar]


@dataclass(frozen=True)
class Range:
    """A span of source text.

    Lines are 1-based, columns 0-based and ``last_column`` is exclusive.
    """

    line: int
    column: int
    last_line: int
    last_column: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "line": self.line,
            "column": self.column,
            "last_line": self.last_line,
            "last_column": self.last_column,
        }

    def __str__(self) -> str:
        return f"{self.line}:{self.column + 1}"


@dataclass(frozen=True)
class SourceMap:
    """Source ranges for a node: the whole expression plus named parts."""

    expression: Range
    parts: Tuple[Tuple[str, Range], ...] = ()

    def part(self, name: str) -> Range:
        """Return the range for ``name``, falling back to the expression."""

        if name == "expression":
            return self.expression
        for part_name, part_range in self.parts:
            if part_name == name:
                return part_range
        return self.expression


@dataclass(frozen=True)
class Node:
    """One syntax construct."""

    kind: str
    children: Tuple[Child, ...] = ()
    location: Optional[SourceMap] = None

    def child_nodes(self) -> Iterator["Node"]:
        for child in self.children:
            if isinstance(child, Node):
                yield child

    def walk(self) -> Iterator["Node"]:
        """Yield this node and its descendants in pre-order."""

        stack: List[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed([child for child in node.children if isinstance(child, Node)]))

    def to_sexp(self) -> str:
        parts = [self.kind]
        for child in self.children:
            parts.append(child.to_sexp() if isinstance(child, Node) else _format_scalar(child))
        return "(" + " ".join(parts) + ")"

    def __str__(self) -> str:
        return self.to_sexp()


def _format_scalar(value: Scalar) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value)
    return repr(value)


def s(kind: str, *children: Child, location: Optional[SourceMap] = None) -> Node:
    """Shorthand node constructor used by parsers and tests."""

    return Node(kind=kind, children=tuple(children), location=location)


# ----------------------------------------------------------------------
# Serialized form
# ----------------------------------------------------------------------
def node_from_data(data: Any, where: str = "$") -> Node:
    """Build a node from its mapping form ``{type, children, loc}``."""

    if not isinstance(data, dict):
        raise TreeFormatError(f"{where}: expected a node mapping, got {type(data).__name__}")
    kind = data.get("type")
    if not isinstance(kind, str) or not kind:
        raise TreeFormatError(f"{where}: node is missing a string 'type'")
    raw_children = data.get("children") or []
    if not isinstance(raw_children, list):
        raise TreeFormatError(f"{where}: 'children' must be a list")

    children: List[Child] = []
    for index, child in enumerate(raw_children):
        child_where = f"{where}.children[{index}]"
        if isinstance(child, dict):
            children.append(node_from_data(child, child_where))
        elif child is None or isinstance(child, (str, int, float, bool)):
            children.append(child)
        else:
            raise TreeFormatError(f"{child_where}: unsupported child of type {type(child).__name__}")

    location = _source_map_from_data(data.get("loc"), f"{where}.loc")
    return Node(kind=kind, children=tuple(children), location=location)


def _source_map_from_data(data: Any, where: str) -> Optional[SourceMap]:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise TreeFormatError(f"{where}: expected a mapping of ranges")
    if "expression" not in data:
        raise TreeFormatError(f"{where}: missing 'expression' range")
    expression = _range_from_data(data["expression"], f"{where}.expression")
    parts = tuple(
        (str(name), _range_from_data(value, f"{where}.{name}"))
        for name, value in data.items()
        if name != "expression" and value is not None
    )
    return SourceMap(expression=expression, parts=parts)


def _range_from_data(data: Any, where: str) -> Range:
    if isinstance(data, dict):
        data = [data.get("line"), data.get("column"), data.get("last_line"), data.get("last_column")]
    if not isinstance(data, list) or len(data) != 4:
        raise TreeFormatError(f"{where}: expected [line, column, last_line, last_column]")
    if not all(isinstance(item, int) and not isinstance(item, bool) for item in data):
        raise TreeFormatError(f"{where}: range bounds must be integers")
    return Range(*data)
