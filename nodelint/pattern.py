"""Compiled node patterns.

Pattern text is compiled once into a tree of small immutable matchers::

    (send _ :to $(send nil :eql {true false int float sym}))

Supported syntax:

``send``            node of kind ``send``
``_``               any single node or value
``...``             zero or more remaining children (sequences only)
``{a b c}``         any of the alternatives
``(kind child..)``  node whose kind and children match positionally
``nil`` ``:sym`` ``"str"`` ``1`` ``1.5``
                    scalar values
``$pattern``        positional capture, keyed by its index
``$name=pattern``   named capture
``!pattern``        succeeds when ``pattern`` does not
``# comment``       ignored up to the end of the line

Matching is total: any (pattern, value) pair yields either ``None`` or a
dict of captures, never an exception.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from .errors import PatternSyntaxError
from .tree import Node

CaptureKey = Union[int, str]
Captures = Dict[CaptureKey, Any]


class Pattern:
    """Base class of all compiled matchers."""

    def match(self, value: Any) -> Optional[Captures]:
        """Return the captures if ``value`` matches, otherwise ``None``."""

        return self._match(value, {})

    def _match(self, value: Any, bindings: Captures) -> Optional[Captures]:
        raise NotImplementedError

    def _match_head(self, kind: str, bindings: Captures) -> Optional[Captures]:
        return None


@dataclass(frozen=True)
class Kind(Pattern):
    name: str

    def _match(self, value: Any, bindings: Captures) -> Optional[Captures]:
        if isinstance(value, Node) and value.kind == self.name:
            return bindings
        return None

    def _match_head(self, kind: str, bindings: Captures) -> Optional[Captures]:
        return bindings if kind == self.name else None


@dataclass(frozen=True)
class Wildcard(Pattern):
    def _match(self, value: Any, bindings: Captures) -> Optional[Captures]:
        return bindings

    def _match_head(self, kind: str, bindings: Captures) -> Optional[Captures]:
        return bindings


@dataclass(frozen=True)
class Rest(Pattern):
    """Placeholder for a run of children; only meaningful inside a sequence."""

    def _match(self, value: Any, bindings: Captures) -> Optional[Captures]:
        return None


@dataclass(frozen=True)
class Value(Pattern):
    value: Any

    def _match(self, value: Any, bindings: Captures) -> Optional[Captures]:
        if isinstance(value, Node):
            return None
        expected = self.value
        if expected is None:
            return bindings if value is None else None
        if isinstance(expected, bool) or isinstance(value, bool):
            return bindings if value is expected else None
        if isinstance(expected, (int, float)):
            if isinstance(value, (int, float)) and value == expected:
                return bindings
            return None
        if isinstance(value, str) and value == expected:
            return bindings
        return None


@dataclass(frozen=True)
class Alternation(Pattern):
    options: Tuple[Pattern, ...]

    def _match(self, value: Any, bindings: Captures) -> Optional[Captures]:
        for option in self.options:
            result = option._match(value, bindings)
            if result is not None:
                return result
        return None

    def _match_head(self, kind: str, bindings: Captures) -> Optional[Captures]:
        for option in self.options:
            result = option._match_head(kind, bindings)
            if result is not None:
                return result
        return None


@dataclass(frozen=True)
class Capture(Pattern):
    key: CaptureKey
    inner: Pattern

    def _match(self, value: Any, bindings: Captures) -> Optional[Captures]:
        result = self.inner._match(value, bindings)
        if result is None:
            return None
        return {**result, self.key: value}

    def _match_head(self, kind: str, bindings: Captures) -> Optional[Captures]:
        result = self.inner._match_head(kind, bindings)
        if result is None:
            return None
        return {**result, self.key: kind}


@dataclass(frozen=True)
class Negation(Pattern):
    inner: Pattern

    def _match(self, value: Any, bindings: Captures) -> Optional[Captures]:
        if self.inner._match(value, bindings) is None:
            return bindings
        return None

    def _match_head(self, kind: str, bindings: Captures) -> Optional[Captures]:
        if self.inner._match_head(kind, bindings) is None:
            return bindings
        return None


@dataclass(frozen=True)
class Sequence(Pattern):
    """Match a node's kind with ``head`` and its children with ``elements``."""

    head: Pattern
    elements: Tuple[Pattern, ...] = ()

    def _match(self, value: Any, bindings: Captures) -> Optional[Captures]:
        if not isinstance(value, Node):
            return None
        result = self.head._match_head(value.kind, bindings)
        if result is None:
            return None

        children = value.children
        rest_index = self._rest_index()
        if rest_index is None:
            if len(children) != len(self.elements):
                return None
            return _match_each(self.elements, children, result)

        prefix = self.elements[:rest_index]
        suffix = self.elements[rest_index + 1 :]
        if len(children) < len(prefix) + len(suffix):
            return None
        tail_start = len(children) - len(suffix)
        result = _match_each(prefix, children[: len(prefix)], result)
        if result is None:
            return None
        result = _match_each(suffix, children[tail_start:], result)
        if result is None:
            return None
        rest = self.elements[rest_index]
        if isinstance(rest, Capture):
            result = {**result, rest.key: tuple(children[len(prefix) : tail_start])}
        return result

    def _rest_index(self) -> Optional[int]:
        for index, element in enumerate(self.elements):
            if _is_rest(element):
                return index
        return None


def _is_rest(pattern: Pattern) -> bool:
    if isinstance(pattern, Capture):
        return isinstance(pattern.inner, Rest)
    return isinstance(pattern, Rest)


def _match_each(patterns: Tuple[Pattern, ...], values: Tuple[Any, ...], bindings: Captures) -> Optional[Captures]:
    result: Optional[Captures] = bindings
    for pattern, value in zip(patterns, values):
        result = pattern._match(value, result)
        if result is None:
            return None
    return result


# ----------------------------------------------------------------------
# Compilation
# ----------------------------------------------------------------------
TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+|\#[^\n]*)
  | (?P<named_capture>\$[A-Za-z_]\w*=)
  | (?P<punct>\.\.\.|[(){}$!])
  | (?P<string>"(?:[^"\\]|\\.)*")
  | (?P<symbol>:(?:[A-Za-z_]\w*[?!=]?|<=>|===?|!=|<=|>=|<<|>>|\[\]=?|\*\*|[-+*/%<>!~^&|]))
  | (?P<float>-?\d+\.\d+)
  | (?P<int>-?\d+)
  | (?P<identifier>[A-Za-z_]\w*)
    """,
    re.VERBOSE,
)

Token = Tuple[str, str, int]


def _tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    position = 0
    while position < len(text):
        match = TOKEN_PATTERN.match(text, position)
        if match is None:
            raise PatternSyntaxError(f"Unexpected character {text[position]!r}", text, position)
        kind = match.lastgroup or ""
        if kind != "space":
            tokens.append((kind, match.group(), position))
        position = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.index = 0
        self.capture_count = 0
        self.capture_names: Set[str] = set()

    def parse(self) -> Pattern:
        if not self.tokens:
            raise PatternSyntaxError("Empty pattern", self.text)
        pattern = self._parse_pattern(allow_rest=False)
        if self.index < len(self.tokens):
            _, value, position = self.tokens[self.index]
            raise PatternSyntaxError(f"Unexpected {value!r}", self.text, position)
        return pattern

    def _next(self) -> Token:
        if self.index >= len(self.tokens):
            raise PatternSyntaxError("Unexpected end of pattern", self.text, len(self.text))
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _peek(self) -> Optional[str]:
        if self.index >= len(self.tokens):
            return None
        return self.tokens[self.index][1]

    def _parse_pattern(self, allow_rest: bool) -> Pattern:
        kind, value, position = self._next()
        if kind == "punct":
            if value == "(":
                return self._parse_sequence(position)
            if value == "{":
                return self._parse_alternation(position)
            if value == "$":
                key = self.capture_count
                self.capture_count += 1
                return Capture(key, self._parse_pattern(allow_rest))
            if value == "!":
                inner = self._parse_pattern(allow_rest=False)
                return Negation(inner)
            if value == "...":
                if not allow_rest:
                    raise PatternSyntaxError("'...' is only allowed among sequence children", self.text, position)
                return Rest()
            raise PatternSyntaxError(f"Unexpected {value!r}", self.text, position)
        if kind == "named_capture":
            name = value[1:-1]
            if name in self.capture_names:
                raise PatternSyntaxError(f"Duplicate capture name {name!r}", self.text, position)
            self.capture_names.add(name)
            return Capture(name, self._parse_pattern(allow_rest))
        if kind == "string":
            return Value(self._unquote(value, position))
        if kind == "symbol":
            return Value(value[1:])
        if kind == "float":
            return Value(float(value))
        if kind == "int":
            return Value(int(value))
        if value == "_":
            return Wildcard()
        if value == "nil":
            return Value(None)
        return Kind(value)

    def _unquote(self, literal: str, position: int) -> str:
        try:
            return json.loads(literal)
        except ValueError:
            raise PatternSyntaxError(f"Invalid string literal {literal}", self.text, position) from None

    def _parse_sequence(self, start: int) -> Sequence:
        if self._peek() == ")":
            raise PatternSyntaxError("Empty sequence", self.text, start)
        head = self._parse_pattern(allow_rest=False)
        elements: List[Pattern] = []
        seen_rest = False
        while self._peek() != ")":
            if self._peek() is None:
                raise PatternSyntaxError("Unclosed '('", self.text, start)
            element = self._parse_pattern(allow_rest=True)
            if _is_rest(element):
                if seen_rest:
                    raise PatternSyntaxError("Only one '...' is allowed per sequence", self.text, start)
                seen_rest = True
            elements.append(element)
        self._next()
        return Sequence(head, tuple(elements))

    def _parse_alternation(self, start: int) -> Alternation:
        options: List[Pattern] = []
        while self._peek() != "}":
            if self._peek() is None:
                raise PatternSyntaxError("Unclosed '{'", self.text, start)
            options.append(self._parse_pattern(allow_rest=False))
        self._next()
        if not options:
            raise PatternSyntaxError("Empty alternation", self.text, start)
        return Alternation(tuple(options))


@lru_cache(maxsize=256)
def compile_pattern(text: str) -> Pattern:
    """Compile pattern text, raising ``PatternSyntaxError`` when malformed."""

    return _Parser(text).parse()


def match(pattern: Union[Pattern, str], value: Any) -> Optional[Captures]:
    """Match ``value`` against a compiled pattern or pattern text."""

    if isinstance(pattern, str):
        pattern = compile_pattern(pattern)
    return pattern.match(value)
