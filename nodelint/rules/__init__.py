"""Rule definitions shared by the registry and the built-in rules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterator, List, Optional, Protocol, Tuple, Union

from nodelint.pattern import CaptureKey, Captures, Pattern, compile_pattern
from nodelint.result import Finding
from nodelint.severity import Severity
from nodelint.tree import Node

MessageTemplate = Union[str, Callable[[Captures], str]]
Predicate = Callable[[Node], Optional[Captures]]

DEFAULT_SPEC_PATTERNS: Tuple[str, ...] = (r"_spec\.rb$", r"(?:^|/)spec/")


class Rule(Protocol):
    """Protocol implemented by all rules accepted by the runner."""

    id: str
    severity: Severity

    def applies_to(self, path: str) -> bool:
        """Return whether the rule should inspect the tree parsed from ``path``."""

    def apply(self, node: Node, path: Optional[str] = None) -> Iterator[Finding]:
        """Yield the findings for ``node`` itself; children are visited separately."""


@dataclass(frozen=True)
class SelectionPolicy:
    """Choose which node anchors a finding and which part of its source map.

    ``capture`` is ``None`` for the matched node itself, otherwise the key of a
    capture. Captured scalars cannot carry a location, so they fall back to
    the matched node.
    """

    capture: Optional[CaptureKey] = None
    location: str = "expression"

    def anchor(self, node: Node, captures: Captures) -> Node:
        if self.capture is None:
            return node
        selected = captures.get(self.capture)
        if isinstance(selected, Node):
            return selected
        return node


@dataclass(frozen=True)
class PathPatterns:
    """Enablement predicate accepting paths that match any regex."""

    patterns: Tuple[str, ...]

    def __call__(self, path: str) -> bool:
        normalized = path.replace("\\", "/")
        return any(re.search(pattern, normalized) for pattern in self.patterns)


def spec_only(patterns: Tuple[str, ...] = DEFAULT_SPEC_PATTERNS) -> PathPatterns:
    """Restrict a rule to spec files."""

    return PathPatterns(tuple(patterns))


@dataclass(frozen=True)
class PatternRule:
    """Bind a compiled pattern (or a custom predicate) to a message."""

    id: str
    message: MessageTemplate
    pattern: Optional[Pattern] = None
    predicate: Optional[Predicate] = None
    selection: SelectionPolicy = field(default_factory=SelectionPolicy)
    severity: Severity = Severity.CONVENTION
    enabled_for: Optional[Callable[[str], bool]] = None
    description: str = ""

    def __post_init__(self) -> None:
        if (self.pattern is None) == (self.predicate is None):
            raise ValueError(f"Rule {self.id} needs exactly one of pattern or predicate")

    @classmethod
    def from_text(
        cls,
        rule_id: str,
        pattern_text: str,
        message: MessageTemplate,
        selection: Optional[SelectionPolicy] = None,
        **options: Any,
    ) -> "PatternRule":
        return cls(
            id=rule_id,
            message=message,
            pattern=compile_pattern(pattern_text),
            selection=selection or SelectionPolicy(),
            **options,
        )

    def applies_to(self, path: str) -> bool:
        if self.enabled_for is None:
            return True
        return self.enabled_for(path)

    def apply(self, node: Node, path: Optional[str] = None) -> Iterator[Finding]:
        captures = self._captures(node)
        if captures is None:
            return
        anchor = self.selection.anchor(node, captures)
        location = anchor.location.part(self.selection.location) if anchor.location else None
        yield Finding(
            rule=self.id,
            message=self.render_message(captures),
            severity=self.severity,
            location=location,
            path=path,
        )

    def render_message(self, captures: Captures) -> str:
        if callable(self.message):
            return self.message(captures)
        positional = sorted(key for key in captures if isinstance(key, int))
        args: List[str] = []
        if positional:
            args = [_render(captures.get(index)) for index in range(positional[-1] + 1)]
        named = {key: _render(value) for key, value in captures.items() if isinstance(key, str)}
        return self.message.format(*args, **named)

    def with_options(self, **changes: Any) -> "PatternRule":
        return replace(self, **changes)

    def _captures(self, node: Node) -> Optional[Captures]:
        if self.pattern is not None:
            return self.pattern.match(node)
        assert self.predicate is not None
        return self.predicate(node)


def _render(value: Any) -> str:
    if isinstance(value, tuple):
        return " ".join(_render(item) for item in value)
    if isinstance(value, Node):
        return value.to_sexp()
    if value is None:
        return "nil"
    return str(value)
