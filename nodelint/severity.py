"""Severity definitions for rule findings."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Enumerate the supported severity levels for findings.

    ``INTERNAL`` is reserved for findings the runner records when a rule
    raises while inspecting a node.
    """

    INTERNAL = "INTERNAL"
    FATAL = "FATAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    CONVENTION = "CONVENTION"
    REFACTOR = "REFACTOR"
    INFO = "INFO"

    @property
    def exit_priority(self) -> int:
        """Return an integer ranking to drive exit code decisions."""

        ordering = {
            Severity.INTERNAL: 6,
            Severity.FATAL: 5,
            Severity.ERROR: 4,
            Severity.WARNING: 3,
            Severity.CONVENTION: 2,
            Severity.REFACTOR: 1,
            Severity.INFO: 0,
        }
        return ordering[self]

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Resolve a case-insensitive severity name."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            choices = ", ".join(severity.value for severity in cls)
            raise ValueError(f"Unknown severity {value!r}; expected one of {choices}") from None
